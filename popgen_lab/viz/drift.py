"""Random drift figures.

Every function accepts a DriftResult, returns a matplotlib Figure and
saves a PNG when ``save_path`` is given.
"""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import Optional, TYPE_CHECKING

from matplotlib.figure import Figure
import numpy as np

from popgen_lab.drift import drift_summary
from popgen_lab.viz.style import (
    LINE_COLOR,
    NEUTRAL_COLOR,
    THEORY_COLOR,
    apply_style,
    finish_figure,
    generation_axis,
    new_figure,
)

if TYPE_CHECKING:
    from popgen_lab.drift import DriftResult


def plot_drift_trajectories(
    result: DriftResult,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Allele frequency in every line, with the ±1 SD envelope expected
    from σ²_p = p0 q0 [1 - (1 - 1/2N)^t]."""
    summary = drift_summary(result)
    gens = generation_axis(result.n_generations)

    fig, ax = new_figure()
    for i in range(result.n_lines):
        ax.plot(gens, result.freqs[:, i], color=LINE_COLOR, alpha=0.35,
                linewidth=1.0)

    sd = np.sqrt(summary['expected_var_p'].to_numpy())
    ax.plot(gens, np.full_like(gens, result.p0), color=THEORY_COLOR,
            linewidth=2, label=f'E[p] = {result.p0:g}')
    ax.fill_between(gens, np.clip(result.p0 - sd, 0, 1),
                    np.clip(result.p0 + sd, 0, 1),
                    color=THEORY_COLOR, alpha=0.12, label='±1 SD (theory)')

    ax.set_ylim(-0.02, 1.02)
    ax.set_xlim(0, result.n_generations)
    ax.legend(fontsize=10, frameon=False, loc='upper left')
    apply_style(
        ax, xlabel='Generation', ylabel='Allele frequency p',
        title=f'Random drift, N = {result.pop_size:g}, '
              f'{result.n_lines} lines ({result.method})',
    )
    return finish_figure(fig, save_path, dpi)


def plot_drift_summary(
    result: DriftResult,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Observed vs expected variance among lines and heterozygosity,
    plus the fraction of lines fixed or lost."""
    summary = drift_summary(result)
    gens = summary.index.to_numpy()

    fig, axes = new_figure(1, 3, figsize=(16, 4.5))

    ax = axes[0]
    ax.plot(gens, summary['var_p'], 'o', color=LINE_COLOR, markersize=3,
            label='Observed')
    ax.plot(gens, summary['expected_var_p'], color=THEORY_COLOR, linewidth=2,
            label='Expected')
    ax.legend(fontsize=9, frameon=False)
    apply_style(ax, xlabel='Generation', ylabel='Var(p) among lines',
                title='Variance of p')

    ax = axes[1]
    ax.plot(gens, summary['heterozygosity'], 'o', color=LINE_COLOR,
            markersize=3, label='Observed')
    ax.plot(gens, summary['expected_heterozygosity'], color=THEORY_COLOR,
            linewidth=2, label='Expected')
    ax.legend(fontsize=9, frameon=False)
    apply_style(ax, xlabel='Generation', ylabel='Mean 2pq',
                title='Heterozygosity')

    ax = axes[2]
    ax.stackplot(gens, summary['lost'], summary['fixed'],
                 colors=[NEUTRAL_COLOR, LINE_COLOR], alpha=0.7,
                 labels=['Lost', 'Fixed'])
    ax.set_ylim(0, 1)
    ax.legend(fontsize=9, frameon=False, loc='upper left')
    apply_style(ax, xlabel='Generation', ylabel='Fraction of lines',
                title='Absorbed lines')

    return finish_figure(fig, save_path, dpi)


def plot_final_distribution(
    result: DriftResult,
    bins: int = 20,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Histogram of allele frequencies in the last generation."""
    fig, ax = new_figure(figsize=(7, 4.5))
    ax.hist(result.freqs[-1], bins=bins, range=(0, 1), color=LINE_COLOR,
            alpha=0.75, edgecolor='white', linewidth=0.5)
    apply_style(ax, xlabel='Allele frequency p', ylabel='Lines',
                title=f'Distribution after {result.n_generations} generations')
    return finish_figure(fig, save_path, dpi)
