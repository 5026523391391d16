"""Linkage disequilibrium figures."""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import Optional, Sequence, TYPE_CHECKING

from matplotlib.figure import Figure
import numpy as np

from popgen_lab.linkage import expected_decay, half_life, sved_r2
from popgen_lab.viz.style import (
    apply_style,
    color_cycle,
    finish_figure,
    generation_axis,
    new_figure,
)

if TYPE_CHECKING:
    from popgen_lab.linkage import LDResult


def plot_ld_decay(
    results: Sequence[LDResult],
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """D over generations for each recombination fraction.

    Left: replicate D trajectories (thin) against D_0(1 - c)^t (thick).
    Right: mean r² across replicates with the 1/(1 + 4Nc) level.
    """
    fig, axes = new_figure(1, 2, figsize=(14, 5))
    colors = color_cycle(len(results))

    for res, color in zip(results, colors):
        gens = generation_axis(res.n_generations)
        label = f'c = {res.recombination:g}'

        ax = axes[0]
        for k in range(res.n_replicates):
            ax.plot(gens, res.d[:, k], color=color, alpha=0.25, linewidth=0.8)
        ax.plot(gens, expected_decay(res.d0, res.recombination, gens),
                color=color, linewidth=2.2, label=label)

        ax = axes[1]
        ax.plot(gens, res.r2.mean(axis=1), color=color, linewidth=1.8,
                label=label)
        if res.recombination > 0:
            ax.axhline(sved_r2(res.pop_size, res.recombination), color=color,
                       linestyle=':', linewidth=1.2)

    axes[0].axhline(0.0, color='black', linewidth=0.5)
    axes[0].legend(fontsize=9, frameon=False)
    apply_style(axes[0], xlabel='Generation', ylabel='D',
                title='Decay of linkage disequilibrium')

    axes[1].set_ylim(0, 1.02)
    axes[1].legend(fontsize=9, frameon=False)
    apply_style(axes[1], xlabel='Generation', ylabel='Mean r²',
                title='r² (dotted: drift–recombination equilibrium)')

    return finish_figure(fig, save_path, dpi)


def plot_half_lives(
    recombination: np.ndarray,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Generations for D to halve as a function of c."""
    c = np.asarray(recombination, dtype=np.float64)
    c = c[c > 0]
    t_half = np.array([half_life(x) for x in c])

    fig, ax = new_figure(figsize=(7, 4.5))
    ax.plot(c, t_half, 'o-', color=color_cycle(1)[0])
    ax.set_xscale('log')
    ax.set_yscale('log')
    apply_style(ax, xlabel='Recombination fraction c',
                ylabel='Generations to halve D', title='Half-life of D')
    return finish_figure(fig, save_path, dpi)
