"""Close-inbreeding and base-change figures."""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import Optional

from matplotlib.figure import Figure
import pandas as pd

from popgen_lab.viz.style import (
    LINE_COLOR,
    NEUTRAL_COLOR,
    SYSTEM_COLORS,
    SYSTEM_LABELS,
    THEORY_COLOR,
    apply_style,
    finish_figure,
    new_figure,
)


def plot_inbreeding_systems(
    table: pd.DataFrame,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """F by generation, one curve per mating system (inbreeding_table)."""
    fig, ax = new_figure()
    gens = table.index.to_numpy()
    for system in table.columns:
        ax.plot(gens, table[system], 'o-', markersize=3,
                color=SYSTEM_COLORS.get(system, NEUTRAL_COLOR),
                label=SYSTEM_LABELS.get(system, system))
    ax.set_ylim(0, 1.02)
    ax.legend(fontsize=10, frameon=False, loc='lower right')
    apply_style(ax, xlabel='Generation', ylabel='Inbreeding coefficient F',
                title='Regular systems of close inbreeding')
    return finish_figure(fig, save_path, dpi)


def plot_pedigree_check(
    comparison: pd.DataFrame,
    system: str = 'full_sib',
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Recurrence F (line) against pedigree coancestry F (markers)."""
    fig, ax = new_figure(figsize=(7, 4.5))
    gens = comparison.index.to_numpy()
    ax.plot(gens, comparison['F_recurrence'], color=THEORY_COLOR, linewidth=2,
            label='Recurrence')
    ax.plot(gens, comparison['F_pedigree'], 'o', color=LINE_COLOR,
            markersize=6, markerfacecolor='none', label='Pedigree coancestry')
    ax.set_ylim(0, 1.02)
    ax.legend(fontsize=10, frameon=False, loc='lower right')
    apply_style(ax, xlabel='Generation', ylabel='F',
                title=f'{SYSTEM_LABELS.get(system, system)}: recurrence vs pedigree')
    return finish_figure(fig, save_path, dpi)


def plot_base_change(
    table: pd.DataFrame,
    f_base: float,
    id_column: str = 'id',
    f_column: str = 'F',
    new_column: str = 'F_new',
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Paired bars: F against the old base and against the new base."""
    fig, ax = new_figure(figsize=(max(7, 0.5 * len(table) + 3), 4.5))
    x = range(len(table))
    width = 0.4
    ax.bar([i - width / 2 for i in x], table[f_column], width,
           color=NEUTRAL_COLOR, label='Old base')
    ax.bar([i + width / 2 for i in x], table[new_column], width,
           color=LINE_COLOR, label='New base')
    ax.axhline(f_base, color=THEORY_COLOR, linestyle='--', linewidth=1.5,
               label=f'F of new base = {f_base:.3f}')
    ax.axhline(0.0, color='black', linewidth=0.5)
    ax.set_xticks(list(x))
    ax.set_xticklabels(table[id_column].astype(str), rotation=45, ha='right')
    ax.legend(fontsize=9, frameon=False)
    apply_style(ax, xlabel='Individual', ylabel='F',
                title='Change of base population')
    return finish_figure(fig, save_path, dpi)


def plot_pedigree_inbreeding(
    by_generation: pd.DataFrame,
    save_path: Optional[str] = None,
    dpi: int = 150,
) -> Figure:
    """Mean pedigree F per generation against 1 - (1 - 1/2Ne)^(t-1).

    Expects columns F_old_base, F_new_base and expected.
    """
    fig, ax = new_figure(figsize=(7, 4.5))
    gens = by_generation.index.to_numpy()
    ax.plot(gens, by_generation['F_old_base'], 'o-', color=NEUTRAL_COLOR,
            label='Pedigree F (founder base)')
    ax.plot(gens, by_generation['F_new_base'], 's-', color=LINE_COLOR,
            label='Rebased F')
    ax.plot(gens, by_generation['expected'], color=THEORY_COLOR, linewidth=2,
            label='1 - (1 - 1/2Ne)^(t-1)')
    ax.legend(fontsize=9, frameon=False, loc='upper left')
    apply_style(ax, xlabel='Generation', ylabel='Mean F',
                title='Pedigree inbreeding in a closed population')
    return finish_figure(fig, save_path, dpi)
