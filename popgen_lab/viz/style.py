"""Shared styling for popgen-lab figures.

Provides consistent colors and an axes-styling helper so every
exercise plot has the same look.
"""

import matplotlib.pyplot as plt
import numpy as np

# ═══════════════════════════════════════════════════════════════════════
# COLOR PALETTE
# ═══════════════════════════════════════════════════════════════════════

THEORY_COLOR = '#E91E63'
LINE_COLOR = '#2196F3'
NEUTRAL_COLOR = '#9E9E9E'

ACCENT_COLORS = [
    '#2196F3',  # blue
    '#FF9800',  # orange
    '#4CAF50',  # green
    '#673AB7',  # purple
    '#E91E63',  # pink
    '#009688',  # teal
]

SYSTEM_COLORS = {
    'selfing': '#E91E63',
    'full_sib': '#2196F3',
    'half_sib': '#FF9800',
    'double_first_cousin': '#4CAF50',
}

SYSTEM_LABELS = {
    'selfing': 'Selfing',
    'full_sib': 'Full sibs',
    'half_sib': 'Half sibs',
    'double_first_cousin': 'Double first cousins',
}


# ═══════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════

def apply_style(ax, xlabel='', ylabel='', title=''):
    """Apply consistent styling to an axes."""
    ax.set_xlabel(xlabel, fontsize=11)
    ax.set_ylabel(ylabel, fontsize=11)
    if title:
        ax.set_title(title, fontsize=13, fontweight='bold')
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    ax.tick_params(labelsize=10)


def new_figure(nrows=1, ncols=1, figsize=None, **kwargs):
    """Create a Figure + Axes. Returns (fig, ax); ax may be an ndarray."""
    if figsize is None:
        figsize = (8, 5) if (nrows == 1 and ncols == 1) else (6 * ncols, 4.5 * nrows)
    fig, axes = plt.subplots(nrows, ncols, figsize=figsize, **kwargs)
    return fig, axes


def finish_figure(fig, save_path=None, dpi=150):
    """Tight layout, then save a PNG when save_path is given."""
    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=dpi, bbox_inches='tight')
    return fig


def color_cycle(n):
    """n colors drawn cyclically from ACCENT_COLORS."""
    return [ACCENT_COLORS[i % len(ACCENT_COLORS)] for i in range(n)]


def generation_axis(n_generations):
    """0..n_generations as a float array for plotting."""
    return np.arange(n_generations + 1, dtype=np.float64)
