"""Regular systems of close inbreeding.

Inbreeding recurrences from Falconer & Mackay (Table 5.1), written on
the panmictic index P = 1 - F:

    selfing              P_t = ½ P_{t-1}
    full sibs            P_t = ½ P_{t-1} + ¼ P_{t-2}
    half sibs            P_t = ¾ P_{t-1} + ⅛ P_{t-2}
    double first cousins P_t = ½ P_{t-1} + ¼ P_{t-2} + ⅛ P_{t-3}

which is the same as, e.g. for full sibs, F_t = ¼(1 + 2F_{t-1} + F_{t-2}).

Generation 0 is the first generation mated under the system; it and
every earlier generation carry F = f_init.
"""

import numpy as np
import pandas as pd
from typing import Dict, Sequence, Tuple

from popgen_lab.pedigree import mating_system_pedigree, mean_inbreeding_by_generation

# Coefficients on P_{t-1}, P_{t-2}, ...
SYSTEMS: Dict[str, Tuple[float, ...]] = {
    "selfing": (0.5,),
    "full_sib": (0.5, 0.25),
    "half_sib": (0.75, 0.125),
    "double_first_cousin": (0.5, 0.25, 0.125),
}

# Systems with a pedigree builder in popgen_lab.pedigree
PEDIGREE_SYSTEMS = ("selfing", "full_sib")


def _coefficients(system: str) -> Tuple[float, ...]:
    try:
        return SYSTEMS[system]
    except KeyError:
        raise ValueError(
            f"unknown mating system '{system}'; "
            f"expected one of {sorted(SYSTEMS)}"
        ) from None


def panmictic_index(f):
    """P = 1 - F"""
    return 1.0 - np.asarray(f, dtype=np.float64)


def inbreeding_series(
    system: str,
    n_generations: int,
    f_init: float = 0.0,
) -> np.ndarray:
    """Inbreeding coefficient F_0..F_n under a regular mating system.

    Args:
        system: One of SYSTEMS.
        n_generations: Last generation to compute.
        f_init: F of generation 0 and its ancestors.

    Returns:
        (n_generations+1,) float64 array.
    """
    coeffs = _coefficients(system)
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")
    if not 0.0 <= f_init < 1.0:
        raise ValueError(f"f_init must be in [0, 1), got {f_init}")

    lag = len(coeffs)
    # Leading lag-1 entries are the ancestors of generation 0
    p = np.empty(n_generations + lag, dtype=np.float64)
    p[:lag] = 1.0 - f_init
    for t in range(lag, len(p)):
        p[t] = sum(a * p[t - k - 1] for k, a in enumerate(coeffs))
    return 1.0 - p[lag - 1:]


def inbreeding_table(
    systems: Sequence[str],
    n_generations: int,
    f_init: float = 0.0,
) -> pd.DataFrame:
    """F by generation for several systems, one column per system."""
    df = pd.DataFrame({
        s: inbreeding_series(s, n_generations, f_init) for s in systems
    })
    df.index.name = "generation"
    return df


def observed_rate(series) -> np.ndarray:
    """Per-generation rate of inbreeding ΔF_t = (F_t - F_{t-1}) / (1 - F_{t-1}).

    Returns an array one shorter than the input.
    """
    f = np.asarray(series, dtype=np.float64)
    prev = f[:-1]
    with np.errstate(divide='ignore', invalid='ignore'):
        rate = np.where(prev < 1.0, (f[1:] - prev) / (1.0 - prev), 0.0)
    return rate


def asymptotic_rate(system: str) -> float:
    """Limiting rate of inbreeding ΔF = 1 - λ.

    λ is the dominant root of λ^k - a_1 λ^{k-1} - ... - a_k = 0,
    the ratio P_t / P_{t-1} the recurrence settles to.
    """
    coeffs = _coefficients(system)
    poly = np.concatenate(([1.0], -np.asarray(coeffs)))
    roots = np.roots(poly)
    lam = float(np.max(roots[np.isclose(roots.imag, 0.0)].real))
    return 1.0 - lam


def compare_with_pedigree(
    system: str,
    n_generations: int,
) -> pd.DataFrame:
    """Recurrence F next to the coancestry-based F of a synthetic pedigree.

    Returns:
        DataFrame indexed by generation with columns F_recurrence,
        F_pedigree and difference.
    """
    if system not in PEDIGREE_SYSTEMS:
        raise ValueError(
            f"no pedigree builder for '{system}'; "
            f"expected one of {PEDIGREE_SYSTEMS}"
        )
    ped = mating_system_pedigree(system, n_generations)
    f_ped = mean_inbreeding_by_generation(ped)
    f_ped = f_ped[f_ped.index >= 0]

    df = pd.DataFrame({
        "F_recurrence": inbreeding_series(system, n_generations),
        "F_pedigree": f_ped.to_numpy(),
    })
    df.index.name = "generation"
    df["difference"] = df["F_pedigree"] - df["F_recurrence"]
    return df
