"""Random genetic drift in a finite population.

Implements the drift walk used in the coursework exercise:
- Gaussian approximation: p' = p + e, e ~ N(0, pq/2N)
- Exact Wright-Fisher binomial sampling of 2N gene copies
- Absorption at loss (p = 0) and fixation (p = 1)
- Theoretical expectations for variance among lines, heterozygosity
  decay and inbreeding (Falconer & Mackay, Ch. 3)
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Literal

DriftMethod = Literal["gaussian", "binomial"]


# ═══════════════════════════════════════════════════════════════════════
# EFFECTIVE SIZE
# ═══════════════════════════════════════════════════════════════════════


def effective_size(n_males: int, n_females: int) -> float:
    """Effective size from unequal sex ratio.

    N_e = 4 N_m N_f / (N_m + N_f)

    Args:
        n_males: Number of breeding males.
        n_females: Number of breeding females.

    Returns:
        Effective population size.
    """
    if n_males < 0 or n_females < 0:
        raise ValueError(
            f"sex counts must be non-negative, got {n_males}, {n_females}"
        )
    total = n_males + n_females
    if total == 0:
        return 0.0
    return 4.0 * n_males * n_females / total


# ═══════════════════════════════════════════════════════════════════════
# SINGLE-GENERATION UPDATES
# ═══════════════════════════════════════════════════════════════════════


def _check_pop_size(pop_size: float) -> None:
    if pop_size < 1:
        raise ValueError(f"pop_size must be >= 1, got {pop_size}")


def gaussian_drift_step(
    p: np.ndarray,
    pop_size: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Advance allele frequencies one generation with a Gaussian step.

    The sampling variance of p in a population of N diploids is pq/2N.
    Lines at 0 or 1 have zero variance, so they stay absorbed.

    Args:
        p: (n_lines,) current allele frequencies.
        pop_size: N, number of diploid individuals (may be an N_e).
        rng: NumPy random Generator.

    Returns:
        (n_lines,) frequencies for the next generation, clipped to [0, 1].
    """
    _check_pop_size(pop_size)
    p = np.asarray(p, dtype=np.float64)
    sd = np.sqrt(p * (1.0 - p) / (2.0 * pop_size))
    step = rng.normal(0.0, 1.0, size=p.shape) * sd
    return np.clip(p + step, 0.0, 1.0)


def binomial_drift_step(
    p: np.ndarray,
    pop_size: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Advance allele frequencies one generation by Wright-Fisher sampling.

    Draws 2N gene copies for each line. A non-integer N (an N_e) is
    rounded to the nearest whole number of gene copies.
    """
    _check_pop_size(pop_size)
    p = np.asarray(p, dtype=np.float64)
    n_copies = max(int(round(2.0 * pop_size)), 1)
    return rng.binomial(n_copies, p) / n_copies


_STEPS = {
    "gaussian": gaussian_drift_step,
    "binomial": binomial_drift_step,
}


# ═══════════════════════════════════════════════════════════════════════
# MULTI-GENERATION SIMULATION
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class DriftResult:
    """Allele frequency trajectories for a set of replicate lines."""
    freqs: np.ndarray  # (n_generations+1, n_lines) float64
    p0: float
    pop_size: float
    method: str

    @property
    def n_generations(self) -> int:
        return self.freqs.shape[0] - 1

    @property
    def n_lines(self) -> int:
        return self.freqs.shape[1]


def simulate_drift(
    p0: float,
    pop_size: float,
    n_generations: int,
    n_lines: int,
    rng: np.random.Generator,
    method: DriftMethod = "gaussian",
) -> DriftResult:
    """Simulate drift in n_lines independent lines of size N.

    Args:
        p0: Initial allele frequency shared by all lines.
        pop_size: N (diploid individuals per line).
        n_generations: Generations to simulate.
        n_lines: Number of replicate lines.
        rng: NumPy random Generator.
        method: 'gaussian' (normal approximation) or 'binomial'.

    Returns:
        DriftResult with generation 0 holding p0 in every line.
    """
    if not 0.0 <= p0 <= 1.0:
        raise ValueError(f"p0 must be in [0, 1], got {p0}")
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")
    if n_lines < 1:
        raise ValueError(f"n_lines must be >= 1, got {n_lines}")
    if method not in _STEPS:
        raise ValueError(
            f"method must be one of {sorted(_STEPS)}, got '{method}'"
        )
    _check_pop_size(pop_size)
    step = _STEPS[method]

    freqs = np.empty((n_generations + 1, n_lines), dtype=np.float64)
    freqs[0] = p0
    for t in range(1, n_generations + 1):
        freqs[t] = step(freqs[t - 1], pop_size, rng)

    return DriftResult(freqs=freqs, p0=p0, pop_size=pop_size, method=method)


# ═══════════════════════════════════════════════════════════════════════
# THEORETICAL EXPECTATIONS
# ═══════════════════════════════════════════════════════════════════════


def expected_inbreeding(pop_size: float, t) -> np.ndarray:
    """F_t = 1 - (1 - 1/2N)^t"""
    t = np.asarray(t, dtype=np.float64)
    return 1.0 - (1.0 - 1.0 / (2.0 * pop_size)) ** t


def expected_heterozygosity(h0: float, pop_size: float, t) -> np.ndarray:
    """H_t = H_0 (1 - 1/2N)^t"""
    return h0 * (1.0 - expected_inbreeding(pop_size, t))


def expected_variance(p0: float, pop_size: float, t) -> np.ndarray:
    """Variance of allele frequency among lines after t generations.

    σ²_p = p0 q0 [1 - (1 - 1/2N)^t]
    """
    return p0 * (1.0 - p0) * expected_inbreeding(pop_size, t)


# ═══════════════════════════════════════════════════════════════════════
# TABLES
# ═══════════════════════════════════════════════════════════════════════


def drift_table(result: DriftResult) -> pd.DataFrame:
    """Trajectories as a table: one row per generation, one column per line."""
    columns = [f"line_{i}" for i in range(result.n_lines)]
    df = pd.DataFrame(result.freqs, columns=columns)
    df.index.name = "generation"
    return df


def drift_summary(result: DriftResult) -> pd.DataFrame:
    """Per-generation summary across lines, next to its expectation.

    Columns: mean_p, var_p, expected_var_p, heterozygosity,
    expected_heterozygosity, fixed, lost (fractions of lines).
    """
    f = result.freqs
    gens = np.arange(result.n_generations + 1)
    h = 2.0 * f * (1.0 - f)
    h0 = 2.0 * result.p0 * (1.0 - result.p0)

    df = pd.DataFrame({
        "mean_p": f.mean(axis=1),
        # Population variance: lines are the whole population of lines
        "var_p": f.var(axis=1),
        "expected_var_p": expected_variance(result.p0, result.pop_size, gens),
        "heterozygosity": h.mean(axis=1),
        "expected_heterozygosity": expected_heterozygosity(
            h0, result.pop_size, gens),
        "fixed": (f >= 1.0).mean(axis=1),
        "lost": (f <= 0.0).mean(axis=1),
    }, index=pd.Index(gens, name="generation"))
    return df
