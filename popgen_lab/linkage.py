"""Linkage disequilibrium between two biallelic loci.

Implements:
- Disequilibrium D, normalised D' and r² from haplotype frequencies
- Deterministic decay under random mating: D_t = D_0 (1 - c)^t
- Finite-population decay (recombination then multinomial sampling)
- Sved (1971) drift–recombination expectation E[r²] ≈ 1/(1 + 4Nc)
- χ² test for association in a sample of n haplotypes
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

_EPS = 1e-12


# ═══════════════════════════════════════════════════════════════════════
# HAPLOTYPE FREQUENCIES
# ═══════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class HaplotypeFrequencies:
    """Frequencies of the four haplotypes AB, Ab, aB, ab."""
    x_AB: float
    x_Ab: float
    x_aB: float
    x_ab: float

    def __post_init__(self):
        vals = self.as_array()
        if np.any(vals < -_EPS):
            raise ValueError(f"haplotype frequencies must be >= 0, got {vals}")
        if abs(vals.sum() - 1.0) > 1e-9:
            raise ValueError(
                f"haplotype frequencies must sum to 1, got {vals.sum():.6f}"
            )

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "HaplotypeFrequencies":
        """Build from [AB, Ab, aB, ab]."""
        if len(values) != 4:
            raise ValueError(
                f"need 4 haplotype frequencies (AB, Ab, aB, ab), got {len(values)}"
            )
        return cls(*(float(v) for v in values))

    @classmethod
    def from_allele_freqs(
        cls, p_a: float, p_b: float, d: float = 0.0,
    ) -> "HaplotypeFrequencies":
        """Haplotypes implied by allele frequencies p_A, p_B and a given D."""
        return cls(
            p_a * p_b + d,
            p_a * (1.0 - p_b) - d,
            (1.0 - p_a) * p_b - d,
            (1.0 - p_a) * (1.0 - p_b) + d,
        )

    def as_array(self) -> np.ndarray:
        return np.array(
            [self.x_AB, self.x_Ab, self.x_aB, self.x_ab],
            dtype=np.float64,
        )

    @property
    def p_a(self) -> float:
        """Frequency of allele A."""
        return self.x_AB + self.x_Ab

    @property
    def p_b(self) -> float:
        """Frequency of allele B."""
        return self.x_AB + self.x_aB


# ═══════════════════════════════════════════════════════════════════════
# LD STATISTICS
# ═══════════════════════════════════════════════════════════════════════


def _d_from_array(x: np.ndarray) -> np.ndarray:
    """D for (..., 4) arrays of haplotype frequencies."""
    return x[..., 0] * x[..., 3] - x[..., 1] * x[..., 2]


def _r2_from_array(x: np.ndarray) -> np.ndarray:
    d = _d_from_array(x)
    p_a = x[..., 0] + x[..., 1]
    p_b = x[..., 0] + x[..., 2]
    denom = p_a * (1.0 - p_a) * p_b * (1.0 - p_b)
    with np.errstate(divide='ignore', invalid='ignore'):
        r2 = np.where(denom > _EPS, d * d / np.where(denom > _EPS, denom, 1.0), 0.0)
    return r2


def disequilibrium(h: HaplotypeFrequencies) -> float:
    """D = x_AB x_ab - x_Ab x_aB"""
    return float(_d_from_array(h.as_array()))


def d_max(h: HaplotypeFrequencies) -> float:
    """Largest |D| attainable given the allele frequencies and sign of D."""
    p_a, p_b = h.p_a, h.p_b
    q_a, q_b = 1.0 - p_a, 1.0 - p_b
    if disequilibrium(h) >= 0:
        return min(p_a * q_b, q_a * p_b)
    return min(p_a * p_b, q_a * q_b)


def d_prime(h: HaplotypeFrequencies) -> float:
    """Lewontin's D' = D / D_max. Zero when a locus is monomorphic."""
    dm = d_max(h)
    if dm < _EPS:
        return 0.0
    return disequilibrium(h) / dm


def r_squared(h: HaplotypeFrequencies) -> float:
    """r² = D² / (p_A p_a p_B p_b). Zero when a locus is monomorphic."""
    return float(_r2_from_array(h.as_array()))


def ld_chi_square(h: HaplotypeFrequencies, n: int) -> Tuple[float, float]:
    """χ² test (1 df) for association in a sample of n haplotypes.

    χ² = n r²

    Returns:
        (chi2, p_value)
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    chi2 = n * r_squared(h)
    return chi2, float(sp_stats.chi2.sf(chi2, df=1))


# ═══════════════════════════════════════════════════════════════════════
# DETERMINISTIC DECAY
# ═══════════════════════════════════════════════════════════════════════


def _check_c(c: float) -> None:
    if not 0.0 <= c <= 0.5:
        raise ValueError(f"recombination fraction must be in [0, 0.5], got {c}")


def expected_decay(d0: float, c: float, t) -> np.ndarray:
    """D_t = D_0 (1 - c)^t"""
    _check_c(c)
    t = np.asarray(t, dtype=np.float64)
    return d0 * (1.0 - c) ** t


def half_life(c: float) -> float:
    """Generations for D to halve under recombination fraction c.

    Returns inf for c = 0 (no decay).
    """
    _check_c(c)
    if c == 0.0:
        return float('inf')
    return float(np.log(0.5) / np.log(1.0 - c))


def _recombine_array(x: np.ndarray, c: float) -> np.ndarray:
    d = _d_from_array(x)[..., np.newaxis]
    sign = np.array([-1.0, 1.0, 1.0, -1.0])
    return x + sign * c * d


def recombine(h: HaplotypeFrequencies, c: float) -> HaplotypeFrequencies:
    """Haplotype frequencies after one generation of random mating.

    x_AB' = x_AB - cD, x_Ab' = x_Ab + cD, x_aB' = x_aB + cD, x_ab' = x_ab - cD
    """
    _check_c(c)
    x = np.clip(_recombine_array(h.as_array(), c), 0.0, 1.0)
    return HaplotypeFrequencies.from_sequence(x / x.sum())


# ═══════════════════════════════════════════════════════════════════════
# FINITE-POPULATION DECAY
# ═══════════════════════════════════════════════════════════════════════


@dataclass
class LDResult:
    """LD trajectories across replicate finite populations."""
    d: np.ndarray   # (n_generations+1, n_replicates)
    r2: np.ndarray  # (n_generations+1, n_replicates)
    d0: float
    recombination: float
    pop_size: int

    @property
    def n_generations(self) -> int:
        return self.d.shape[0] - 1

    @property
    def n_replicates(self) -> int:
        return self.d.shape[1]


def simulate_ld_decay(
    h0: HaplotypeFrequencies,
    recombination: float,
    pop_size: int,
    n_generations: int,
    rngs: Sequence[np.random.Generator],
) -> LDResult:
    """Decay of D in replicate populations of N diploids.

    Each generation: random union of gametes with recombination fraction
    c, then 2N haplotypes drawn multinomially for the next generation.

    Args:
        h0: Starting haplotype frequencies.
        recombination: c in [0, 0.5].
        pop_size: N (diploid individuals).
        n_generations: Generations to simulate.
        rngs: One Generator per replicate.

    Returns:
        LDResult with D and r² for every generation and replicate.
    """
    _check_c(recombination)
    if pop_size < 1:
        raise ValueError(f"pop_size must be >= 1, got {pop_size}")
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")
    if len(rngs) == 0:
        raise ValueError("need at least one replicate RNG")

    n_copies = 2 * pop_size
    n_rep = len(rngs)
    x = np.tile(h0.as_array(), (n_rep, 1))
    traj = np.empty((n_generations + 1, n_rep, 4), dtype=np.float64)
    traj[0] = x

    for t in range(1, n_generations + 1):
        expected = np.clip(_recombine_array(x, recombination), 0.0, None)
        expected /= expected.sum(axis=1, keepdims=True)
        for i, rng in enumerate(rngs):
            x[i] = rng.multinomial(n_copies, expected[i]) / n_copies
        traj[t] = x

    return LDResult(
        d=_d_from_array(traj),
        r2=_r2_from_array(traj),
        d0=disequilibrium(h0),
        recombination=recombination,
        pop_size=pop_size,
    )


def sved_r2(pop_size: float, c: float) -> float:
    """Equilibrium E[r²] ≈ 1 / (1 + 4Nc) under drift and recombination."""
    _check_c(c)
    return 1.0 / (1.0 + 4.0 * pop_size * c)


def ld_table(result: LDResult) -> pd.DataFrame:
    """Long-format table: generation, replicate, D, r2, expected_D."""
    gens = np.arange(result.n_generations + 1)
    g, rep = np.meshgrid(gens, np.arange(result.n_replicates), indexing='ij')
    df = pd.DataFrame({
        "generation": g.ravel(),
        "replicate": rep.ravel(),
        "D": result.d.ravel(),
        "r2": result.r2.ravel(),
    })
    df["expected_D"] = expected_decay(
        result.d0, result.recombination, df["generation"].to_numpy())
    df["recombination"] = result.recombination
    return df
