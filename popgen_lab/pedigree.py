"""Synthetic pedigrees and pedigree coancestry.

A pedigree is a DataFrame with columns:
  - id:         unique integer identifier
  - sire, dam:  parent ids (nullable Int64; <NA> = unknown / founder)
  - sex:        'M', 'F', or 'H' (hermaphrodite, selfing lines)
  - generation: integer generation label

Rows are ordered so that parents precede their offspring.

Coancestry uses the tabular method for the numerator relationship
matrix A (Henderson 1976):
  A_ij = ½ (A_j,sire(i) + A_j,dam(i))   for j older than i
  A_ii = 1 + ½ A_sire(i),dam(i)
Kinship (coefficient of coancestry) is A/2 and F_i = A_ii - 1.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from popgen_lab.drift import expected_inbreeding

PEDIGREE_COLUMNS = ["id", "sire", "dam", "sex", "generation"]


def _make_pedigree(rows: List[tuple]) -> pd.DataFrame:
    ped = pd.DataFrame(rows, columns=PEDIGREE_COLUMNS)
    ped["id"] = ped["id"].astype("int64")
    ped["sire"] = ped["sire"].astype("Int64")
    ped["dam"] = ped["dam"].astype("Int64")
    ped["generation"] = ped["generation"].astype("int64")
    return ped


# ═══════════════════════════════════════════════════════════════════════
# PEDIGREE CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════


def mating_system_pedigree(system: str, n_generations: int) -> pd.DataFrame:
    """Pedigree of a single line under a regular mating system.

    full_sib: two unrelated founders (generation -1) are the parents of
        the first brother–sister pair (generation 0). Each later
        generation is one brother and one sister from the previous pair.
    selfing: one non-inbred founder (generation 0); each later
        generation is a single selfed offspring of the previous one.

    Args:
        system: 'full_sib' or 'selfing'.
        n_generations: Last generation to build.

    Returns:
        Pedigree DataFrame.
    """
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")

    rows = []
    if system == "full_sib":
        rows.append((1, None, None, "M", -1))
        rows.append((2, None, None, "F", -1))
        sire, dam = 1, 2
        next_id = 3
        for g in range(n_generations + 1):
            brother, sister = next_id, next_id + 1
            rows.append((brother, sire, dam, "M", g))
            rows.append((sister, sire, dam, "F", g))
            sire, dam = brother, sister
            next_id += 2
    elif system == "selfing":
        rows.append((1, None, None, "H", 0))
        for g in range(1, n_generations + 1):
            rows.append((g + 1, g, g, "H", g))
    else:
        raise ValueError(
            f"no pedigree builder for mating system '{system}'; "
            f"expected 'full_sib' or 'selfing'"
        )
    return _make_pedigree(rows)


def random_mating_pedigree(
    n_males: int,
    n_females: int,
    n_generations: int,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """Closed population with random sires and dams every generation.

    Generation 0 holds n_males + n_females unrelated founders. Each of
    generations 1..n_generations has the same sex counts; every
    offspring draws its sire and dam uniformly from the previous
    generation (so full and half sibs arise by chance).

    Args:
        n_males: Males per generation.
        n_females: Females per generation.
        n_generations: Generations after the founders.
        rng: NumPy random Generator.

    Returns:
        Pedigree DataFrame with (n_generations+1)(n_males+n_females) rows.
    """
    if n_males < 1 or n_females < 1:
        raise ValueError(
            f"need at least one male and one female, got {n_males}, {n_females}"
        )
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")

    rows = []
    next_id = 1
    sexes = ["M"] * n_males + ["F"] * n_females

    males, females = [], []
    for sex in sexes:
        rows.append((next_id, None, None, sex, 0))
        (males if sex == "M" else females).append(next_id)
        next_id += 1

    for g in range(1, n_generations + 1):
        n_off = len(sexes)
        sire_idx = rng.integers(0, len(males), size=n_off)
        dam_idx = rng.integers(0, len(females), size=n_off)
        new_males, new_females = [], []
        for k, sex in enumerate(sexes):
            rows.append((next_id, males[sire_idx[k]], females[dam_idx[k]], sex, g))
            (new_males if sex == "M" else new_females).append(next_id)
            next_id += 1
        males, females = new_males, new_females

    return _make_pedigree(rows)


# ═══════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════


def validate_pedigree(ped: pd.DataFrame) -> None:
    """Check a pedigree is usable by the tabular method.

    Raises:
        ValueError: On missing columns, duplicate ids, unknown parents,
            or a parent listed after its offspring.
    """
    missing = [c for c in ("id", "sire", "dam") if c not in ped.columns]
    if missing:
        raise ValueError(f"pedigree is missing columns {missing}")
    if ped["id"].duplicated().any():
        dups = ped.loc[ped["id"].duplicated(), "id"].tolist()
        raise ValueError(f"duplicate ids in pedigree: {dups}")

    seen = set()
    for ind, sire, dam in ped[["id", "sire", "dam"]].itertuples(index=False):
        for role, parent in (("sire", sire), ("dam", dam)):
            if pd.isna(parent):
                continue
            if parent not in seen:
                raise ValueError(
                    f"{role} {parent} of individual {ind} is unknown or "
                    f"listed after its offspring"
                )
        seen.add(ind)


# ═══════════════════════════════════════════════════════════════════════
# RELATIONSHIP, KINSHIP AND INBREEDING
# ═══════════════════════════════════════════════════════════════════════


def relationship_matrix(ped: pd.DataFrame) -> np.ndarray:
    """Numerator relationship matrix A by the tabular method.

    Args:
        ped: Pedigree with parents before offspring.

    Returns:
        (n, n) float64 symmetric matrix in pedigree row order.
    """
    validate_pedigree(ped)
    n = len(ped)
    pos = {ind: k for k, ind in enumerate(ped["id"])}
    A = np.zeros((n, n), dtype=np.float64)

    for i, (sire, dam) in enumerate(ped[["sire", "dam"]].itertuples(index=False)):
        s = None if pd.isna(sire) else pos[sire]
        d = None if pd.isna(dam) else pos[dam]

        col = np.zeros(i, dtype=np.float64)
        if s is not None:
            col += 0.5 * A[:i, s]
        if d is not None:
            col += 0.5 * A[:i, d]
        A[:i, i] = col
        A[i, :i] = col

        if s is not None and d is not None:
            A[i, i] = 1.0 + 0.5 * A[s, d]
        else:
            A[i, i] = 1.0

    return A


def kinship_matrix(ped: pd.DataFrame) -> pd.DataFrame:
    """Coefficients of coancestry f_ij = A_ij / 2, labelled by id."""
    A = relationship_matrix(ped)
    ids = ped["id"].to_numpy()
    return pd.DataFrame(A / 2.0, index=ids, columns=ids)


def inbreeding_coefficients(
    ped: pd.DataFrame,
    kinship: Optional[pd.DataFrame] = None,
) -> pd.Series:
    """F_i = A_ii - 1 for every individual, indexed by id.

    A precomputed kinship matrix of ped may be passed to skip rebuilding A
    (F_i = 2 f_ii - 1).
    """
    if kinship is None:
        diag = np.diag(relationship_matrix(ped))
    else:
        ids = ped["id"].to_numpy()
        diag = 2.0 * np.diag(kinship.loc[ids, ids].to_numpy())
    return pd.Series(diag - 1.0, index=ped["id"].to_numpy(), name="F")


def mean_inbreeding_by_generation(
    ped: pd.DataFrame,
    kinship: Optional[pd.DataFrame] = None,
) -> pd.Series:
    """Mean F per generation label."""
    f = inbreeding_coefficients(ped, kinship)
    by_gen = pd.Series(f.to_numpy(), index=ped["generation"].to_numpy())
    out = by_gen.groupby(level=0).mean()
    out.index.name = "generation"
    out.name = "F"
    return out


def mean_coancestry(
    ped: pd.DataFrame,
    ids: Iterable[int],
    kinship: Optional[pd.DataFrame] = None,
) -> float:
    """Mean coancestry among distinct pairs drawn from ids.

    kinship, when given, is the precomputed kinship matrix of ped.

    Raises:
        ValueError: If fewer than two ids are given or an id is unknown.
    """
    ids = list(ids)
    if len(ids) < 2:
        raise ValueError("mean coancestry needs at least two individuals")
    K = kinship_matrix(ped) if kinship is None else kinship
    unknown = [i for i in ids if i not in K.index]
    if unknown:
        raise ValueError(f"ids not in pedigree: {unknown}")
    sub = K.loc[ids, ids].to_numpy()
    mask = ~np.eye(len(ids), dtype=bool)
    return float(sub[mask].mean())


def generation_ids(ped: pd.DataFrame, generation: int) -> Sequence[int]:
    """Ids of every individual carrying a generation label."""
    return ped.loc[ped["generation"] == generation, "id"].tolist()


def expected_pedigree_inbreeding(ne: float, generations) -> np.ndarray:
    """Expected mean F by generation in a pedigree founded at generation 0.

    The founders are unrelated and non-inbred, so their offspring
    (generation 1) have F = 0 and the ideal-population curve starts one
    generation late:

        F_t = 1 - (1 - 1/2Ne)^(t-1)   for t >= 1
    """
    t = np.asarray(generations, dtype=np.float64)
    return expected_inbreeding(ne, np.maximum(t - 1.0, 0.0))
