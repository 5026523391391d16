"""Change of base population for inbreeding coefficients.

An inbreeding coefficient is only defined relative to a base
population. Panmictic indices multiply across successive bases:

    1 - F_old = (1 - F_new)(1 - F_base)

so F measured against an old base can be re-expressed against a new
base whose own inbreeding (relative to the old) is F_base:

    F_new = (F_old - F_base) / (1 - F_base)
"""

import warnings
from pathlib import Path
from typing import Iterable, Union

import numpy as np
import pandas as pd

from popgen_lab.drift import expected_inbreeding

_TABLE_SUFFIXES = (".csv", ".xlsx", ".xls")


def _check_f_base(f_base: float) -> None:
    if not 0.0 <= f_base < 1.0:
        raise ValueError(f"f_base must be in [0, 1), got {f_base}")


def rebase_inbreeding(f_old, f_base: float):
    """Express F relative to a new base with inbreeding f_base.

    Values below f_base come out negative (less inbred than the new
    base); they are returned unchanged with a UserWarning.

    Args:
        f_old: Scalar or array of F relative to the old base.
        f_base: F of the new base relative to the old base.

    Returns:
        F relative to the new base (float for scalar input).
    """
    _check_f_base(f_base)
    f_old_arr = np.asarray(f_old, dtype=np.float64)
    f_new = (f_old_arr - f_base) / (1.0 - f_base)
    if np.any(f_new < 0.0):
        warnings.warn(
            f"{int(np.sum(f_new < 0.0))} value(s) are less inbred than the "
            f"new base (F_base={f_base:.4f}) and rebase to negative F",
            UserWarning,
            stacklevel=2,
        )
    if f_new.ndim == 0:
        return float(f_new)
    return f_new


def to_old_base(f_new, f_base: float):
    """Inverse of rebase_inbreeding: F_old = F_base + (1 - F_base) F_new."""
    _check_f_base(f_base)
    f_old = f_base + (1.0 - f_base) * np.asarray(f_new, dtype=np.float64)
    if f_old.ndim == 0:
        return float(f_old)
    return f_old


def combine_inbreeding(*fs: float) -> float:
    """Total F over successive bases: 1 - Π(1 - F_i)."""
    for f in fs:
        if not 0.0 <= f <= 1.0:
            raise ValueError(f"inbreeding coefficients must be in [0, 1], got {f}")
    return float(1.0 - np.prod([1.0 - f for f in fs]))


def drift_base_inbreeding(pop_size: float, n_generations: int) -> float:
    """F accumulated since the old base in an ideal population of size N."""
    if pop_size < 1:
        raise ValueError(f"pop_size must be >= 1, got {pop_size}")
    if n_generations < 0:
        raise ValueError(f"n_generations must be >= 0, got {n_generations}")
    return float(expected_inbreeding(pop_size, n_generations))


def rebase_kinship(kinship: pd.DataFrame, base_ids: Iterable) -> pd.DataFrame:
    """Rebase a kinship matrix to the mean coancestry among base_ids.

    f'_ij = (f_ij - f̄_base) / (1 - f̄_base)

    The base individuals themselves are treated as unrelated members of
    the new base, so their mean pairwise coancestry maps to zero.
    """
    base_ids = list(base_ids)
    if len(base_ids) < 2:
        raise ValueError("rebasing kinship needs at least two base individuals")
    sub = kinship.loc[base_ids, base_ids].to_numpy()
    mask = ~np.eye(len(base_ids), dtype=bool)
    f_bar = float(sub[mask].mean())
    _check_f_base(f_bar)
    return (kinship - f_bar) / (1.0 - f_bar)


# ═══════════════════════════════════════════════════════════════════════
# SPREADSHEET INPUT
# ═══════════════════════════════════════════════════════════════════════


def read_inbreeding_table(
    path: Union[str, Path],
    id_column: str = "id",
    f_column: str = "F",
    sheet_name: Union[str, int] = 0,
) -> pd.DataFrame:
    """Read individual inbreeding coefficients from a spreadsheet.

    Args:
        path: .csv, .xlsx or .xls file.
        id_column: Column holding individual identifiers.
        f_column: Column holding F relative to the old base.
        sheet_name: Worksheet for Excel files (name or position; one sheet).

    Returns:
        DataFrame with at least id_column and f_column, rows with a
        missing F dropped (with a UserWarning).

    Raises:
        FileNotFoundError: If path doesn't exist.
        ValueError: On an unsupported extension, missing columns, F
            outside [0, 1], or a sheet_name that is not a single sheet.
    """
    # None or a list would make read_excel return a dict of sheets
    if not isinstance(sheet_name, (str, int)):
        raise ValueError(
            f"sheet_name must name a single worksheet, got {sheet_name!r}"
        )
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Inbreeding table not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in _TABLE_SUFFIXES:
        raise ValueError(
            f"unsupported table format '{suffix}'; expected one of {_TABLE_SUFFIXES}"
        )

    if suffix == ".csv":
        table = pd.read_csv(path)
    else:
        table = pd.read_excel(path, sheet_name=sheet_name)

    missing = [c for c in (id_column, f_column) if c not in table.columns]
    if missing:
        raise ValueError(
            f"{path.name} is missing columns {missing}; "
            f"found {list(table.columns)}"
        )

    table[f_column] = pd.to_numeric(table[f_column], errors="coerce")
    n_missing = int(table[f_column].isna().sum())
    if n_missing:
        warnings.warn(
            f"{path.name}: dropping {n_missing} row(s) without a numeric {f_column}",
            UserWarning,
            stacklevel=2,
        )
        table = table.dropna(subset=[f_column]).reset_index(drop=True)

    bad = table[(table[f_column] < 0.0) | (table[f_column] > 1.0)]
    if len(bad):
        raise ValueError(
            f"{path.name}: {f_column} must be in [0, 1]; offending ids "
            f"{bad[id_column].tolist()}"
        )
    return table


def rebase_table(
    table: pd.DataFrame,
    f_base: float,
    f_column: str = "F",
    new_column: str = "F_new",
) -> pd.DataFrame:
    """Copy of table with F re-expressed against the new base."""
    out = table.copy()
    out[new_column] = rebase_inbreeding(out[f_column].to_numpy(), f_base)
    return out
