"""Configuration system for popgen-lab.

Hierarchical YAML configuration with deep-merge support:
  default.yaml → exercise override → command-line overrides

One dataclass section per exercise. Sections map 1:1 to the YAML
top-level keys; unknown keys are ignored so older config files keep
loading.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from popgen_lab.close_inbreeding import PEDIGREE_SYSTEMS, SYSTEMS

# Repository root: configs/ and data/ live here
PROJECT_ROOT = Path(__file__).resolve().parents[1]


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Run-wide control."""
    seed: int = 42
    n_replicates: int = 10      # RNG replicate streams to pre-spawn


@dataclass
class DriftSection:
    """Random genetic drift exercise."""
    pop_size: int = 50          # N (diploid individuals)
    n_males: Optional[int] = None    # if both set, N is replaced by Ne
    n_females: Optional[int] = None
    p0: float = 0.5             # initial allele frequency
    n_lines: int = 20           # replicate lines
    n_generations: int = 50
    method: str = "gaussian"    # 'gaussian' or 'binomial'


@dataclass
class LinkageSection:
    """Linkage disequilibrium decay exercise."""
    # Haplotype frequencies in order AB, Ab, aB, ab
    haplotypes: List[float] = field(
        default_factory=lambda: [0.5, 0.0, 0.0, 0.5]
    )
    recombination: List[float] = field(
        default_factory=lambda: [0.5, 0.1, 0.01]
    )
    pop_size: int = 200
    n_generations: int = 30
    n_replicates: int = 5


@dataclass
class CloseInbreedingSection:
    """Systems of close inbreeding exercise."""
    systems: List[str] = field(
        default_factory=lambda: ["selfing", "full_sib", "half_sib",
                                 "double_first_cousin"]
    )
    n_generations: int = 20
    f_init: float = 0.0
    pedigree_system: str = "full_sib"   # recurrence checked on a pedigree


@dataclass
class BaseChangeSection:
    """Change of base population exercise."""
    table_path: Optional[str] = "data/inbreeding_example.csv"
    id_column: str = "id"
    f_column: str = "F"
    # F of the new base relative to the old one. If None it is derived
    # from drift in an ideal population of size base_pop_size.
    f_base: Optional[float] = None
    base_pop_size: int = 20
    base_generations: int = 10
    # Pedigree part of the exercise
    n_males: int = 5
    n_females: int = 10
    n_generations: int = 8
    base_generation: int = 4


@dataclass
class OutputSection:
    """Output control."""
    directory: str = "results/"
    dpi: int = 150
    save_tables: bool = True
    save_figures: bool = True


@dataclass
class LabConfig:
    """Complete configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    drift: DriftSection = field(default_factory=DriftSection)
    linkage: LinkageSection = field(default_factory=LinkageSection)
    close_inbreeding: CloseInbreedingSection = field(
        default_factory=CloseInbreedingSection
    )
    base_change: BaseChangeSection = field(default_factory=BaseChangeSection)
    output: OutputSection = field(default_factory=OutputSection)


_SECTION_MAP = {
    'simulation': SimulationSection,
    'drift': DriftSection,
    'linkage': LinkageSection,
    'close_inbreeding': CloseInbreedingSection,
    'base_change': BaseChangeSection,
    'output': OutputSection,
}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Args:
        base: Base dictionary (modified in place).
        override: Override dictionary.

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> LabConfig:
    """Convert a merged YAML dict to a LabConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return LabConfig(**sections)


def validate_config(config: LabConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure."""
    if config.simulation.seed < 0:
        raise ValueError("simulation.seed must be non-negative")
    if config.simulation.n_replicates < 1:
        raise ValueError("simulation.n_replicates must be >= 1")

    # Drift
    d = config.drift
    if d.pop_size < 1:
        raise ValueError(f"drift.pop_size must be >= 1, got {d.pop_size}")
    if not 0.0 <= d.p0 <= 1.0:
        raise ValueError(f"drift.p0 must be in [0, 1], got {d.p0}")
    if d.n_lines < 1:
        raise ValueError(f"drift.n_lines must be >= 1, got {d.n_lines}")
    if d.n_generations < 0:
        raise ValueError(
            f"drift.n_generations must be >= 0, got {d.n_generations}"
        )
    valid_methods = {"gaussian", "binomial"}
    if d.method not in valid_methods:
        raise ValueError(
            f"drift.method must be one of {valid_methods}, got '{d.method}'"
        )
    if (d.n_males is None) != (d.n_females is None):
        raise ValueError(
            "drift.n_males and drift.n_females must be given together"
        )
    if d.n_males is not None and (d.n_males < 1 or d.n_females < 1):
        raise ValueError(
            f"drift sex counts must be >= 1, got "
            f"n_males={d.n_males}, n_females={d.n_females}"
        )

    # Linkage
    ld = config.linkage
    if len(ld.haplotypes) != 4:
        raise ValueError(
            f"linkage.haplotypes must have 4 elements (AB, Ab, aB, ab), "
            f"got {len(ld.haplotypes)}"
        )
    if any(x < 0 for x in ld.haplotypes) or abs(sum(ld.haplotypes) - 1.0) > 1e-9:
        raise ValueError(
            f"linkage.haplotypes must be non-negative and sum to 1, "
            f"got {ld.haplotypes}"
        )
    for c in ld.recombination:
        if not 0.0 <= c <= 0.5:
            raise ValueError(
                f"linkage.recombination values must be in [0, 0.5], got {c}"
            )
    if ld.pop_size < 1:
        raise ValueError(f"linkage.pop_size must be >= 1, got {ld.pop_size}")
    if ld.n_replicates < 1:
        raise ValueError(
            f"linkage.n_replicates must be >= 1, got {ld.n_replicates}"
        )
    if ld.n_replicates > config.simulation.n_replicates:
        raise ValueError(
            f"linkage.n_replicates ({ld.n_replicates}) exceeds "
            f"simulation.n_replicates ({config.simulation.n_replicates})"
        )

    # Close inbreeding
    ci = config.close_inbreeding
    unknown = [s for s in ci.systems if s not in SYSTEMS]
    if unknown:
        raise ValueError(
            f"close_inbreeding.systems must be drawn from {sorted(SYSTEMS)}, "
            f"got unknown {unknown}"
        )
    if ci.pedigree_system not in PEDIGREE_SYSTEMS:
        raise ValueError(
            f"close_inbreeding.pedigree_system must be one of "
            f"{sorted(PEDIGREE_SYSTEMS)}, got '{ci.pedigree_system}'"
        )
    if not 0.0 <= ci.f_init < 1.0:
        raise ValueError(
            f"close_inbreeding.f_init must be in [0, 1), got {ci.f_init}"
        )

    # Base change
    bc = config.base_change
    if bc.f_base is not None and not 0.0 <= bc.f_base < 1.0:
        raise ValueError(
            f"base_change.f_base must be in [0, 1), got {bc.f_base}"
        )
    if bc.n_males < 1 or bc.n_females < 1:
        raise ValueError(
            f"base_change sex counts must be >= 1, got "
            f"n_males={bc.n_males}, n_females={bc.n_females}"
        )
    if bc.base_pop_size < 1:
        raise ValueError(
            f"base_change.base_pop_size must be >= 1, got {bc.base_pop_size}"
        )
    if not 0 <= bc.base_generation <= bc.n_generations:
        raise ValueError(
            f"base_change.base_generation ({bc.base_generation}) must be in "
            f"[0, n_generations={bc.n_generations}]"
        )

    if config.output.dpi <= 0:
        raise ValueError("output.dpi must be positive")


def load_config(
    base_path: Union[str, Path],
    override_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> LabConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → override file → overrides dict.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        override_path: Optional exercise override YAML.
        overrides: Optional dict of overrides (e.g. from the command line).

    Returns:
        Validated LabConfig.

    Raises:
        FileNotFoundError: If base_path or override_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if override_path is not None:
        override_path = Path(override_path)
        if not override_path.exists():
            raise FileNotFoundError(f"Override file not found: {override_path}")
        with open(override_path) as f:
            deep_merge(config_dict, yaml.safe_load(f) or {})

    if overrides is not None:
        deep_merge(config_dict, overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> LabConfig:
    """Return a LabConfig with all default values."""
    config = LabConfig()
    validate_config(config)
    return config


def config_to_dict(config: LabConfig) -> Dict:
    """Plain-dict view of a config (for YAML dumps and run metadata)."""
    return dataclasses.asdict(config)
