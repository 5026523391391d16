"""The four coursework exercises, end to end.

Each ``run_*`` function takes a LabConfig, runs its simulation, builds
the tables and figures, and (when ``output_dir`` is given) writes them
as CSV and PNG together with a JSON metadata sidecar. The scripts in
``scripts/`` are thin command-line wrappers around these.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.figure import Figure

from popgen_lab.base_change import (
    drift_base_inbreeding,
    read_inbreeding_table,
    rebase_inbreeding,
    rebase_table,
)
from popgen_lab.close_inbreeding import (
    asymptotic_rate,
    compare_with_pedigree,
    inbreeding_table,
    observed_rate,
)
from popgen_lab.config import PROJECT_ROOT, LabConfig, config_to_dict
from popgen_lab.drift import (
    drift_summary,
    drift_table,
    effective_size,
    simulate_drift,
)
from popgen_lab.linkage import (
    HaplotypeFrequencies,
    half_life,
    ld_table,
    simulate_ld_decay,
    sved_r2,
)
from popgen_lab.pedigree import (
    expected_pedigree_inbreeding,
    generation_ids,
    kinship_matrix,
    mean_coancestry,
    mean_inbreeding_by_generation,
    random_mating_pedigree,
)
from popgen_lab.rng import create_rng_hierarchy, get_replicate_rng
from popgen_lab.utils import write_run_metadata
from popgen_lab.viz.drift import (
    plot_drift_summary,
    plot_drift_trajectories,
    plot_final_distribution,
)
from popgen_lab.viz.inbreeding import (
    plot_base_change,
    plot_inbreeding_systems,
    plot_pedigree_check,
    plot_pedigree_inbreeding,
)
from popgen_lab.viz.linkage import plot_half_lives, plot_ld_decay

PathLike = Union[str, Path]


@dataclass
class ExerciseOutput:
    """Tables and figures produced by one exercise."""
    name: str
    tables: Dict[str, pd.DataFrame] = field(default_factory=dict)
    figures: Dict[str, Figure] = field(default_factory=dict)
    notes: Dict[str, float] = field(default_factory=dict)

    def save(self, output_dir: PathLike, config: LabConfig) -> Path:
        """Write tables (CSV), figures (PNG) and metadata under output_dir/name."""
        out = Path(output_dir) / self.name
        out.mkdir(parents=True, exist_ok=True)
        if config.output.save_tables:
            for key, df in self.tables.items():
                df.to_csv(out / f"{key}.csv")
        if config.output.save_figures:
            for key, fig in self.figures.items():
                fig.savefig(out / f"{key}.png", dpi=config.output.dpi,
                            bbox_inches='tight')
        write_run_metadata(
            out / "metadata.json",
            exercise=self.name,
            config_dict=config_to_dict(config),
            seed=config.simulation.seed,
            extra={'notes': self.notes},
        )
        return out

    def close(self) -> None:
        """Release the matplotlib figures."""
        for fig in self.figures.values():
            plt.close(fig)
        self.figures.clear()


def _rngs(config: LabConfig):
    return create_rng_hierarchy(config.simulation.seed,
                                config.simulation.n_replicates)


def _finish(result: ExerciseOutput, config: LabConfig,
            output_dir: Optional[PathLike]) -> ExerciseOutput:
    if output_dir is not None:
        result.save(output_dir, config)
    return result


# ═══════════════════════════════════════════════════════════════════════
# RANDOM DRIFT
# ═══════════════════════════════════════════════════════════════════════


def run_drift(config: LabConfig,
              output_dir: Optional[PathLike] = None) -> ExerciseOutput:
    d = config.drift
    pop_size = float(d.pop_size)
    if d.n_males is not None and d.n_females is not None:
        pop_size = effective_size(d.n_males, d.n_females)

    res = simulate_drift(d.p0, pop_size, d.n_generations, d.n_lines,
                         _rngs(config)['drift'], method=d.method)
    summary = drift_summary(res)

    out = ExerciseOutput(name="drift")
    out.tables["trajectories"] = drift_table(res)
    out.tables["summary"] = summary
    out.figures["trajectories"] = plot_drift_trajectories(res)
    out.figures["summary"] = plot_drift_summary(res)
    out.figures["final_distribution"] = plot_final_distribution(res)
    out.notes = {
        "effective_size": pop_size,
        "fraction_fixed": float(summary["fixed"].iloc[-1]),
        "fraction_lost": float(summary["lost"].iloc[-1]),
        # Neutral fixation probability equals the starting frequency
        "expected_fraction_fixed": d.p0,
    }
    return _finish(out, config, output_dir)


# ═══════════════════════════════════════════════════════════════════════
# LINKAGE DISEQUILIBRIUM
# ═══════════════════════════════════════════════════════════════════════


def run_linkage(config: LabConfig,
                output_dir: Optional[PathLike] = None) -> ExerciseOutput:
    ld = config.linkage
    h0 = HaplotypeFrequencies.from_sequence(ld.haplotypes)
    rngs = _rngs(config)
    replicate_rngs = [get_replicate_rng(rngs, k) for k in range(ld.n_replicates)]

    results = [
        simulate_ld_decay(h0, c, ld.pop_size, ld.n_generations, replicate_rngs)
        for c in ld.recombination
    ]

    out = ExerciseOutput(name="linkage")
    out.tables["decay"] = pd.concat(
        [ld_table(r) for r in results], ignore_index=True
    ).set_index(["recombination", "generation", "replicate"])
    out.tables["theory"] = pd.DataFrame({
        "recombination": ld.recombination,
        "half_life": [half_life(c) for c in ld.recombination],
        "sved_r2": [sved_r2(ld.pop_size, c) for c in ld.recombination],
    }).set_index("recombination")
    out.figures["decay"] = plot_ld_decay(results)
    out.figures["half_life"] = plot_half_lives(np.asarray(ld.recombination))
    return _finish(out, config, output_dir)


# ═══════════════════════════════════════════════════════════════════════
# CLOSE INBREEDING
# ═══════════════════════════════════════════════════════════════════════


def run_close_inbreeding(config: LabConfig,
                         output_dir: Optional[PathLike] = None) -> ExerciseOutput:
    ci = config.close_inbreeding
    table = inbreeding_table(ci.systems, ci.n_generations, ci.f_init)
    rates = pd.DataFrame({
        "asymptotic": [asymptotic_rate(s) for s in ci.systems],
        f"observed_gen_{ci.n_generations}": [
            observed_rate(table[s])[-1] if ci.n_generations > 0 else np.nan
            for s in ci.systems
        ],
    }, index=pd.Index(ci.systems, name="system"))
    comparison = compare_with_pedigree(ci.pedigree_system, ci.n_generations)

    out = ExerciseOutput(name="close_inbreeding")
    out.tables["inbreeding"] = table
    out.tables["rates"] = rates
    out.tables["pedigree_check"] = comparison
    out.figures["systems"] = plot_inbreeding_systems(table)
    out.figures["pedigree_check"] = plot_pedigree_check(
        comparison, system=ci.pedigree_system)
    out.notes = {
        "max_abs_difference": float(comparison["difference"].abs().max()),
    }
    return _finish(out, config, output_dir)


# ═══════════════════════════════════════════════════════════════════════
# CHANGE OF BASE POPULATION
# ═══════════════════════════════════════════════════════════════════════


def _pedigree_rebase(config: LabConfig) -> pd.DataFrame:
    """Mean pedigree F per generation, against the founders and rebased to
    the coancestry of a later generation."""
    bc = config.base_change
    ped = random_mating_pedigree(bc.n_males, bc.n_females, bc.n_generations,
                                 _rngs(config)["pedigree"])
    kinship = kinship_matrix(ped)
    by_gen = mean_inbreeding_by_generation(ped, kinship)
    f_base = mean_coancestry(ped, generation_ids(ped, bc.base_generation),
                             kinship)

    gens = by_gen.index.to_numpy()
    ne = effective_size(bc.n_males, bc.n_females)
    df = pd.DataFrame({
        "F_old_base": by_gen.to_numpy(),
        "expected": expected_pedigree_inbreeding(ne, gens),
    }, index=pd.Index(gens, name="generation"))
    # Generations up to the new base have no inbreeding relative to it
    after = gens > bc.base_generation
    df["F_new_base"] = 0.0
    if after.any():
        df.loc[after, "F_new_base"] = rebase_inbreeding(
            df.loc[after, "F_old_base"].to_numpy(), f_base)
    df.attrs["f_base"] = f_base
    return df


def _table_path(path: PathLike) -> Path:
    """Relative table paths fall back to the project root."""
    p = Path(path)
    if not p.is_absolute() and not p.exists() and (PROJECT_ROOT / p).exists():
        return PROJECT_ROOT / p
    return p


def run_base_change(config: LabConfig,
                    output_dir: Optional[PathLike] = None) -> ExerciseOutput:
    bc = config.base_change
    if bc.f_base is not None:
        f_base = bc.f_base
    else:
        f_base = drift_base_inbreeding(bc.base_pop_size, bc.base_generations)

    out = ExerciseOutput(name="base_change")
    out.notes["f_base"] = f_base

    if bc.table_path is not None:
        table = read_inbreeding_table(_table_path(bc.table_path),
                                      bc.id_column, bc.f_column)
        rebased = rebase_table(table, f_base, f_column=bc.f_column)
        out.tables["rebased"] = rebased.set_index(bc.id_column)
        out.figures["rebased"] = plot_base_change(
            rebased, f_base, id_column=bc.id_column, f_column=bc.f_column)

    by_gen = _pedigree_rebase(config)
    out.notes["pedigree_f_base"] = by_gen.attrs["f_base"]
    out.tables["pedigree_inbreeding"] = by_gen
    out.figures["pedigree_inbreeding"] = plot_pedigree_inbreeding(by_gen)
    return _finish(out, config, output_dir)


EXERCISES = {
    "drift": run_drift,
    "linkage": run_linkage,
    "close_inbreeding": run_close_inbreeding,
    "base_change": run_base_change,
}
