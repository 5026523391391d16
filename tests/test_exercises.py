"""Integration tests for popgen_lab.exercises and the command line."""

import json
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest
from matplotlib.figure import Figure

from popgen_lab.cli import main, parse_set_option
from popgen_lab.config import default_config
from popgen_lab.drift import effective_size
from popgen_lab.exercises import (
    EXERCISES,
    run_base_change,
    run_close_inbreeding,
    run_drift,
    run_linkage,
)
from popgen_lab.pedigree import expected_pedigree_inbreeding
from popgen_lab.utils import config_hash

EXAMPLE_TABLE = Path(__file__).resolve().parents[1] / "data" / "inbreeding_example.csv"


@pytest.fixture
def small_config():
    config = default_config()
    config.drift.n_generations = 10
    config.drift.n_lines = 5
    config.linkage.n_generations = 5
    config.linkage.n_replicates = 2
    config.linkage.recombination = [0.5, 0.05]
    config.close_inbreeding.n_generations = 6
    config.base_change.table_path = str(EXAMPLE_TABLE)
    config.base_change.n_generations = 4
    config.base_change.base_generation = 2
    return config


class TestRunDrift:
    def test_tables_and_figures(self, small_config):
        out = run_drift(small_config)
        assert set(out.tables) == {"trajectories", "summary"}
        assert out.tables["trajectories"].shape == (11, 5)
        assert all(isinstance(f, Figure) for f in out.figures.values())
        assert out.notes["expected_fraction_fixed"] == 0.5
        out.close()
        assert out.figures == {}

    def test_sex_ratio_sets_effective_size(self, small_config):
        small_config.drift.n_males = 5
        small_config.drift.n_females = 15
        out = run_drift(small_config)
        assert out.notes["effective_size"] == pytest.approx(15.0)
        out.close()

    def test_writes_outputs(self, small_config, tmp_path):
        out = run_drift(small_config, output_dir=tmp_path)
        folder = tmp_path / "drift"
        assert (folder / "summary.csv").exists()
        assert (folder / "trajectories.png").exists()
        meta = json.loads((folder / "metadata.json").read_text())
        assert meta["exercise"] == "drift"
        assert meta["seed"] == small_config.simulation.seed
        assert len(meta["config_sha256"]) == 64
        out.close()

    def test_same_seed_same_result(self, small_config):
        a = run_drift(small_config)
        b = run_drift(small_config)
        np.testing.assert_array_equal(a.tables["trajectories"].to_numpy(),
                                      b.tables["trajectories"].to_numpy())
        a.close()
        b.close()


class TestOtherExercises:
    def test_linkage(self, small_config):
        out = run_linkage(small_config)
        decay = out.tables["decay"]
        assert len(decay) == 2 * 6 * 2
        assert list(out.tables["theory"].index) == [0.5, 0.05]
        assert set(out.figures) == {"decay", "half_life"}
        out.close()

    def test_close_inbreeding(self, small_config):
        out = run_close_inbreeding(small_config)
        assert list(out.tables["inbreeding"].columns) == \
            small_config.close_inbreeding.systems
        assert out.notes["max_abs_difference"] < 1e-12
        assert out.tables["rates"].loc["full_sib", "asymptotic"] == \
            pytest.approx(0.191, abs=1e-3)
        out.close()

    def test_base_change(self, small_config):
        with pytest.warns(UserWarning):
            out = run_base_change(small_config)
        rebased = out.tables["rebased"]
        assert "F_new" in rebased.columns
        f_base = out.notes["f_base"]
        assert f_base == pytest.approx(1 - (1 - 1 / 40) ** 10)
        np.testing.assert_allclose(
            rebased["F_new"], (rebased["F"] - f_base) / (1 - f_base))
        by_gen = out.tables["pedigree_inbreeding"]
        assert list(by_gen.index) == [0, 1, 2, 3, 4]
        assert (by_gen.loc[:2, "F_new_base"] == 0.0).all()
        out.close()

    def test_pedigree_theory_curve_starts_after_founders(self, small_config):
        out = run_base_change(small_config)
        by_gen = out.tables["pedigree_inbreeding"]
        ne = effective_size(small_config.base_change.n_males,
                            small_config.base_change.n_females)
        np.testing.assert_allclose(
            by_gen["expected"],
            expected_pedigree_inbreeding(ne, by_gen.index.to_numpy()))
        assert by_gen.loc[1, "expected"] == 0.0
        assert by_gen.loc[1, "F_old_base"] == 0.0
        out.close()

    def test_base_change_default_table_from_other_directory(
            self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = default_config()
        assert not Path(config.base_change.table_path).is_absolute()
        out = run_base_change(config)
        assert len(out.tables["rebased"]) == 8
        out.close()

    def test_base_change_explicit_f_base_without_table(self, small_config):
        small_config.base_change.table_path = None
        small_config.base_change.f_base = 0.1
        out = run_base_change(small_config)
        assert "rebased" not in out.tables
        assert out.notes["f_base"] == 0.1
        out.close()

    def test_registry(self):
        assert set(EXERCISES) == {"drift", "linkage", "close_inbreeding",
                                  "base_change"}


class TestCli:
    def test_parse_set_option(self):
        overrides = parse_set_option([
            "drift.pop_size=100",
            "linkage.recombination=[0.5, 0.2]",
            "drift.n_males=null",
            "output.save_figures=false",
        ])
        assert overrides == {
            "drift": {"pop_size": 100, "n_males": None},
            "linkage": {"recombination": [0.5, 0.2]},
            "output": {"save_figures": False},
        }

    @pytest.mark.parametrize("bad", ["drift.pop_size", "=3", "drift..p0=1"])
    def test_parse_set_option_rejects(self, bad):
        with pytest.raises(ValueError):
            parse_set_option([bad])

    def test_main_runs_exercise(self, tmp_path):
        code = main([
            "close_inbreeding",
            "--output-dir", str(tmp_path),
            "--set", "close_inbreeding.n_generations=5",
            "--seed", "3",
        ])
        assert code == 0
        assert (tmp_path / "close_inbreeding" / "inbreeding.csv").exists()
        meta = json.loads(
            (tmp_path / "close_inbreeding" / "metadata.json").read_text())
        assert meta["seed"] == 3

    def test_main_rejects_bad_override(self, tmp_path):
        with pytest.raises(ValueError, match="p0"):
            main(["drift", "--output-dir", str(tmp_path), "--set", "drift.p0=3"])


class TestConfigHash:
    def test_stable_and_order_independent(self):
        assert config_hash({"a": 1, "b": 2}) == config_hash({"b": 2, "a": 1})
        assert config_hash({"a": 1}) != config_hash({"a": 2})
