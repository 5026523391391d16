"""Tests for popgen_lab.config — configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from popgen_lab.config import (
    BaseChangeSection,
    CloseInbreedingSection,
    DriftSection,
    LabConfig,
    LinkageSection,
    config_to_dict,
    deep_merge,
    default_config,
    load_config,
    validate_config,
)

DEFAULT_YAML = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"


def _write_yaml(path: Path, data: dict) -> Path:
    with open(path, 'w') as f:
        yaml.safe_dump(data, f)
    return path


# ── deep_merge tests ──────────────────────────────────────────────────

class TestDeepMerge:
    def test_simple_override(self):
        base = {'a': 1, 'b': 2}
        result = deep_merge(base, {'b': 3})
        assert result == {'a': 1, 'b': 3}

    def test_nested_merge(self):
        base = {'x': {'a': 1, 'b': 2}, 'y': 10}
        result = deep_merge(base, {'x': {'b': 3, 'c': 4}})
        assert result == {'x': {'a': 1, 'b': 3, 'c': 4}, 'y': 10}

    def test_override_dict_with_scalar(self):
        base = {'a': {'nested': 1}}
        result = deep_merge(base, {'a': 'replaced'})
        assert result == {'a': 'replaced'}

    def test_lists_are_replaced_not_merged(self):
        base = {'linkage': {'recombination': [0.5, 0.1]}}
        deep_merge(base, {'linkage': {'recombination': [0.01]}})
        assert base['linkage']['recombination'] == [0.01]


# ── default_config tests ─────────────────────────────────────────────

class TestDefaultConfig:
    def test_returns_lab_config(self):
        config = default_config()
        assert isinstance(config, LabConfig)
        assert config.simulation.seed == 42

    def test_default_yaml_matches_dataclass_defaults(self):
        from_yaml = load_config(DEFAULT_YAML)
        assert config_to_dict(from_yaml) == config_to_dict(default_config())

    def test_all_systems_enabled_by_default(self):
        config = default_config()
        assert set(config.close_inbreeding.systems) == {
            'selfing', 'full_sib', 'half_sib', 'double_first_cousin'}


# ── load_config tests ────────────────────────────────────────────────

class TestLoadConfig:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_missing_override_raises(self, tmp_path):
        base = _write_yaml(tmp_path / "base.yaml", {})
        with pytest.raises(FileNotFoundError):
            load_config(base, tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(path)
        assert config.drift.pop_size == DriftSection().pop_size

    def test_partial_section(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {'drift': {'pop_size': 10}})
        config = load_config(path)
        assert config.drift.pop_size == 10
        assert config.drift.p0 == 0.5

    def test_override_file_and_dict(self, tmp_path):
        base = _write_yaml(tmp_path / "base.yaml",
                           {'drift': {'pop_size': 10, 'p0': 0.2}})
        over = _write_yaml(tmp_path / "over.yaml", {'drift': {'p0': 0.3}})
        config = load_config(base, over, {'drift': {'n_lines': 7}})
        assert config.drift.pop_size == 10
        assert config.drift.p0 == 0.3
        assert config.drift.n_lines == 7

    def test_unknown_keys_ignored(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {
            'drift': {'pop_size': 30, 'colour': 'blue'},
            'not_a_section': {'x': 1},
        })
        config = load_config(path)
        assert config.drift.pop_size == 30

    def test_validation_runs_on_load(self, tmp_path):
        path = _write_yaml(tmp_path / "c.yaml", {'drift': {'p0': 2.0}})
        with pytest.raises(ValueError, match="p0"):
            load_config(path)


# ── validate_config tests ────────────────────────────────────────────

class TestValidateConfig:
    @pytest.mark.parametrize("section,changes,match", [
        ('drift', {'pop_size': 0}, 'pop_size'),
        ('drift', {'p0': -0.1}, 'p0'),
        ('drift', {'method': 'moran'}, 'method'),
        ('drift', {'n_males': 5}, 'together'),
        ('drift', {'n_generations': -1}, 'n_generations'),
        ('linkage', {'haplotypes': [0.5, 0.5, 0.5]}, '4 elements'),
        ('linkage', {'haplotypes': [0.5, 0.2, 0.2, 0.2]}, 'sum to 1'),
        ('linkage', {'recombination': [0.6]}, 'recombination'),
        ('linkage', {'n_replicates': 50}, 'exceeds'),
        ('close_inbreeding', {'systems': ['selfing', 'cloning']}, 'cloning'),
        ('close_inbreeding', {'pedigree_system': 'half_sib'}, 'pedigree_system'),
        ('close_inbreeding', {'f_init': 1.0}, 'f_init'),
        ('base_change', {'f_base': 1.0}, 'f_base'),
        ('base_change', {'base_generation': 20}, 'base_generation'),
        ('base_change', {'n_females': 0}, 'sex counts'),
    ])
    def test_invalid_values_rejected(self, section, changes, match):
        config = LabConfig()
        sec = getattr(config, section)
        for key, value in changes.items():
            setattr(sec, key, value)
        with pytest.raises(ValueError, match=match):
            validate_config(config)

    def test_negative_seed(self):
        config = LabConfig()
        config.simulation.seed = -1
        with pytest.raises(ValueError, match="seed"):
            validate_config(config)

    def test_sex_counts_accepted_together(self):
        config = LabConfig(drift=DriftSection(n_males=5, n_females=20))
        validate_config(config)

    def test_sections_are_independent_instances(self):
        a, b = LabConfig(), LabConfig()
        a.linkage.recombination.append(0.2)
        assert b.linkage.recombination == LinkageSection().recombination
        assert a.close_inbreeding is not b.close_inbreeding
        assert a.base_change == BaseChangeSection()
        assert isinstance(a.close_inbreeding, CloseInbreedingSection)
