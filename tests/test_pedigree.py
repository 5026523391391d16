"""Tests for popgen_lab.pedigree — pedigree construction and coancestry."""

import numpy as np
import pandas as pd
import pytest

from popgen_lab.close_inbreeding import inbreeding_series
from popgen_lab.drift import effective_size, expected_inbreeding
from popgen_lab.pedigree import (
    PEDIGREE_COLUMNS,
    expected_pedigree_inbreeding,
    generation_ids,
    inbreeding_coefficients,
    kinship_matrix,
    mating_system_pedigree,
    mean_coancestry,
    mean_inbreeding_by_generation,
    random_mating_pedigree,
    relationship_matrix,
    validate_pedigree,
)


def _pedigree(rows):
    ped = pd.DataFrame(rows, columns=PEDIGREE_COLUMNS)
    ped["sire"] = ped["sire"].astype("Int64")
    ped["dam"] = ped["dam"].astype("Int64")
    return ped


@pytest.fixture
def half_sib_ped():
    """Sire 1 mated to dams 2 and 3; offspring 4 and 5 are half sibs."""
    return _pedigree([
        (1, None, None, "M", 0),
        (2, None, None, "F", 0),
        (3, None, None, "F", 0),
        (4, 1, 2, "M", 1),
        (5, 1, 3, "F", 1),
        (6, 4, 5, "M", 2),
    ])


class TestMatingSystemPedigree:
    def test_full_sib_layout(self):
        ped = mating_system_pedigree("full_sib", 3)
        assert list(ped.columns) == PEDIGREE_COLUMNS
        assert len(ped) == 2 + 2 * 4
        assert ped["generation"].min() == -1
        assert ped["generation"].max() == 3
        founders = ped[ped["generation"] == -1]
        assert founders["sire"].isna().all() and founders["dam"].isna().all()

    def test_full_sib_pairs_share_parents(self):
        ped = mating_system_pedigree("full_sib", 4)
        for g in range(5):
            pair = ped[ped["generation"] == g]
            assert len(pair) == 2
            assert pair["sire"].nunique() == 1 and pair["dam"].nunique() == 1
            assert sorted(pair["sex"]) == ["F", "M"]

    def test_selfing_layout(self):
        ped = mating_system_pedigree("selfing", 4)
        assert len(ped) == 5
        selfed = ped[ped["generation"] > 0]
        assert (selfed["sire"] == selfed["dam"]).all()

    def test_unknown_system(self):
        with pytest.raises(ValueError, match="no pedigree builder"):
            mating_system_pedigree("half_sib", 3)

    def test_negative_generations(self):
        with pytest.raises(ValueError):
            mating_system_pedigree("full_sib", -1)


class TestRandomMatingPedigree:
    def test_size_and_sexes(self):
        ped = random_mating_pedigree(3, 5, 4, np.random.default_rng(1))
        assert len(ped) == 5 * 8
        for g in range(5):
            gen = ped[ped["generation"] == g]
            assert (gen["sex"] == "M").sum() == 3
            assert (gen["sex"] == "F").sum() == 5

    def test_parents_from_previous_generation(self):
        ped = random_mating_pedigree(4, 4, 3, np.random.default_rng(2))
        info = ped.set_index("id")
        for row in ped[ped["generation"] > 0].itertuples(index=False):
            assert info.loc[row.sire, "generation"] == row.generation - 1
            assert info.loc[row.dam, "generation"] == row.generation - 1
            assert info.loc[row.sire, "sex"] == "M"
            assert info.loc[row.dam, "sex"] == "F"

    def test_reproducible(self):
        a = random_mating_pedigree(3, 3, 3, np.random.default_rng(9))
        b = random_mating_pedigree(3, 3, 3, np.random.default_rng(9))
        pd.testing.assert_frame_equal(a, b)

    def test_requires_both_sexes(self):
        with pytest.raises(ValueError):
            random_mating_pedigree(0, 4, 2, np.random.default_rng(0))

    def test_passes_validation(self):
        validate_pedigree(random_mating_pedigree(2, 6, 5, np.random.default_rng(3)))


class TestValidatePedigree:
    def test_duplicate_ids(self):
        ped = _pedigree([(1, None, None, "M", 0), (1, None, None, "F", 0)])
        with pytest.raises(ValueError, match="duplicate"):
            validate_pedigree(ped)

    def test_unknown_parent(self):
        ped = _pedigree([(1, None, None, "M", 0), (2, 1, 9, "F", 1)])
        with pytest.raises(ValueError, match="dam 9"):
            validate_pedigree(ped)

    def test_parent_after_offspring(self):
        ped = _pedigree([(2, 1, None, "F", 1), (1, None, None, "M", 0)])
        with pytest.raises(ValueError, match="sire 1"):
            validate_pedigree(ped)

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="missing columns"):
            validate_pedigree(pd.DataFrame({"id": [1]}))


class TestCoancestry:
    def test_parent_offspring(self, half_sib_ped):
        A = relationship_matrix(half_sib_ped)
        assert A.shape == (6, 6)
        assert A[0, 3] == pytest.approx(0.5)
        np.testing.assert_allclose(A, A.T)

    def test_half_sib_kinship(self, half_sib_ped):
        K = kinship_matrix(half_sib_ped)
        assert K.loc[4, 5] == pytest.approx(0.125)
        assert K.loc[2, 3] == 0.0

    def test_offspring_of_half_sibs(self, half_sib_ped):
        f = inbreeding_coefficients(half_sib_ped)
        assert f.loc[6] == pytest.approx(0.125)
        assert f.loc[[1, 2, 3, 4, 5]].eq(0.0).all()

    def test_self_kinship_is_half_one_plus_f(self):
        ped = mating_system_pedigree("selfing", 3)
        K = kinship_matrix(ped)
        f = inbreeding_coefficients(ped)
        np.testing.assert_allclose(np.diag(K.to_numpy()), (1 + f.to_numpy()) / 2)

    def test_selfing_inbreeding(self):
        f = inbreeding_coefficients(mating_system_pedigree("selfing", 3))
        np.testing.assert_allclose(f.to_numpy(), [0.0, 0.5, 0.75, 0.875])

    def test_full_sib_by_generation(self):
        ped = mating_system_pedigree("full_sib", 8)
        by_gen = mean_inbreeding_by_generation(ped)
        assert by_gen.index.name == "generation"
        np.testing.assert_allclose(by_gen.loc[0:].to_numpy(),
                                   inbreeding_series("full_sib", 8))

    def test_mean_coancestry(self):
        ped = mating_system_pedigree("full_sib", 2)
        assert mean_coancestry(ped, generation_ids(ped, -1)) == 0.0
        assert mean_coancestry(ped, generation_ids(ped, 0)) == pytest.approx(0.25)
        # Coancestry of generation-1 sibs is F of generation 2
        assert mean_coancestry(ped, generation_ids(ped, 1)) == pytest.approx(0.375)

    def test_mean_coancestry_needs_two(self):
        ped = mating_system_pedigree("full_sib", 1)
        with pytest.raises(ValueError, match="at least two"):
            mean_coancestry(ped, [3])

    def test_mean_coancestry_unknown_id(self):
        ped = mating_system_pedigree("full_sib", 1)
        with pytest.raises(ValueError, match="not in pedigree"):
            mean_coancestry(ped, [3, 99])

    def test_precomputed_kinship_gives_same_answers(self):
        ped = random_mating_pedigree(3, 4, 4, np.random.default_rng(8))
        K = kinship_matrix(ped)
        pd.testing.assert_series_equal(mean_inbreeding_by_generation(ped, K),
                                       mean_inbreeding_by_generation(ped))
        ids = generation_ids(ped, 3)
        assert mean_coancestry(ped, ids, K) == pytest.approx(
            mean_coancestry(ped, ids))


class TestExpectedPedigreeInbreeding:
    def test_lags_ideal_population_by_one_generation(self):
        gens = np.arange(6)
        f = expected_pedigree_inbreeding(20.0, gens)
        assert f[0] == 0.0 and f[1] == 0.0
        assert f[2] == pytest.approx(1 / 40)
        np.testing.assert_allclose(f[1:], expected_inbreeding(20.0, gens[:-1]))

    def test_random_mating_mean_tracks_expectation(self):
        n_males, n_females, n_gen = 5, 10, 8
        runs = [
            mean_inbreeding_by_generation(random_mating_pedigree(
                n_males, n_females, n_gen, np.random.default_rng(seed)))
            for seed in range(60)
        ]
        observed = np.mean([r.to_numpy() for r in runs], axis=0)
        ne = effective_size(n_males, n_females)
        expected = expected_pedigree_inbreeding(ne, np.arange(n_gen + 1))
        # Offspring of unrelated founders are never inbred
        assert observed[1] == 0.0
        np.testing.assert_allclose(observed, expected, atol=0.03)
