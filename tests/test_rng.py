"""Tests for popgen_lab.rng — seeded RNG streams."""

import numpy as np
import pytest

from popgen_lab.rng import STREAM_NAMES, create_rng_hierarchy, get_replicate_rng


class TestCreateRngHierarchy:
    def test_returns_correct_keys(self):
        rngs = create_rng_hierarchy(42, n_replicates=4)
        for name in STREAM_NAMES:
            assert name in rngs
        for i in range(4):
            assert f'replicate_{i}' in rngs
        assert len(rngs) == len(STREAM_NAMES) + 4

    def test_named_streams_are_the_ones_exercises_draw_from(self):
        # Linkage decay uses the replicate_i streams, not a named one
        assert STREAM_NAMES == ("drift", "pedigree")

    def test_generators_are_independent(self):
        """Different streams produce different sequences."""
        rngs = create_rng_hierarchy(42, n_replicates=3)
        vals = {name: rng.random() for name, rng in rngs.items()}
        assert len(set(vals.values())) == len(vals)

    def test_reproducibility(self):
        rngs1 = create_rng_hierarchy(7, n_replicates=2)
        rngs2 = create_rng_hierarchy(7, n_replicates=2)
        for name in rngs1:
            np.testing.assert_array_equal(rngs1[name].random(50),
                                          rngs2[name].random(50))

    def test_different_seeds_differ(self):
        a = create_rng_hierarchy(1, n_replicates=0)['drift'].random(10)
        b = create_rng_hierarchy(2, n_replicates=0)['drift'].random(10)
        assert not np.array_equal(a, b)

    def test_replicate_count_does_not_shift_streams(self):
        """Adding replicates doesn't change the named or earlier streams."""
        small = create_rng_hierarchy(42, n_replicates=2)
        large = create_rng_hierarchy(42, n_replicates=8)
        for name in list(STREAM_NAMES) + ['replicate_0', 'replicate_1']:
            np.testing.assert_array_equal(small[name].random(20),
                                          large[name].random(20))

    def test_negative_seed_raises(self):
        with pytest.raises(ValueError):
            create_rng_hierarchy(-1, n_replicates=1)


class TestGetReplicateRng:
    def test_valid_replicate(self):
        rngs = create_rng_hierarchy(42, n_replicates=3)
        assert get_replicate_rng(rngs, 2) is rngs['replicate_2']

    def test_missing_replicate_raises(self):
        rngs = create_rng_hierarchy(42, n_replicates=3)
        with pytest.raises(KeyError, match="replicate 5"):
            get_replicate_rng(rngs, 5)
