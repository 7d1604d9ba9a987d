"""Tests for noise.py: hash determinism and coherent noise seeding."""

import numpy as np
import pytest

from wavelab.noise import DEFAULT_SEED, CoherentNoise, lcg_lattice, pseudo_random_hash


class TestPseudoRandomHash:
    def test_same_seed_same_value(self):
        assert pseudo_random_hash(12.5) == pseudo_random_hash(12.5)

    def test_range(self):
        seeds = np.arange(-500, 500) + 0.4321
        vals = pseudo_random_hash(seeds)
        assert np.all(vals >= 0.0)
        assert np.all(vals < 1.0)

    def test_array_matches_scalar(self):
        seeds = np.array([0.4321, 1.4321, 2.4321])
        vals = pseudo_random_hash(seeds)
        for s, v in zip(seeds, vals):
            assert pseudo_random_hash(float(s)) == pytest.approx(v, abs=1e-9)

    def test_known_values(self):
        assert pseudo_random_hash(0.4321) == pytest.approx(0.14714786788317724, abs=1e-9)
        assert pseudo_random_hash(1.4321) == pytest.approx(0.33519755874294788, abs=1e-9)

    def test_neighbouring_indices_differ(self):
        assert pseudo_random_hash(0.4321) != pseudo_random_hash(1.4321)


class TestCoherentNoise:
    def test_default_seed(self):
        assert CoherentNoise().seed == DEFAULT_SEED == 42

    def test_reproducible_across_instances(self):
        a = CoherentNoise(42)
        b = CoherentNoise(42)
        assert a(1.3, 2.7) == b(1.3, 2.7)

    def test_lattice_values(self):
        lattice = lcg_lattice(42, 4096)
        assert lattice[0] == 1083814273 / 2**32
        assert lattice[1] == pytest.approx(0.088125045411288738, abs=1e-15)
        assert lattice[4095] == pytest.approx(0.53876973176375031, abs=1e-15)

    def test_known_value(self):
        assert CoherentNoise(42)(1.3, 2.7) == pytest.approx(0.4633868628673169, abs=1e-12)

    def test_reseed_reproduces_known_value(self):
        n = CoherentNoise(7)
        n.reseed(42)
        assert n(1.3, 2.7) == pytest.approx(0.4633868628673169, abs=1e-12)

    def test_reseed_restores_output(self):
        n = CoherentNoise(42)
        before = n(10.25, 3.5)
        n.reseed(7)
        n.reseed(42)
        assert n(10.25, 3.5) == before

    def test_different_seed_changes_field(self):
        xs = np.linspace(0, 20, 50)
        a = CoherentNoise(42)(xs, xs * 0.5)
        b = CoherentNoise(43)(xs, xs * 0.5)
        assert not np.allclose(a, b)

    def test_range(self):
        xs, ys = np.meshgrid(np.linspace(0, 60, 80), np.linspace(0, 60, 80))
        vals = CoherentNoise()(xs, ys)
        assert vals.shape == xs.shape
        assert np.all(vals >= 0.0)
        assert np.all(vals < 1.0)

    def test_scalar_returns_float(self):
        assert isinstance(CoherentNoise()(0.5, 0.5), float)

    def test_smooth(self):
        n = CoherentNoise()
        assert abs(n(4.2, 7.9) - n(4.2001, 7.9)) < 0.01

    def test_negative_coordinates_mirror(self):
        n = CoherentNoise()
        assert n(-3.7, 2.2) == n(3.7, 2.2)

    def test_vectorized_matches_scalar(self):
        n = CoherentNoise()
        xs = np.array([0.1, 5.5, 123.4])
        ys = np.array([9.0, 0.25, 77.7])
        vec = n(xs, ys)
        for x, y, v in zip(xs, ys, vec):
            assert abs(n(float(x), float(y)) - v) < 1e-9
