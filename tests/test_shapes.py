"""Tests for shapes.py: distribution, waveforms, secondary modulation, radius sampler."""

import math

import numpy as np
import pytest

from wavelab.model import Layer
from wavelab.noise import pseudo_random_hash
from wavelab.shapes import (
    TWO_PI, ShapeKind, WaveKind, apply_distribution, base_radius,
    secondary_modulation, waveform, wrap,
)

KS = [-3.0, -1.5, -0.2, 0.2, 1.5, 3.0]


class TestApplyDistribution:
    def test_identity_at_zero(self):
        ts = np.linspace(0, 1, 101)
        assert np.array_equal(apply_distribution(ts, 0.0), ts)

    def test_tiny_k_is_identity(self):
        assert apply_distribution(0.37, 1e-7) == 0.37

    @pytest.mark.parametrize("k", KS)
    def test_monotonic(self, k):
        vals = apply_distribution(np.linspace(0, 1, 501), k)
        assert np.all(np.diff(vals) >= -1e-12)

    @pytest.mark.parametrize("k", KS)
    def test_endpoints_fixed(self, k):
        assert apply_distribution(0.0, k) == pytest.approx(0.0, abs=1e-12)
        assert apply_distribution(1.0, k) == pytest.approx(1.0, abs=1e-12)

    def test_positive_k_packs_toward_end(self):
        assert apply_distribution(0.5, 2.0) < 0.5

    def test_negative_k_packs_toward_start(self):
        assert apply_distribution(0.5, -2.0) > 0.5

    def test_mirror_symmetry(self):
        assert apply_distribution(0.3, 2.0) == pytest.approx(1 - apply_distribution(0.7, -2.0))


class TestWaveform:
    def test_sine_zero(self):
        assert waveform("sine", 0.0) == 0.0

    def test_cosine_zero(self):
        assert waveform("cosine", 0.0) == 1.0

    def test_square_only_plus_minus_one(self):
        phases = np.linspace(-20, 20, 2001)
        for duty in (0.01, 0.25, 0.5, 0.99):
            vals = waveform("square", phases, duty)
            assert set(np.unique(vals)) <= {-1.0, 1.0}

    def test_square_duty(self):
        assert waveform("square", 0.1 * TWO_PI, 0.5) == 1.0
        assert waveform("square", 0.6 * TWO_PI, 0.5) == -1.0
        assert waveform("square", 0.6 * TWO_PI, 0.7) == 1.0

    def test_square_negative_phase_wraps(self):
        # -0.1 turn is 0.9 of the way through the cycle
        assert waveform("square", -0.1 * TWO_PI, 0.5) == -1.0

    def test_triangle_shape(self):
        assert waveform("triangle", 0.0) == pytest.approx(0.0)
        assert waveform("triangle", math.pi / 2) == pytest.approx(1.0)
        assert waveform("triangle", -math.pi / 2) == pytest.approx(-1.0)
        assert waveform("triangle", math.pi / 4) == pytest.approx(0.5)

    def test_triangle_range(self):
        vals = waveform("triangle", np.linspace(-30, 30, 3001))
        assert vals.max() <= 1.0 and vals.min() >= -1.0

    def test_sample_hold_constant_within_turn(self):
        assert waveform("sample & hold", 0.1) == waveform("sample & hold", 6.2)

    def test_sample_hold_value(self):
        expected = pseudo_random_hash(1 + 0.4321) * 2 - 1
        assert waveform(WaveKind.SAMPLE_HOLD, TWO_PI + 0.5) == pytest.approx(expected)

    def test_sample_hold_range(self):
        vals = waveform("sample-hold", np.linspace(-100, 100, 999))
        assert vals.min() >= -1.0 and vals.max() < 1.0

    def test_parse_labels(self):
        assert WaveKind.parse("sample & hold") is WaveKind.SAMPLE_HOLD
        assert WaveKind.parse("Sine") is WaveKind.SINE

    def test_unknown_wave(self):
        with pytest.raises(ValueError):
            waveform("sawtooth", 0.0)


class TestSecondaryModulation:
    def test_disabled_is_zero(self):
        assert secondary_modulation(0.3, Layer(sh2_enabled=False)) == 0.0

    def test_stepwise_constant(self):
        layer = Layer(sh2_enabled=True, sh2_freq=4, sh2_amp=10)
        assert secondary_modulation(0.01, layer) == secondary_modulation(0.24, layer)

    def test_value(self):
        layer = Layer(sh2_enabled=True, sh2_freq=4, sh2_amp=10)
        assert secondary_modulation(0.3, layer) == pytest.approx(pseudo_random_hash(1 + 1.2345) * 10)

    def test_non_negative(self):
        layer = Layer(sh2_enabled=True, sh2_freq=17, sh2_amp=50)
        vals = secondary_modulation(np.linspace(0, 1, 1000), layer)
        assert np.all(vals >= 0.0)
        assert np.all(vals < 50.0)


class TestBaseRadius:
    def test_circle_and_spiral_unchanged(self):
        assert base_radius("circle", 80.0, 6, 1.234) == 80.0
        assert base_radius(ShapeKind.FIBONACCI_SPIRAL, 80.0, 6, 1.234) == 80.0

    @pytest.mark.parametrize("sides", [3, 4, 6, 11])
    def test_polygon_periodic(self, sides):
        angles = np.linspace(0, TWO_PI, 257)
        a = base_radius("polygon", 100.0, sides, angles)
        b = base_radius("polygon", 100.0, sides, angles + TWO_PI / sides)
        assert np.allclose(a, b, rtol=1e-9)

    @pytest.mark.parametrize("sides", [3, 5, 8])
    def test_polygon_minimum_is_apothem(self, sides):
        apothem = 100.0 * math.cos(math.pi / sides)
        assert base_radius("polygon", 100.0, sides, 0.0) == pytest.approx(apothem)
        sweep = base_radius("polygon", 100.0, sides, np.linspace(0, TWO_PI, 4001))
        assert sweep.min() >= apothem - 1e-9

    def test_polygon_vertex_is_radius(self):
        assert base_radius("polygon", 100.0, 6, math.pi / 6) == pytest.approx(100.0)

    def test_polygon_negative_angle(self):
        assert base_radius("polygon", 100.0, 4, -0.3) == pytest.approx(base_radius("polygon", 100.0, 4, 0.3))

    def test_polygon_degenerate_sides(self):
        # collapses without raising
        val = base_radius("polygon", 100.0, 0, 0.5)
        assert math.isfinite(val)

    def test_spikes(self):
        assert base_radius("radiating lines", 100.0, 6, 0.0, 12) == pytest.approx(100.0)
        peak = base_radius("radiating lines", 100.0, 6, math.pi / 24, 12)
        assert peak == pytest.approx(145.0)

    def test_spike_count_floor(self):
        a = base_radius("radiating lines", 100.0, 6, 0.3, 2)
        b = base_radius("radiating lines", 100.0, 6, 0.3, 6)
        assert a == b

    def test_shape_labels(self):
        assert ShapeKind.parse("multi-sided shapes") is ShapeKind.POLYGON
        assert ShapeKind.parse("concentric circles") is ShapeKind.CIRCLE
        assert ShapeKind.parse("fibonacci_spiral") is ShapeKind.FIBONACCI_SPIRAL
        assert ShapeKind.RADIATING_LINES.label == "radiating lines"

    def test_unknown_shape(self):
        with pytest.raises(ValueError):
            ShapeKind.parse("star")


def test_wrap_negative():
    assert wrap(-1.0, 4.0) == 3.0
