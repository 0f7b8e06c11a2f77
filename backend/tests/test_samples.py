"""Tests for sample generation and preset target functions."""
import numpy as np
import pytest

from neuralgraph.data.samples import PRESET_FUNCTIONS, function_curve, generate_samples, get_preset


class TestPresets:
    def test_known_presets(self):
        assert get_preset("linear")(3.0) == 6.0
        assert get_preset("quadratic")(-2.0) == 4.0
        assert get_preset("abs")(-1.5) == 1.5

    def test_unknown_preset(self):
        with pytest.raises(KeyError, match="Unknown function"):
            get_preset("exp")


class TestGenerateSamples:
    def test_count_and_domain(self):
        samples = generate_samples(get_preset("linear"), (-2.0, 3.0), 200, 0.3,
                                   rng=np.random.default_rng(0))
        assert len(samples) == 200
        assert all(-2.0 <= x <= 3.0 for x, _ in samples)

    def test_noise_bounded_by_half_variance(self):
        samples = generate_samples(get_preset("linear"), (-1.0, 1.0), 500, 0.4,
                                   rng=np.random.default_rng(1))
        for x, y in samples:
            assert abs(y - 2 * x) <= 0.2 + 1e-12

    def test_zero_variance_is_exact(self):
        samples = generate_samples(get_preset("quadratic"), (0.0, 1.0), 50, 0.0,
                                   rng=np.random.default_rng(2))
        for x, y in samples:
            assert y == pytest.approx(x * x)

    def test_seeded_reproducible(self):
        a = generate_samples(get_preset("sine"), (-1.0, 1.0), 20, 0.3, rng=np.random.default_rng(5))
        b = generate_samples(get_preset("sine"), (-1.0, 1.0), 20, 0.3, rng=np.random.default_rng(5))
        assert a == b

    def test_empty(self):
        assert generate_samples(get_preset("linear"), (-1.0, 1.0), 0, 0.3) == []

    @pytest.mark.parametrize("domain,count,variance", [
        ((1.0, -1.0), 10, 0.3),
        ((-1.0, 1.0), -1, 0.3),
        ((-1.0, 1.0), 10, -0.1),
    ])
    def test_invalid_arguments(self, domain, count, variance):
        with pytest.raises(ValueError):
            generate_samples(get_preset("linear"), domain, count, variance)


class TestFunctionCurve:
    def test_endpoints_and_length(self):
        curve = function_curve(get_preset("cubic"), (-1.0, 1.0), steps=10)
        assert len(curve) == 11
        assert curve[0] == (-1.0, -1.0)
        assert curve[-1] == (1.0, 1.0)

    def test_every_preset_plots(self):
        for name, fn in PRESET_FUNCTIONS.items():
            curve = function_curve(fn, (-1.0, 1.0), steps=4)
            assert len(curve) == 5, name
