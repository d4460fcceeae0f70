"""
Spectral Analyzer Tests
=======================

Tests for Goertzel band-power estimation.
"""

import math

import numpy as np
import pytest

from tremor_monitor.models.classification import MotionType
from tremor_monitor.signals import (
    DEFAULT_BANDS,
    BandDefinition,
    SpectralAnalyzer,
    goertzel_power,
)


class TestGoertzel:
    """Tests for the single-frequency power estimate."""

    @pytest.mark.parametrize("phase", [0.0, math.pi / 3, math.pi / 2, 2.0])
    def test_bin_aligned_power_independent_of_phase(self, sine_window, phase):
        """Bin-aligned sinusoid of amplitude A gives (A·N/2)²."""
        amplitude = 0.5
        data = sine_window(8.0, amplitude=amplitude, n=128, fs=128.0, phase=phase)
        power = goertzel_power(data, 8.0, 128.0)
        assert power == pytest.approx((amplitude * 128 / 2) ** 2, rel=1e-6)

    def test_off_frequency_is_small(self, sine_window):
        data = sine_window(8.0, n=128, fs=128.0)
        assert goertzel_power(data, 20.0, 128.0) < 1e-6

    def test_zero_input(self):
        assert goertzel_power(np.zeros(128), 5.0, 50.0) == 0.0

    def test_empty_input(self):
        assert goertzel_power([], 5.0, 50.0) == 0.0

    def test_non_finite_clamped_to_zero(self):
        data = np.zeros(16)
        data[3] = np.nan
        assert goertzel_power(data, 5.0, 50.0) == 0.0

    def test_accepts_plain_lists(self, sine_window):
        data = sine_window(8.0, n=128, fs=128.0)
        assert goertzel_power(list(data), 8.0, 128.0) == pytest.approx(
            goertzel_power(data, 8.0, 128.0)
        )


class TestSpectralAnalyzer:
    """Tests for the three-band analyzer."""

    def test_default_bands(self):
        analyzer = SpectralAnalyzer()
        assert [b.motion_type for b in analyzer.bands] == [
            MotionType.PARKINSONIAN,
            MotionType.ESSENTIAL,
            MotionType.PHYSIOLOGICAL,
        ]
        assert analyzer.bands[0].frequencies == (4.0, 5.0, 6.0)

    def test_band_power_is_mean_of_frequencies(self, sine_window):
        analyzer = SpectralAnalyzer(50.0)
        data = sine_window(5.0, amplitude=0.1)
        band = DEFAULT_BANDS[0]
        expected = sum(goertzel_power(data, f, 50.0) for f in band.frequencies) / 3
        assert analyzer.band_power(data, band) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "freq, winner",
        [(5.0, 0), (7.0, 1), (10.0, 2)],
    )
    def test_dominant_band_follows_frequency(self, sine_window, freq, winner):
        powers = SpectralAnalyzer(50.0).analyze(sine_window(freq, amplitude=0.1))
        values = powers.as_tuple()
        assert values.index(max(values)) == winner

    def test_zero_window(self):
        powers = SpectralAnalyzer().analyze(np.zeros(128))
        assert powers.as_tuple() == (0.0, 0.0, 0.0)

    def test_requires_three_bands(self):
        with pytest.raises(ValueError):
            SpectralAnalyzer(50.0, DEFAULT_BANDS[:2])

    def test_rejects_frequency_above_nyquist(self):
        bands = (
            DEFAULT_BANDS[0],
            DEFAULT_BANDS[1],
            BandDefinition(MotionType.PHYSIOLOGICAL, (8.0, 30.0)),
        )
        with pytest.raises(ValueError):
            SpectralAnalyzer(50.0, bands)

    def test_band_needs_frequencies(self):
        with pytest.raises(ValueError):
            BandDefinition(MotionType.ESSENTIAL, ())
