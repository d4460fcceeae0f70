"""
Session Report Tests
====================

Tests for SessionReportBuilder.
"""

import pytest

from tremor_monitor.models.classification import (
    BandPowers,
    ClassificationResult,
    MotionType,
)
from tremor_monitor.observability import MIN_WINDOWS, SessionReportBuilder


def _result(b1: float, b2: float, b3: float, score: float, mean_norm: float = 0.1):
    return ClassificationResult(
        powers=BandPowers(b1, b2, b3),
        motion_type=MotionType.PARKINSONIAN,
        confidence=0.9,
        score=score,
        mean_norm=mean_norm,
    )


@pytest.fixture
def builder():
    b = SessionReportBuilder(sample_rate_hz=50.0)
    # Four windows, 30 s apart; scores rise in the second half
    b.record(_result(4.0, 1.0, 1.0, 2.0), timestamp=0.0)
    b.record(_result(4.0, 1.0, 1.0, 2.0), timestamp=30.0)
    b.record(_result(1.0, 4.0, 1.0, 6.0), timestamp=60.0)
    b.record(_result(4.0, 1.0, 1.0, 6.0), timestamp=90.0)
    return b


class TestSessionReportBuilder:
    """Tests for SessionReportBuilder."""

    def test_needs_minimum_windows(self):
        b = SessionReportBuilder()
        for i in range(MIN_WINDOWS - 1):
            b.record(_result(1.0, 0.5, 0.2, 3.0), timestamp=float(i))
        assert not b.ready
        assert b.build() is None

    def test_metadata(self, builder):
        report = builder.build()
        assert report.metadata["windows"] == 4
        assert report.metadata["duration_minutes"] == 1.5
        assert report.metadata["sampling_rate_hz"] == 50.0

    def test_frequency_profile(self, builder):
        profile = builder.build().frequency_profile
        assert profile["band_power_mean"] == {"hz_4_6": 3.25, "hz_6_8": 1.75, "hz_8_12": 1.0}
        assert profile["dominant_band"] == "4_6_hz"
        assert profile["dominance_ratio"] == 3.25
        assert profile["dominant_band_percentage"] == pytest.approx(0.542, abs=1e-3)
        # 1 → 2 → 1
        assert profile["band_switch_count"] == 2

    def test_intensity_profile(self, builder):
        profile = builder.build().intensity_profile
        score = profile["tremor_score"]
        assert score["mean"] == 4.0
        assert score["std"] == 2.0
        assert score["min"] == 2.0
        assert score["max"] == 6.0
        assert score["p50"] == 4.0
        assert profile["rms_mean"] == 0.1

    def test_uncalibrated_intensity_factor(self, builder):
        profile = builder.build().intensity_profile
        assert profile["noise_floor_adjusted_intensity"] == pytest.approx(0.093, abs=1e-3)

    def test_calibrated_intensity(self, builder):
        builder.set_noise_floor(0.04)
        profile = builder.build().intensity_profile
        assert profile["noise_floor_adjusted_intensity"] == pytest.approx(0.06, abs=1e-3)

    def test_intensity_distribution(self, builder):
        dist = builder.build().intensity_distribution
        assert dist == {
            "low_fraction": 0.5,
            "moderate_fraction": 0.0,
            "high_fraction": 0.5,
            "very_high_fraction": 0.0,
        }

    def test_variability_profile(self, builder):
        profile = builder.build().variability_profile
        assert profile["coefficient_of_variation"] == 0.5
        assert profile["stability_index"] == 0.5
        # Diffs 0, 4, 0 → mean squared 16/3
        assert profile["window_to_window_variance"] == pytest.approx(5.333, abs=1e-3)
        assert 0.0 < profile["spectral_entropy"] < 1.0

    def test_equal_bands_have_full_entropy(self):
        b = SessionReportBuilder()
        for i in range(3):
            b.record(_result(1.0, 1.0, 1.0, 1.0), timestamp=float(i))
        assert b.build().variability_profile["spectral_entropy"] == pytest.approx(1.0)

    def test_within_session_trend(self, builder):
        trend = builder.build().within_session_trend
        assert trend["early_vs_late_change_percent"] == 200.0
        assert trend["fatigue_pattern_detected"] is True
        assert trend["linear_slope_per_minute_score_units"] > 0.0

    def test_flat_session_has_no_fatigue(self):
        b = SessionReportBuilder()
        for i in range(4):
            b.record(_result(1.0, 0.5, 0.2, 3.0), timestamp=i * 2.56)
        trend = b.build().within_session_trend
        assert trend["early_vs_late_change_percent"] == 0.0
        assert trend["fatigue_pattern_detected"] is False

    def test_reset(self, builder):
        builder.reset()
        assert builder.window_count == 0
        assert builder.build() is None

    def test_to_dict_sections(self, builder):
        data = builder.build().to_dict()
        assert set(data) == {
            "metadata",
            "frequency_profile",
            "intensity_profile",
            "intensity_distribution",
            "variability_profile",
            "within_session_trend",
            "multi_session_trend",
        }


def _fill(builder: SessionReportBuilder, bands, score: float, timestamps) -> None:
    for ts in timestamps:
        builder.record(_result(*bands, score), timestamp=ts)


PARKINSONIAN_BANDS = (4.0, 1.0, 1.0)
ESSENTIAL_BANDS = (1.0, 4.0, 1.0)


class TestMultiSessionTrend:
    """Tests for the comparison with earlier sessions."""

    def test_first_session(self, builder):
        trend = builder.build().multi_session_trend
        assert trend == {
            "dominant_band_consistency_last_3": "4-6 Hz in 1/1 sessions",
            "tremor_score_weekly_slope": "+0.0",
            "severity_change_percent": "N/A (first session)",
            "band_shift_detected": False,
        }

    def test_second_session(self):
        b = SessionReportBuilder()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (0.0, 1.0, 2.0))
        b.reset()
        _fill(b, ESSENTIAL_BANDS, 3.0, (3.0, 4.0, 5.0))

        trend = b.build().multi_session_trend
        assert trend["dominant_band_consistency_last_3"] == "6-8 Hz in 1/2 sessions"
        # (3 - 2) / (5 s - 2 s), per week
        assert trend["tremor_score_weekly_slope"] == "+201600.00"
        assert trend["severity_change_percent"] == "+50.0%"
        assert trend["band_shift_detected"] is True

    def test_third_session(self):
        b = SessionReportBuilder()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (0.0, 1.0, 2.0))
        b.reset()
        _fill(b, ESSENTIAL_BANDS, 3.0, (3.0, 4.0, 5.0))
        b.reset()
        _fill(b, PARKINSONIAN_BANDS, 4.0, (6.0, 7.0, 8.0))

        trend = b.build().multi_session_trend
        assert trend["dominant_band_consistency_last_3"] == "4-6 Hz in 2/3 sessions"
        assert trend["tremor_score_weekly_slope"] == "+201600.00"
        # Compared with the oldest of the last two finished sessions
        assert trend["severity_change_percent"] == "+100.0%"
        assert trend["band_shift_detected"] is True

    def test_only_last_two_sessions_compared(self):
        b = SessionReportBuilder()
        _fill(b, ESSENTIAL_BANDS, 8.0, (0.0, 1.0, 2.0))
        b.reset()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (3.0, 4.0, 5.0))
        b.reset()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (6.0, 7.0, 8.0))
        b.reset()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (9.0, 10.0, 11.0))

        trend = b.build().multi_session_trend
        assert trend["dominant_band_consistency_last_3"] == "4-6 Hz in 3/3 sessions"
        assert trend["tremor_score_weekly_slope"] == "+0.00"
        assert trend["severity_change_percent"] == "+0.0%"
        assert trend["band_shift_detected"] is False

    def test_short_sessions_not_archived(self):
        b = SessionReportBuilder()
        _fill(b, PARKINSONIAN_BANDS, 2.0, (0.0, 1.0))
        b.reset()
        assert b.history == ()

    def test_history_is_bounded(self):
        b = SessionReportBuilder(session_history=2)
        for i in range(4):
            _fill(b, PARKINSONIAN_BANDS, float(i + 1), (i * 10.0, i * 10.0 + 1, i * 10.0 + 2))
            b.reset()

        assert [s.mean_score for s in b.history] == [3.0, 4.0]
        assert b.history[-1].dominant_band == "4_6_hz"
        assert b.history[-1].timestamp == 32.0


class TestWindowCap:
    """Tests for the per-session window limit."""

    def test_oldest_windows_dropped(self):
        b = SessionReportBuilder(max_windows=3)
        for i in range(5):
            b.record(_result(1.0, 0.5, 0.2, float(i + 1)), timestamp=float(i))

        assert b.window_count == 3
        assert b.dropped_windows == 2
        report = b.build()
        assert report.intensity_profile["tremor_score"]["min"] == 3.0
        assert report.metadata["windows"] == 3

    def test_reset_clears_dropped_count(self):
        b = SessionReportBuilder(max_windows=3)
        for i in range(4):
            b.record(_result(1.0, 0.5, 0.2, 1.0), timestamp=float(i))
        b.reset()
        assert b.dropped_windows == 0
        assert b.window_count == 0

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            SessionReportBuilder(max_windows=MIN_WINDOWS - 1)
        with pytest.raises(ValueError):
            SessionReportBuilder(session_history=0)
