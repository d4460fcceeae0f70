"""
Calibrator Tests
================

Tests for the Idle/Collecting calibration state machine.
"""

import pytest

from tremor_monitor.agent import CalibrationParameters, CalibrationState, Calibrator
from tremor_monitor.models.classification import CalibrationThresholds


def _feed(calibrator: Calibrator, values, now: float):
    result = None
    for v in values:
        result = calibrator.update(v, now)
    return result


class TestCalibrator:
    """Tests for Calibrator."""

    def test_starts_idle_with_defaults(self):
        calibrator = Calibrator()
        assert calibrator.state == CalibrationState.IDLE
        assert not calibrator.is_calibrating
        assert calibrator.thresholds.noise_floor == 0.01
        assert calibrator.thresholds.score_base == 0.01

    def test_idle_ignores_samples(self):
        calibrator = Calibrator()
        assert calibrator.update(0.5, 200.0) is None
        assert calibrator.get_metrics()["collected_samples"] == 0

    def test_derives_thresholds(self):
        """Mean |tremor| of 0.05 gives noise floor 0.09 and score base 0.07."""
        calibrator = Calibrator()
        calibrator.start(100.0)

        values = [0.05 if i % 2 == 0 else -0.05 for i in range(249)]
        assert _feed(calibrator, values, 102.5) is None
        assert calibrator.is_calibrating

        result = calibrator.update(-0.05, 105.0)
        assert result is not None
        assert result.baseline == pytest.approx(0.05)
        assert result.noise_floor == pytest.approx(0.09)
        assert result.score_base == pytest.approx(0.07)
        assert result.sample_count == 250

        assert calibrator.state == CalibrationState.IDLE
        assert calibrator.thresholds.noise_floor == pytest.approx(0.09)
        assert calibrator.thresholds.score_base == pytest.approx(0.07)
        assert calibrator.last_result is result

    def test_completes_only_after_duration(self):
        calibrator = Calibrator()
        calibrator.start(0.0)
        assert calibrator.update(0.1, 4.999) is None
        assert calibrator.update(0.1, 5.0) is not None

    def test_quiet_calibration_clamps_to_minimum(self):
        calibrator = Calibrator()
        calibrator.start(0.0)
        _feed(calibrator, [0.0] * 10, 1.0)
        result = calibrator.update(0.0, 5.0)
        assert result.noise_floor == pytest.approx(0.001)
        assert result.score_base == pytest.approx(0.001)

    def test_restart_abandons_prior_run(self):
        calibrator = Calibrator()
        calibrator.start(0.0)
        _feed(calibrator, [10.0] * 50, 1.0)

        calibrator.start(2.0)
        assert calibrator.is_calibrating
        assert calibrator.update(0.05, 6.9) is None
        result = calibrator.update(0.05, 7.0)
        assert result.baseline == pytest.approx(0.05)
        assert result.sample_count == 2

    def test_custom_parameters(self):
        params = CalibrationParameters(
            duration_ms=1000.0,
            noise_floor_multiplier=2.0,
            score_base_multiplier=1.0,
        )
        calibrator = Calibrator(params)
        calibrator.start(0.0)
        result = calibrator.update(0.1, 1.0)
        assert result.noise_floor == pytest.approx(0.2)
        assert result.score_base == pytest.approx(0.1)

    def test_reset_restores_initial_thresholds(self):
        initial = CalibrationThresholds(noise_floor=0.02, score_base=0.03)
        calibrator = Calibrator(initial_thresholds=initial)
        calibrator.start(0.0)
        calibrator.update(0.5, 5.0)
        assert calibrator.thresholds != initial

        calibrator.reset()
        assert calibrator.thresholds == initial
        assert calibrator.last_result is None

    def test_thresholds_reject_values_below_minimum(self):
        with pytest.raises(ValueError):
            CalibrationThresholds(noise_floor=0.0, score_base=0.01)
