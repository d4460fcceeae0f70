"""
Classifier Tests
================

Tests for the deterministic band-power classifier.
"""

import math

import numpy as np
import pytest

from tremor_monitor.agent import Classifier, ClassifierParameters
from tremor_monitor.models.classification import (
    BandPowers,
    CalibrationThresholds,
    MotionType,
)
from tremor_monitor.signals import SpectralAnalyzer


@pytest.fixture
def classifier():
    return Classifier()


class TestClassifierRules:
    """Tests for the ordered classification rules."""

    def test_zero_powers_no_tremor(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(0.0, 0.0, 0.0), 0.0, default_thresholds)
        assert result.motion_type == MotionType.NO_TREMOR
        assert result.confidence == 1.0
        assert result.score == 0.0

    def test_sub_floor_powers_are_gated(self, classifier, default_thresholds):
        result = classifier.classify(
            BandPowers(0.009, 0.009, 0.009), 0.0, default_thresholds
        )
        assert result.motion_type == MotionType.NO_TREMOR
        assert result.score == 0.0

    def test_five_hz_sinusoid_is_parkinsonian(self, classifier, default_thresholds, sine_window):
        powers = SpectralAnalyzer(50.0).analyze(sine_window(5.0, amplitude=0.1))
        result = classifier.classify(powers, 0.05, default_thresholds)

        assert result.motion_type == MotionType.PARKINSONIAN
        total = powers.p1 + powers.p2 + powers.p3
        assert result.confidence == pytest.approx(powers.p1 / total)
        assert 0.0 < result.score <= 10.0

    def test_slow_broad_motion_is_voluntary(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(0.5, 0.4, 0.3), 0.9, default_thresholds)
        assert result.motion_type == MotionType.VOLUNTARY
        assert result.confidence == 0.6
        assert result.score == pytest.approx(math.log10(1.2 / 0.01 + 1.0) * 3.0)

    def test_voluntary_needs_low_total(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(6.0, 1.0, 1.0), 0.9, default_thresholds)
        assert result.motion_type == MotionType.PARKINSONIAN

    def test_voluntary_needs_high_mean_norm(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(0.5, 0.4, 0.3), 0.7, default_thresholds)
        assert result.motion_type == MotionType.PARKINSONIAN

    @pytest.mark.parametrize(
        "powers, expected",
        [
            ((2.0, 1.0, 0.5), MotionType.PARKINSONIAN),
            ((1.0, 2.0, 0.5), MotionType.ESSENTIAL),
            ((0.5, 1.0, 2.0), MotionType.PHYSIOLOGICAL),
        ],
    )
    def test_dominant_band(self, classifier, default_thresholds, powers, expected):
        result = classifier.classify(BandPowers(*powers), 0.1, default_thresholds)
        assert result.motion_type == expected
        assert result.confidence == pytest.approx(max(powers) / sum(powers))

    def test_tie_is_mixed(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(1.0, 1.0, 0.1), 0.1, default_thresholds)
        assert result.motion_type == MotionType.MIXED_WEAK
        assert result.confidence == pytest.approx(0.5)

    def test_weak_dominance_is_mixed(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(0.2, 0.05, 0.02), 0.1, default_thresholds)
        assert result.motion_type == MotionType.MIXED_WEAK
        assert result.confidence <= 0.5

    def test_gated_band_cannot_compete(self, classifier, default_thresholds):
        result = classifier.classify(BandPowers(0.005, 0.5, 0.005), 0.1, default_thresholds)
        assert result.motion_type == MotionType.ESSENTIAL
        assert result.confidence == pytest.approx(1.0)

    def test_result_keeps_raw_powers(self, classifier, default_thresholds):
        powers = BandPowers(0.005, 0.5, 0.005)
        result = classifier.classify(powers, 0.1, default_thresholds)
        assert result.powers == powers

    def test_deterministic(self, classifier, default_thresholds):
        powers = BandPowers(1.3, 0.7, 0.2)
        first = classifier.classify(powers, 0.2, default_thresholds)
        second = classifier.classify(powers, 0.2, default_thresholds)
        assert first == second


class TestScore:
    """Tests for the severity score mapping."""

    def test_score_formula(self, classifier):
        thresholds = CalibrationThresholds(noise_floor=0.01, score_base=0.05)
        assert classifier.score(1.0, thresholds) == pytest.approx(
            math.log10(1.0 / 0.05 + 1.0) * 3.0
        )

    def test_score_clamped_to_ten(self, classifier, default_thresholds):
        assert classifier.score(1e12, default_thresholds) == 10.0

    def test_score_zero_below_floor(self, classifier, default_thresholds):
        assert classifier.score(0.005, default_thresholds) == 0.0

    def test_score_monotonic(self, classifier, default_thresholds):
        totals = np.logspace(-2, 3, 30)
        scores = [classifier.score(float(t), default_thresholds) for t in totals]
        assert scores == sorted(scores)

    def test_custom_parameters(self, default_thresholds):
        classifier = Classifier(ClassifierParameters(score_scale=1.0, score_max=2.0))
        assert classifier.score(1e6, default_thresholds) == 2.0
