"""
Classification Logic
====================

Deterministic mapping from band powers to a motion label, confidence
and severity score.

Rules (evaluated in order):
    1. Gating:   Pa = P if P > noise_floor else 0;  total = P1a + P2a + P3a
    2. Quiet:    total < noise_floor                    → No Tremor, conf 1.0
    3. Voluntary: mean_norm > 0.7 g AND total < 5.0     → Voluntary Movement, conf 0.6
    4. Dominance: one Pa strictly above both others AND > 0.3
                                                        → that band, conf Pa / total
                 otherwise                              → Mixed/Weak,
                                                          conf min(0.5, total / (total + noise_floor))

Score (independent of label, 0 in the quiet case):
    score = clamp(log10(total / score_base + 1) × 3.0, 0, 10)

No hidden state: identical inputs always produce identical outputs.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from tremor_monitor.models.classification import (
    BandPowers,
    CalibrationThresholds,
    ClassificationResult,
    MotionType,
    TREMOR_TYPES,
)


logger = logging.getLogger(__name__)


@dataclass
class ClassifierParameters:
    """
    Classification constants.

    Empirically tuned on the device; defaults must be kept for
    behavioural compatibility.
    """

    # Dominance
    dominance_min_power: float = 0.3

    # Voluntary-movement heuristic
    voluntary_mean_norm: float = 0.7
    voluntary_max_power: float = 5.0
    voluntary_confidence: float = 0.6

    # Mixed/Weak confidence cap
    mixed_max_confidence: float = 0.5

    # Score mapping
    score_scale: float = 3.0
    score_max: float = 10.0


class Classifier:
    """
    Stateless window classifier.

    Example:
        classifier = Classifier()
        result = classifier.classify(powers, mean_norm, calibrator.thresholds)
    """

    def __init__(self, parameters: Optional[ClassifierParameters] = None) -> None:
        """
        Initialize classifier.

        Args:
            parameters: Classification constants (defaults if None)
        """
        self.parameters = parameters or ClassifierParameters()
        p = self.parameters
        logger.info(
            f"Classifier initialized: dominance>{p.dominance_min_power}, "
            f"voluntary: mean_norm>{p.voluntary_mean_norm}g "
            f"and total<{p.voluntary_max_power}"
        )

    def classify(
        self,
        powers: BandPowers,
        mean_norm: float,
        thresholds: CalibrationThresholds,
    ) -> ClassificationResult:
        """
        Classify one window.

        Args:
            powers: Band powers of the window
            mean_norm: Slow-motion magnitude at window completion (g)
            thresholds: Current calibration thresholds

        Returns:
            ClassificationResult
        """
        p = self.parameters
        noise_floor = thresholds.noise_floor

        gated = tuple(
            power if power > noise_floor else 0.0 for power in powers.as_tuple()
        )
        total = gated[0] + gated[1] + gated[2]

        if total < noise_floor:
            motion_type, confidence = MotionType.NO_TREMOR, 1.0
        elif mean_norm > p.voluntary_mean_norm and total < p.voluntary_max_power:
            motion_type, confidence = MotionType.VOLUNTARY, p.voluntary_confidence
        else:
            motion_type, confidence = self._dominant_band(gated, total, noise_floor)

        score = self.score(total, thresholds)

        return ClassificationResult(
            powers=powers,
            motion_type=motion_type,
            confidence=confidence,
            score=score,
            mean_norm=mean_norm,
        )

    def _dominant_band(
        self,
        gated: Tuple[float, float, float],
        total: float,
        noise_floor: float,
    ) -> Tuple[MotionType, float]:
        """Pick the strictly dominant band, or fall back to Mixed/Weak."""
        p = self.parameters

        for i, power in enumerate(gated):
            others = gated[:i] + gated[i + 1:]
            if all(power > other for other in others) and power > p.dominance_min_power:
                return TREMOR_TYPES[i], power / total

        confidence = min(p.mixed_max_confidence, total / (total + noise_floor))
        return MotionType.MIXED_WEAK, confidence

    def score(self, total: float, thresholds: CalibrationThresholds) -> float:
        """
        Map gated total power to a 0-10 severity score.

        Args:
            total: Sum of gated band powers
            thresholds: Current calibration thresholds

        Returns:
            Score in [0, score_max]
        """
        p = self.parameters

        if total < thresholds.noise_floor:
            return 0.0

        try:
            scaled = math.log10(total / thresholds.score_base + 1.0) * p.score_scale
        except (ValueError, OverflowError):
            scaled = 0.0
        if not math.isfinite(scaled):
            scaled = 0.0

        return max(0.0, min(p.score_max, scaled))
