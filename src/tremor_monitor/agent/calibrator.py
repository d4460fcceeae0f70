"""
Calibrator
==========

One-shot measurement of the ambient noise level, used to derive the
classifier's decision thresholds.

States:
    IDLE        default; tremor samples are ignored
    COLLECTING  every tremor sample adds |value| to an accumulator

Transitions:
    IDLE → COLLECTING        start(now); accumulator reset, start recorded
    COLLECTING → COLLECTING  start(now) again; prior run abandoned
    COLLECTING → IDLE        elapsed >= duration; thresholds published

Derivation:
    baseline    = sum(|tremor|) / count
    noise_floor = max(0.001, baseline × 1.8)
    score_base  = max(0.001, baseline × 1.4)

Collection runs at full sample rate, independent of window completion.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tremor_monitor.models.classification import (
    MIN_THRESHOLD,
    CalibrationResult,
    CalibrationThresholds,
)


logger = logging.getLogger(__name__)


class CalibrationState(str, Enum):
    """Calibrator states."""

    IDLE = "IDLE"
    COLLECTING = "COLLECTING"


@dataclass
class CalibrationParameters:
    """
    Calibration constants.

    The multipliers are empirically tuned; defaults reproduce the device
    firmware exactly.
    """

    duration_ms: float = 5000.0
    noise_floor_multiplier: float = 1.8
    score_base_multiplier: float = 1.4
    min_threshold: float = MIN_THRESHOLD


class Calibrator:
    """
    Idle/Collecting state machine owning the current thresholds.

    The classifier reads `thresholds` on every window; a completed run
    replaces the snapshot wholesale.

    Example:
        calibrator = Calibrator()
        calibrator.start(now=clock())
        for tremor in samples:
            result = calibrator.update(tremor, now=clock())
            if result:
                print(result.noise_floor)
    """

    def __init__(
        self,
        parameters: Optional[CalibrationParameters] = None,
        initial_thresholds: Optional[CalibrationThresholds] = None,
    ) -> None:
        """
        Initialize calibrator in IDLE.

        Args:
            parameters: Calibration constants (defaults if None)
            initial_thresholds: Thresholds used until the first calibration
        """
        self.parameters = parameters or CalibrationParameters()
        self._thresholds = initial_thresholds or CalibrationThresholds()
        self._initial_thresholds = self._thresholds

        self._state = CalibrationState.IDLE
        self._start_time: float = 0.0
        self._sum: float = 0.0
        self._count: int = 0
        self._completed_runs: int = 0
        self._last_result: Optional[CalibrationResult] = None

        logger.info(
            f"Calibrator initialized: duration={self.parameters.duration_ms:.0f}ms, "
            f"noise_floor={self._thresholds.noise_floor}, "
            f"score_base={self._thresholds.score_base}"
        )

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def is_calibrating(self) -> bool:
        return self._state == CalibrationState.COLLECTING

    @property
    def thresholds(self) -> CalibrationThresholds:
        """Latest published thresholds."""
        return self._thresholds

    @property
    def last_result(self) -> Optional[CalibrationResult]:
        return self._last_result

    def start(self, now: float) -> None:
        """
        Begin (or restart) a calibration run.

        Args:
            now: Current clock time in seconds
        """
        if self.is_calibrating:
            logger.warning(
                f"Calibration restarted, abandoning {self._count} collected samples"
            )

        self._state = CalibrationState.COLLECTING
        self._start_time = now
        self._sum = 0.0
        self._count = 0

        logger.info(f"Calibration started ({self.parameters.duration_ms:.0f}ms)")

    def update(self, tremor_sample: float, now: float) -> Optional[CalibrationResult]:
        """
        Feed one tremor sample.

        Args:
            tremor_sample: Tremor sample from the detrender
            now: Current clock time in seconds

        Returns:
            CalibrationResult when this sample completes the run, else None
        """
        if not self.is_calibrating:
            return None

        self._sum += abs(tremor_sample)
        self._count += 1

        elapsed_ms = (now - self._start_time) * 1000.0
        if elapsed_ms < self.parameters.duration_ms:
            return None

        return self._complete()

    def _complete(self) -> CalibrationResult:
        """Derive and publish thresholds, return to IDLE."""
        p = self.parameters
        baseline = self._sum / self._count

        result = CalibrationResult(
            baseline=baseline,
            noise_floor=max(p.min_threshold, baseline * p.noise_floor_multiplier),
            score_base=max(p.min_threshold, baseline * p.score_base_multiplier),
            sample_count=self._count,
        )

        self._thresholds = result.thresholds
        self._last_result = result
        self._completed_runs += 1

        self._state = CalibrationState.IDLE
        self._sum = 0.0
        self._count = 0

        logger.info(
            f"Calibration complete: baseline={result.baseline:.6f}, "
            f"noise_floor={result.noise_floor:.6f}, "
            f"score_base={result.score_base:.6f} "
            f"({result.sample_count} samples)"
        )
        return result

    def reset(self) -> None:
        """Abort any run and restore the initial thresholds."""
        self._state = CalibrationState.IDLE
        self._sum = 0.0
        self._count = 0
        self._thresholds = self._initial_thresholds
        self._last_result = None
        logger.info("Calibrator reset")

    def get_metrics(self) -> dict:
        """Get calibrator metrics for observability."""
        return {
            "state": self._state.value,
            "noise_floor": self._thresholds.noise_floor,
            "score_base": self._thresholds.score_base,
            "collected_samples": self._count,
            "completed_runs": self._completed_runs,
        }
