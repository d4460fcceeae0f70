"""
Session Aggregation
===================

Running statistics over successive classification results.

Counters:
    - window count, score sum, peak score
    - one dominance counter per tremor type (Parkinsonian, Essential,
      Physiological), incremented only when that band won dominance
    - a separate voluntary-movement counter

Mixed/Weak and No Tremor windows count toward the averages but not
toward any type counter.

The session start is set lazily on the first classified window and
cleared by reset().
"""

import logging
from typing import Dict, Optional

from tremor_monitor.models.classification import (
    ClassificationResult,
    MotionType,
    TREMOR_TYPES,
)
from tremor_monitor.models.session import SessionStats


logger = logging.getLogger(__name__)


class SessionAggregator:
    """
    Accumulates session statistics.

    Example:
        aggregator = SessionAggregator()
        aggregator.update(result, now=clock())
        stats = aggregator.summary(now=clock())
    """

    def __init__(self) -> None:
        self._start_time: Optional[float] = None
        self._score_sum: float = 0.0
        self._window_count: int = 0
        self._peak_score: float = 0.0
        self._type_counts: Dict[MotionType, int] = {t: 0 for t in TREMOR_TYPES}
        self._voluntary_count: int = 0

    def update(self, result: ClassificationResult, now: float) -> None:
        """
        Fold one classification result into the session.

        Args:
            result: Classification of the latest window
            now: Current clock time in seconds
        """
        if self._start_time is None:
            self._start_time = now
            logger.info("Session started")

        self._window_count += 1
        self._score_sum += result.score
        if result.score > self._peak_score:
            self._peak_score = result.score

        if result.motion_type.is_tremor_type:
            self._type_counts[result.motion_type] += 1
        elif result.motion_type == MotionType.VOLUNTARY:
            self._voluntary_count += 1

    def dominant_type(self) -> Optional[MotionType]:
        """Tremor type whose counter is strictly greatest, else None."""
        for motion_type, count in self._type_counts.items():
            others = [c for t, c in self._type_counts.items() if t != motion_type]
            if all(count > other for other in others):
                return motion_type
        return None

    def summary(self, now: float) -> SessionStats:
        """
        Snapshot of the session.

        Args:
            now: Current clock time in seconds

        Returns:
            SessionStats
        """
        if self._start_time is None:
            duration_ms = 0
        else:
            duration_ms = max(0, int((now - self._start_time) * 1000.0))

        average = self._score_sum / self._window_count if self._window_count else 0.0

        return SessionStats(
            start_time=self._start_time,
            duration_ms=duration_ms,
            window_count=self._window_count,
            score_sum=self._score_sum,
            average_score=average,
            peak_score=self._peak_score,
            parkinsonian_count=self._type_counts[MotionType.PARKINSONIAN],
            essential_count=self._type_counts[MotionType.ESSENTIAL],
            physiological_count=self._type_counts[MotionType.PHYSIOLOGICAL],
            voluntary_count=self._voluntary_count,
            dominant=self.dominant_type(),
        )

    @property
    def window_count(self) -> int:
        return self._window_count

    def reset(self) -> None:
        """Zero all counters and clear the start time."""
        self._start_time = None
        self._score_sum = 0.0
        self._window_count = 0
        self._peak_score = 0.0
        self._type_counts = {t: 0 for t in TREMOR_TYPES}
        self._voluntary_count = 0
        logger.info("Session reset")
