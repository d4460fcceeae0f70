"""
Session Models
==============

Snapshot of the running session statistics.

SessionStats is produced on demand by SessionAggregator.summary(). It is a
read-only view; the aggregator owns the mutable counters.
"""

from dataclasses import dataclass
from typing import Optional

from tremor_monitor.models.classification import MotionType


@dataclass(frozen=True, slots=True)
class SessionStats:
    """
    Session summary at a point in time.

    Attributes:
        start_time: Clock time of the first classified window (None if none yet)
        duration_ms: Milliseconds since start_time (0 if no window yet)
        window_count: Number of classified windows
        score_sum: Cumulative severity score
        average_score: score_sum / window_count (0 if no window yet)
        peak_score: Highest score seen
        parkinsonian_count: Windows won by the Parkinsonian band
        essential_count: Windows won by the Essential band
        physiological_count: Windows won by the Physiological band
        voluntary_count: Windows labelled Voluntary Movement
        dominant: Tremor type with the strictly greatest count, or None
    """

    start_time: Optional[float]
    duration_ms: int
    window_count: int
    score_sum: float
    average_score: float
    peak_score: float
    parkinsonian_count: int
    essential_count: int
    physiological_count: int
    voluntary_count: int
    dominant: Optional[MotionType]

    @property
    def dominant_label(self) -> str:
        """Dominant type as its protocol string ("None" when undecided)."""
        return self.dominant.value if self.dominant is not None else "None"

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "duration_ms": self.duration_ms,
            "windows": self.window_count,
            "average_score": round(self.average_score, 3),
            "peak_score": round(self.peak_score, 3),
            "dominant": self.dominant_label,
            "parkinsonian_count": self.parkinsonian_count,
            "essential_count": self.essential_count,
            "physiological_count": self.physiological_count,
            "voluntary_count": self.voluntary_count,
        }
