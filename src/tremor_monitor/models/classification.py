"""
Classification Models
=====================

Data types produced by the band-power and classification stages.

Core Concepts:
    - MotionType: Closed set of labels a window can receive
    - BandPowers: One aggregate power value per tremor band
    - CalibrationThresholds: Noise floor and score base in use
    - ClassificationResult: Everything known about one analysis window

Label Set:
    "No Tremor", "Voluntary Movement", "Parkinsonian",
    "Essential", "Physiological", "Mixed/Weak"
"""

from dataclasses import dataclass
from enum import Enum


# Hard floor for both calibration thresholds
MIN_THRESHOLD = 0.001

# Upper end of the severity scale
MAX_SCORE = 10.0


class MotionType(str, Enum):
    """
    Motion label assigned to a completed window.

    The string values are part of the outward protocol and must not change.
    """

    NO_TREMOR = "No Tremor"
    VOLUNTARY = "Voluntary Movement"
    PARKINSONIAN = "Parkinsonian"
    ESSENTIAL = "Essential"
    PHYSIOLOGICAL = "Physiological"
    MIXED_WEAK = "Mixed/Weak"

    @property
    def is_tremor_type(self) -> bool:
        """Whether this label names one of the three tremor bands."""
        return self in TREMOR_TYPES


TREMOR_TYPES = (
    MotionType.PARKINSONIAN,
    MotionType.ESSENTIAL,
    MotionType.PHYSIOLOGICAL,
)


@dataclass(frozen=True, slots=True)
class BandPowers:
    """
    Aggregate Goertzel power per band for one window.

    Attributes:
        p1: Parkinsonian band (~4-6 Hz)
        p2: Essential band (~6-8 Hz)
        p3: Physiological band (~8-12 Hz)
    """

    p1: float
    p2: float
    p3: float

    def as_tuple(self) -> tuple:
        return (self.p1, self.p2, self.p3)

    def __repr__(self) -> str:
        return f"BandPowers(p1={self.p1:.6f}, p2={self.p2:.6f}, p3={self.p3:.6f})"


@dataclass(frozen=True, slots=True)
class CalibrationThresholds:
    """
    Decision thresholds read by the classifier.

    Replaced wholesale when a calibration completes.

    Attributes:
        noise_floor: Band powers at or below this are treated as noise
        score_base: Normalization base for the logarithmic score
    """

    noise_floor: float = 0.01
    score_base: float = 0.01

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.noise_floor < MIN_THRESHOLD:
            raise ValueError(f"noise_floor must be >= {MIN_THRESHOLD}")
        if self.score_base < MIN_THRESHOLD:
            raise ValueError(f"score_base must be >= {MIN_THRESHOLD}")


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    """
    Emitted once when a calibration run completes.

    Attributes:
        baseline: Mean absolute tremor sample over the calibration period
        noise_floor: Derived noise floor
        score_base: Derived score normalization base
        sample_count: Number of tremor samples averaged
    """

    baseline: float
    noise_floor: float
    score_base: float
    sample_count: int

    @property
    def thresholds(self) -> CalibrationThresholds:
        return CalibrationThresholds(
            noise_floor=self.noise_floor,
            score_base=self.score_base,
        )


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """
    Classification of one completed analysis window.

    Attributes:
        powers: Raw (ungated) band powers
        motion_type: Assigned label
        confidence: Confidence in the label [0, 1]
        score: Severity score [0, 10]
        mean_norm: Slow-motion magnitude used for the voluntary check (g)
    """

    powers: BandPowers
    motion_type: MotionType
    confidence: float
    score: float
    mean_norm: float

    def __repr__(self) -> str:
        return (
            f"ClassificationResult({self.motion_type.value}, "
            f"conf={self.confidence:.3f}, score={self.score:.3f}, "
            f"mean_norm={self.mean_norm:.4f})"
        )

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "p1": self.powers.p1,
            "p2": self.powers.p2,
            "p3": self.powers.p3,
            "type": self.motion_type.value,
            "confidence": round(self.confidence, 3),
            "score": round(self.score, 3),
            "mean_norm": round(self.mean_norm, 4),
        }
