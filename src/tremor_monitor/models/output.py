"""
Output Event Models
===================

This module defines the outward event contract of the tremor monitor.

Every event is an envelope with a name and a payload:
    {"event": "bands", "data": {...}}

Event Payloads:
    sample:
        {"ax": 0.0012, "ay": -0.0031, "az": 0.0004}
    bands:
        {"b1": 12.5, "b2": 1.1, "b3": 0.2, "type": "Parkinsonian",
         "confidence": 0.903, "score": 9.27, "meanNorm": 0.0412}
    bands_csv:
        {"line": "12.500000,1.100000,0.200000,0.0412"}
    calibrated:
        {"baseline": 0.0051, "noiseFloor": 0.0092, "baseForScore": 0.0071}
    session:
        {"duration_ms": 25600, "avgScore": 4.2, "peakScore": 7.9,
         "windows": 10, "dominant": "Parkinsonian", ...}

Design Rules:
    - Field names are part of the protocol and match the device firmware
    - Payloads are built from core results, never the other way round
    - Serialization is the transport's job; models only describe shape
"""

from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field

from tremor_monitor.models.classification import (
    MAX_SCORE,
    CalibrationResult,
    ClassificationResult,
)
from tremor_monitor.models.sample import DetrendedSample
from tremor_monitor.models.session import SessionStats


class EventType(str, Enum):
    """Names of events emitted by the pipeline."""

    SAMPLE = "sample"
    BANDS = "bands"
    BANDS_CSV = "bands_csv"
    CALIBRATED = "calibrated"
    SESSION = "session"


class SampleEvent(BaseModel):
    """Detrended per-axis acceleration, decimated for display."""

    ax: float = Field(..., description="Detrended X acceleration (g)")
    ay: float = Field(..., description="Detrended Y acceleration (g)")
    az: float = Field(..., description="Detrended Z acceleration (g)")

    @classmethod
    def from_detrended(cls, sample: DetrendedSample) -> "SampleEvent":
        return cls(
            ax=round(sample.dx, 4),
            ay=round(sample.dy, 4),
            az=round(sample.dz, 4),
        )


class BandsEvent(BaseModel):
    """
    Classification of one analysis window.

    Attributes:
        b1: Parkinsonian band power
        b2: Essential band power
        b3: Physiological band power
        type: Motion label
        confidence: Label confidence [0, 1]
        score: Severity score [0, 10]
        meanNorm: Slow-motion magnitude (g)
    """

    b1: float = Field(..., ge=0.0, description="Parkinsonian band power")
    b2: float = Field(..., ge=0.0, description="Essential band power")
    b3: float = Field(..., ge=0.0, description="Physiological band power")
    type: str = Field(..., description="Motion label")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Label confidence")
    score: float = Field(..., ge=0.0, le=MAX_SCORE, description="Severity score")
    meanNorm: float = Field(..., description="Slow-motion magnitude (g)")

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "BandsEvent":
        return cls(
            b1=round(result.powers.p1, 6),
            b2=round(result.powers.p2, 6),
            b3=round(result.powers.p3, 6),
            type=result.motion_type.value,
            confidence=round(result.confidence, 3),
            score=round(result.score, 3),
            meanNorm=round(result.mean_norm, 4),
        )


class BandsCsvEvent(BaseModel):
    """Raw band powers as one CSV line: P1,P2,P3,meanNorm."""

    line: str = Field(..., description="CSV line for logging tools")

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "BandsCsvEvent":
        p = result.powers
        return cls(line=f"{p.p1:.6f},{p.p2:.6f},{p.p3:.6f},{result.mean_norm:.4f}")


class CalibratedEvent(BaseModel):
    """Thresholds derived by a completed calibration run."""

    baseline: float = Field(..., ge=0.0, description="Mean |tremor| during calibration")
    noiseFloor: float = Field(..., gt=0.0, description="New noise floor")
    baseForScore: float = Field(..., gt=0.0, description="New score normalization base")

    @classmethod
    def from_result(cls, result: CalibrationResult) -> "CalibratedEvent":
        return cls(
            baseline=round(result.baseline, 6),
            noiseFloor=round(result.noise_floor, 6),
            baseForScore=round(result.score_base, 6),
        )


class SessionEvent(BaseModel):
    """Running session summary."""

    duration_ms: int = Field(..., ge=0, description="Session duration (ms)")
    avgScore: float = Field(..., ge=0.0, description="Average window score")
    peakScore: float = Field(..., ge=0.0, description="Peak window score")
    windows: int = Field(..., ge=0, description="Windows classified")
    dominant: str = Field(..., description="Dominant tremor type or 'None'")
    parkinsonianCount: int = Field(default=0, ge=0)
    essentialCount: int = Field(default=0, ge=0)
    physiologicalCount: int = Field(default=0, ge=0)
    voluntaryCount: int = Field(default=0, ge=0)

    @classmethod
    def from_stats(cls, stats: SessionStats) -> "SessionEvent":
        return cls(
            duration_ms=stats.duration_ms,
            avgScore=round(stats.average_score, 3),
            peakScore=round(stats.peak_score, 3),
            windows=stats.window_count,
            dominant=stats.dominant_label,
            parkinsonianCount=stats.parkinsonian_count,
            essentialCount=stats.essential_count,
            physiologicalCount=stats.physiological_count,
            voluntaryCount=stats.voluntary_count,
        )


class TremorEvent(BaseModel):
    """
    Envelope for every outward event.

    Attributes:
        event: Event name
        data: Event payload (one of the models above, dumped)
    """

    event: EventType = Field(..., description="Event name")
    data: Dict[str, Any] = Field(..., description="Event payload")

    @classmethod
    def wrap(cls, event: EventType, payload: BaseModel) -> "TremorEvent":
        return cls(event=event, data=payload.model_dump(mode="json"))

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "event": "bands",
                "data": {
                    "b1": 12.5,
                    "b2": 1.1,
                    "b3": 0.2,
                    "type": "Parkinsonian",
                    "confidence": 0.903,
                    "score": 9.27,
                    "meanNorm": 0.0412,
                },
            }
        }
