"""
Data Models
===========

Data models for the tremor monitor.

This module re-exports all data models for convenient access.

Models:
    Samples:
        - RawSample: One accelerometer reading (g)
        - DetrendedSample: Per-tick output of the detrending stage

    Input:
        - SampleMessage: Schema for messages from a sensor bridge

    Classification:
        - MotionType: Closed set of window labels
        - BandPowers: Aggregate power per tremor band
        - CalibrationThresholds: Noise floor and score base
        - CalibrationResult: Outcome of a calibration run
        - ClassificationResult: Outcome of one analysis window

    Session:
        - SessionStats: Running session summary

    Output:
        - TremorEvent and its payloads (sample, bands, calibrated, session)
"""

from tremor_monitor.models.sample import DetrendedSample, RawSample
from tremor_monitor.models.input import SampleMessage
from tremor_monitor.models.classification import (
    BandPowers,
    CalibrationResult,
    CalibrationThresholds,
    ClassificationResult,
    MotionType,
    MAX_SCORE,
    TREMOR_TYPES,
)
from tremor_monitor.models.session import SessionStats
from tremor_monitor.models.output import (
    BandsCsvEvent,
    BandsEvent,
    CalibratedEvent,
    EventType,
    SampleEvent,
    SessionEvent,
    TremorEvent,
)

__all__ = [
    # Samples
    "RawSample",
    "DetrendedSample",
    # Input
    "SampleMessage",
    # Classification
    "MotionType",
    "TREMOR_TYPES",
    "MAX_SCORE",
    "BandPowers",
    "CalibrationThresholds",
    "CalibrationResult",
    "ClassificationResult",
    # Session
    "SessionStats",
    # Output
    "EventType",
    "SampleEvent",
    "BandsEvent",
    "BandsCsvEvent",
    "CalibratedEvent",
    "SessionEvent",
    "TremorEvent",
]
