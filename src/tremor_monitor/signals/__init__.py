"""
Signals Module
==============

Per-sample signal processing for tremor analysis.

This module turns raw accelerometer triples into tremor samples and, once
per analysis window, into band powers:

    raw → HighPassFilter ×3 → Detrender → WindowAccumulator → SpectralAnalyzer
"""

from tremor_monitor.signals.filters import AxisFilterBank, HighPassFilter
from tremor_monitor.signals.moving_average import MovingAverage
from tremor_monitor.signals.detrender import Detrender
from tremor_monitor.signals.window import WindowAccumulator
from tremor_monitor.signals.spectral import (
    DEFAULT_BANDS,
    BandDefinition,
    SpectralAnalyzer,
    goertzel_power,
)

__all__ = [
    "HighPassFilter",
    "AxisFilterBank",
    "MovingAverage",
    "Detrender",
    "WindowAccumulator",
    "BandDefinition",
    "DEFAULT_BANDS",
    "SpectralAnalyzer",
    "goertzel_power",
]
