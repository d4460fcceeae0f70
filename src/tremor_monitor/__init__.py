"""
TremorMonitor
=============

Real-time tremor classification from a 3-axis accelerometer stream.

This package provides the signal-processing core and a thin service layer
around it. It consumes raw acceleration samples, isolates the tremor-band
component of the motion, and classifies each analysis window as a tremor
type, voluntary movement, or no tremor, with a severity score and running
session statistics.

Components:
    - signals: High-pass filtering, detrending, windowing, band powers
    - agent: Calibration, classification and session aggregation
    - stream: Sample sources (WebSocket, simulator) and event fan-out
    - observability: Session report analytics

Example:
    from tremor_monitor.pipeline import TremorPipeline, PipelineConfig
    from tremor_monitor.models import RawSample

    pipeline = TremorPipeline(PipelineConfig())
    result = pipeline.on_sample(RawSample(x=0.01, y=-0.02, z=1.0, timestamp=0.0))
"""

__version__ = "0.1.0"
__author__ = "TremorMonitor Project"

__all__ = [
    "__version__",
]
