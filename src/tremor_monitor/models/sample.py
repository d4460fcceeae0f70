"""
Sample Models
=============

Internal sample representation for the ingestion pipeline.

This module defines the typed RawSample class that is used as the interface
between sample sources (WebSocket consumer, simulator, CSV replay) and the
signal-processing core.

Design Rules:
    - This is the ONLY sample format passed to the core
    - Values are accelerations in units of g
    - Sources are responsible for dropping non-finite readings
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RawSample:
    """
    One accelerometer reading.

    Attributes:
        x: Acceleration along the X axis (g)
        y: Acceleration along the Y axis (g)
        z: Acceleration along the Z axis (g)
        timestamp: Time the reading was taken (seconds)
    """

    x: float
    y: float
    z: float
    timestamp: float = 0.0

    def __repr__(self) -> str:
        return (
            f"RawSample(x={self.x:+.4f}, y={self.y:+.4f}, "
            f"z={self.z:+.4f}, t={self.timestamp:.3f})"
        )


@dataclass(frozen=True, slots=True)
class DetrendedSample:
    """
    Output of the detrending stage for one tick.

    Attributes:
        dx: X axis with its moving mean removed
        dy: Y axis with its moving mean removed
        dz: Z axis with its moving mean removed
        norm: Vector magnitude of (dx, dy, dz)
        mean_norm: Slow moving baseline of the magnitude
        tremor: norm - mean_norm, the value pushed into the window
    """

    dx: float
    dy: float
    dz: float
    norm: float
    mean_norm: float
    tremor: float
