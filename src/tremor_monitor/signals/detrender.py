"""
Detrender
=========

Two-stage removal of the non-tremor components of the filtered signal.

Stage 1 (per axis):
    Each high-passed sample is written into that axis's moving average.
    The stage output is `filtered - axis_mean`, removing residual drift.

Stage 2 (magnitude):
    norm = sqrt(dx² + dy² + dz²) is written into a fourth, independent
    moving average. Its mean is the slow baseline ("mean_norm"), used by
    the classifier as the voluntary-motion indicator. The tremor sample
    pushed into the analysis window is `norm - mean_norm`.

Warm-up:
    Every moving average divides by its own fill count until it has
    wrapped once, then by its capacity.
"""

import logging
import math

from tremor_monitor.models.sample import DetrendedSample
from tremor_monitor.signals.moving_average import MovingAverage


logger = logging.getLogger(__name__)


class Detrender:
    """
    Per-axis mean removal followed by slow-magnitude removal.

    Attributes:
        length: Moving-average capacity shared by all four trackers

    Example:
        detrender = Detrender(length=20)
        out = detrender.update(fx, fy, fz)
        window.push(out.tremor)
    """

    def __init__(self, length: int = 20) -> None:
        """
        Initialize the four moving-average trackers.

        Args:
            length: Moving-average capacity (>= 1)
        """
        if length < 1:
            raise ValueError("length must be >= 1")

        self.length = length
        self._axis_x = MovingAverage(length)
        self._axis_y = MovingAverage(length)
        self._axis_z = MovingAverage(length)
        self._magnitude = MovingAverage(length)

        logger.info(f"Detrender initialized: moving average length={length}")

    def update(self, fx: float, fy: float, fz: float) -> DetrendedSample:
        """
        Detrend one filtered triple.

        Args:
            fx: High-passed X value
            fy: High-passed Y value
            fz: High-passed Z value

        Returns:
            DetrendedSample carrying the per-axis residuals, the magnitude,
            its slow baseline and the resulting tremor sample
        """
        dx = fx - self._axis_x.update(fx)
        dy = fy - self._axis_y.update(fy)
        dz = fz - self._axis_z.update(fz)

        norm = math.sqrt(dx * dx + dy * dy + dz * dz)
        mean_norm = self._magnitude.update(norm)

        return DetrendedSample(
            dx=dx,
            dy=dy,
            dz=dz,
            norm=norm,
            mean_norm=mean_norm,
            tremor=norm - mean_norm,
        )

    @property
    def mean_norm(self) -> float:
        """Current slow-magnitude baseline."""
        return self._magnitude.mean

    @property
    def trackers(self) -> tuple:
        """(x, y, z, magnitude) moving averages, for inspection."""
        return (self._axis_x, self._axis_y, self._axis_z, self._magnitude)

    def reset(self) -> None:
        for tracker in self.trackers:
            tracker.reset()
        logger.info("Detrender reset")
