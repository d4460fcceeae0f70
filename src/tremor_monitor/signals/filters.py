"""
High-Pass Filter
================

Second-order recursive high-pass filter removing gravity and DC bias from
one acceleration axis.

Design:
    Resonator-based biquad high-pass (RBJ cookbook form):

        w0    = 2π · fc / fs
        alpha = sin(w0) / (2Q)
        b0 = b2 = (1 + cos w0) / 2,   b1 = -(1 + cos w0)
        a0 = 1 + alpha,  a1 = -2 cos w0,  a2 = 1 - alpha

    All coefficients are divided by a0 so the recursion is

        y = b0·x + b1·x1 + b2·x2 - a1·y1 - a2·y2

    b0 + b1 + b2 == 0, so a constant input decays to zero output.

One instance per axis. Instances never share state.
"""

import logging
import math


logger = logging.getLogger(__name__)


class HighPassFilter:
    """
    Biquad high-pass filter for a single axis.

    Attributes:
        sample_rate_hz: Sampling rate of the input stream
        cutoff_hz: -3 dB cutoff frequency
        q: Quality factor (0.7071 = Butterworth)
        b0, b1, b2, a1, a2: Normalized coefficients

    Example:
        hpf = HighPassFilter(sample_rate_hz=50.0, cutoff_hz=3.5)
        for x in samples:
            y = hpf.process(x)
    """

    __slots__ = (
        "sample_rate_hz",
        "cutoff_hz",
        "q",
        "b0",
        "b1",
        "b2",
        "a1",
        "a2",
        "_x1",
        "_x2",
        "_y1",
        "_y2",
    )

    def __init__(
        self,
        sample_rate_hz: float,
        cutoff_hz: float,
        q: float = 0.7071,
    ) -> None:
        """
        Compute filter coefficients.

        Args:
            sample_rate_hz: Sampling rate in Hz (> 0)
            cutoff_hz: Cutoff in Hz, in (0, sample_rate_hz / 2)
            q: Quality factor (> 0)

        Raises:
            ValueError: If the configuration cannot produce a stable filter
        """
        if sample_rate_hz <= 0:
            raise ValueError(f"sample_rate_hz must be > 0, got {sample_rate_hz}")
        if not 0 < cutoff_hz < sample_rate_hz / 2:
            raise ValueError(
                f"cutoff_hz must be in (0, {sample_rate_hz / 2}), got {cutoff_hz}"
            )
        if q <= 0:
            raise ValueError(f"q must be > 0, got {q}")

        self.sample_rate_hz = sample_rate_hz
        self.cutoff_hz = cutoff_hz
        self.q = q

        w0 = 2.0 * math.pi * cutoff_hz / sample_rate_hz
        cos_w = math.cos(w0)
        alpha = math.sin(w0) / (2.0 * q)

        a0 = 1.0 + alpha
        self.b0 = ((1.0 + cos_w) / 2.0) / a0
        self.b1 = -(1.0 + cos_w) / a0
        self.b2 = ((1.0 + cos_w) / 2.0) / a0
        self.a1 = (-2.0 * cos_w) / a0
        self.a2 = (1.0 - alpha) / a0

        self._x1 = 0.0
        self._x2 = 0.0
        self._y1 = 0.0
        self._y2 = 0.0

    def process(self, x: float) -> float:
        """
        Filter one sample.

        Args:
            x: Raw input value

        Returns:
            Filtered output value
        """
        y = (
            self.b0 * x
            + self.b1 * self._x1
            + self.b2 * self._x2
            - self.a1 * self._y1
            - self.a2 * self._y2
        )
        self._x2 = self._x1
        self._x1 = x
        self._y2 = self._y1
        self._y1 = y
        return y

    def reset(self) -> None:
        """Clear the two-sample input/output history."""
        self._x1 = self._x2 = self._y1 = self._y2 = 0.0

    @property
    def coefficients(self) -> tuple:
        """(b0, b1, b2, a1, a2)"""
        return (self.b0, self.b1, self.b2, self.a1, self.a2)

    def __repr__(self) -> str:
        return (
            f"HighPassFilter(fs={self.sample_rate_hz}, "
            f"fc={self.cutoff_hz}, q={self.q})"
        )


class AxisFilterBank:
    """
    Three independent high-pass filters, one per spatial axis.
    """

    def __init__(
        self,
        sample_rate_hz: float,
        cutoff_hz: float,
        q: float = 0.7071,
    ) -> None:
        self.x = HighPassFilter(sample_rate_hz, cutoff_hz, q)
        self.y = HighPassFilter(sample_rate_hz, cutoff_hz, q)
        self.z = HighPassFilter(sample_rate_hz, cutoff_hz, q)

        logger.info(
            f"AxisFilterBank initialized: fs={sample_rate_hz}Hz, "
            f"cutoff={cutoff_hz}Hz, Q={q}"
        )

    def process(self, x: float, y: float, z: float) -> tuple:
        """Filter one raw triple. Returns (fx, fy, fz)."""
        return (self.x.process(x), self.y.process(y), self.z.process(z))

    def reset(self) -> None:
        self.x.reset()
        self.y.reset()
        self.z.reset()
