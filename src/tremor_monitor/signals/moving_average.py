"""
Moving Average
==============

Fixed-capacity circular moving average with an O(1) running sum.

Mechanics:
    - The value being overwritten is subtracted from the running sum
      before the new value is written and added
    - Until the buffer has wrapped once, the mean divides by the number
      of values written so far (no bias toward zero during warm-up)
    - After wrapping, the mean divides by the capacity

Invariant:
    running_sum == sum(buffer contents)   (within floating-point error)
"""

import numpy as np


class MovingAverage:
    """
    Circular moving average over the last `capacity` values.

    Attributes:
        capacity: Number of values averaged in steady state

    Example:
        ma = MovingAverage(capacity=20)
        mean = ma.update(0.12)
    """

    def __init__(self, capacity: int = 20) -> None:
        """
        Initialize an empty moving average.

        Args:
            capacity: Buffer length (>= 1)
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self.capacity = capacity
        self._buffer = np.zeros(capacity, dtype=np.float64)
        self._sum: float = 0.0
        self._cursor: int = 0
        self._count: int = 0
        self._filled: bool = False

    def update(self, value: float) -> float:
        """
        Write a value and return the new mean.

        Args:
            value: New sample

        Returns:
            Mean of the values currently held
        """
        self._sum -= float(self._buffer[self._cursor])
        self._buffer[self._cursor] = value
        self._sum += value

        self._cursor += 1
        if self._cursor >= self.capacity:
            self._cursor = 0
            self._filled = True

        if not self._filled:
            self._count += 1

        return self.mean

    @property
    def mean(self) -> float:
        """Current mean (0.0 before any value is written)."""
        if self._filled:
            return self._sum / self.capacity
        if self._count == 0:
            return 0.0
        return self._sum / self._count

    @property
    def running_sum(self) -> float:
        return float(self._sum)

    @property
    def filled(self) -> bool:
        """Whether the buffer has wrapped at least once."""
        return self._filled

    @property
    def count(self) -> int:
        """Number of values currently contributing to the mean."""
        return self.capacity if self._filled else self._count

    @property
    def buffer(self) -> np.ndarray:
        """Read-only view of the raw buffer."""
        view = self._buffer.view()
        view.flags.writeable = False
        return view

    def reset(self) -> None:
        self._buffer.fill(0.0)
        self._sum = 0.0
        self._cursor = 0
        self._count = 0
        self._filled = False
