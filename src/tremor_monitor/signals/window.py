"""
Window Accumulator
==================

Fixed-length, non-overlapping analysis window of tremor samples.

Design Rules:
    - Exactly one window is open at a time (no overlap, no double buffer)
    - push() reports "full" exactly once per `size` pushes
    - The completed window is readable until the next push, which starts
      a fresh window by overwriting from index 0
    - Storage is allocated once; nothing grows
"""

import numpy as np


class WindowAccumulator:
    """
    Fixed-capacity window of tremor samples.

    Attributes:
        size: Samples per analysis window (N)

    Example:
        window = WindowAccumulator(size=128)
        if window.push(sample.tremor):
            powers = analyzer.analyze(window.values)
    """

    def __init__(self, size: int = 128) -> None:
        """
        Allocate the window.

        Args:
            size: Samples per window (>= 1)
        """
        if size < 1:
            raise ValueError("size must be >= 1")

        self.size = size
        self._buffer = np.zeros(size, dtype=np.float64)
        self._index: int = 0
        self._complete: bool = False
        self._windows_completed: int = 0

    def push(self, value: float) -> bool:
        """
        Append a sample.

        Args:
            value: Tremor sample

        Returns:
            True if this push completed the window
        """
        if self._complete:
            # Previous window was consumed; start a new one
            self._complete = False

        self._buffer[self._index] = value
        self._index += 1

        if self._index >= self.size:
            self._index = 0
            self._complete = True
            self._windows_completed += 1
            return True

        return False

    @property
    def is_full(self) -> bool:
        """Whether the last push completed a window."""
        return self._complete

    @property
    def values(self) -> np.ndarray:
        """
        Read-only view of the window contents.

        Only meaningful as a complete window while is_full is True.
        """
        view = self._buffer.view()
        view.flags.writeable = False
        return view

    @property
    def length(self) -> int:
        """Number of samples in the current window."""
        return self.size if self._complete else self._index

    @property
    def windows_completed(self) -> int:
        return self._windows_completed

    def reset(self) -> None:
        self._index = 0
        self._complete = False
