"""
Sample Buffer
=============

Async-safe bounded queue between a sample source and the pipeline.

Design Rules:
    - Fixed maximum size (drops oldest on overflow)
    - Async-safe for producer/consumer pattern
    - Exposes minimal metrics for observability
    - Does NOT process or modify samples
"""

import asyncio
import logging
from typing import Optional

from tremor_monitor.models.sample import RawSample


logger = logging.getLogger(__name__)


class SampleBuffer:
    """
    Async-safe bounded queue for raw samples.

    Uses a drop-oldest policy when full, so a stalled pipeline always
    resumes on the freshest data.

    Example:
        buffer = SampleBuffer(maxsize=256)

        # Producer
        await buffer.put(sample)

        # Consumer
        sample = await buffer.get()
    """

    def __init__(self, maxsize: int = 256) -> None:
        """
        Initialize sample buffer.

        Args:
            maxsize: Maximum samples to buffer. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._maxsize = maxsize
        self._queue: asyncio.Queue[RawSample] = asyncio.Queue(maxsize=maxsize)
        self._dropped_count: int = 0
        self._total_put: int = 0

    @property
    def maxsize(self) -> int:
        """Maximum buffer size."""
        return self._maxsize

    @property
    def size(self) -> int:
        """Current number of samples in buffer."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        """Number of samples dropped due to overflow."""
        return self._dropped_count

    @property
    def total_put(self) -> int:
        """Total samples ever put into buffer."""
        return self._total_put

    async def put(self, sample: RawSample) -> bool:
        """
        Add sample to buffer, dropping oldest if full.

        Args:
            sample: Sample to add

        Returns:
            True if the sample was added without dropping,
            False if the oldest sample was dropped to make room.
        """
        self._total_put += 1
        dropped = False

        if self._queue.full():
            try:
                self._queue.get_nowait()
                self._dropped_count += 1
                dropped = True
                # Log sparsely, overflow happens in bursts
                if self._dropped_count == 1 or self._dropped_count % 100 == 0:
                    logger.warning(
                        f"Buffer full, dropped oldest sample. "
                        f"Total dropped: {self._dropped_count}"
                    )
            except asyncio.QueueEmpty:
                pass

        try:
            self._queue.put_nowait(sample)
        except asyncio.QueueFull:
            self._dropped_count += 1
            logger.error("Failed to add sample after dropping - queue full")
            return False

        return not dropped

    async def get(self, timeout: Optional[float] = None) -> Optional[RawSample]:
        """
        Get next sample from buffer.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next sample, or None if timeout occurred.
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._queue.get(), timeout=timeout)
            return await self._queue.get()
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> Optional[RawSample]:
        """Next sample if available, None otherwise."""
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def clear(self) -> int:
        """
        Clear all samples from buffer.

        Returns:
            Number of samples cleared.
        """
        cleared = 0
        while True:
            try:
                self._queue.get_nowait()
                cleared += 1
            except asyncio.QueueEmpty:
                break
        return cleared

    def metrics(self) -> dict:
        """Get buffer metrics for observability."""
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "dropped_count": self._dropped_count,
            "total_put": self._total_put,
        }
