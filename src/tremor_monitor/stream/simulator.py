"""
Simulated Sensor
================

Deterministic synthetic accelerometer for development and testing.

The mock source stands in for the hardware bridge. It produces:
    - gravity on the z axis (static offset)
    - a sinusoidal tremor component on x and y
    - small seeded Gaussian noise on every axis

sample_at(i) is a pure function of the index, so tests can rebuild any
stretch of the stream without running the async loop.
"""

import asyncio
import logging
import math
from typing import Optional

import numpy as np

from tremor_monitor.models.sample import RawSample
from tremor_monitor.stream.buffer import SampleBuffer


logger = logging.getLogger(__name__)


class SimulatedSensor:
    """
    Synthetic accelerometer paced at the configured sample rate.

    Attributes:
        sample_rate_hz: Samples per second
        tremor_frequency_hz: Frequency of the tremor component
        tremor_amplitude_g: Amplitude of the tremor component
        noise_std_g: Standard deviation of the additive noise
        gravity_g: Static z-axis offset
        seed: Random seed
    """

    def __init__(
        self,
        sample_rate_hz: float = 50.0,
        tremor_frequency_hz: float = 5.0,
        tremor_amplitude_g: float = 0.05,
        noise_std_g: float = 0.002,
        gravity_g: float = 1.0,
        seed: int = 42,
    ) -> None:
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0")

        self.sample_rate_hz = sample_rate_hz
        self.tremor_frequency_hz = tremor_frequency_hz
        self.tremor_amplitude_g = tremor_amplitude_g
        self.noise_std_g = noise_std_g
        self.gravity_g = gravity_g
        self.seed = seed

        self._index: int = 0
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        logger.info(
            f"SimulatedSensor initialized: {tremor_frequency_hz}Hz tremor, "
            f"amplitude={tremor_amplitude_g}g, fs={sample_rate_hz}Hz, seed={seed}"
        )

    def sample_at(self, index: int) -> RawSample:
        """
        Generate the sample for a given tick.

        Args:
            index: Tick number (0-based)

        Returns:
            RawSample; timestamp is index / sample_rate_hz
        """
        t = index / self.sample_rate_hz
        phase = 2.0 * math.pi * self.tremor_frequency_hz * t

        rng = np.random.default_rng([self.seed, index])
        noise = rng.normal(0.0, self.noise_std_g, size=3) if self.noise_std_g > 0 else np.zeros(3)

        return RawSample(
            x=self.tremor_amplitude_g * math.sin(phase) + float(noise[0]),
            y=0.5 * self.tremor_amplitude_g * math.sin(phase + math.pi / 3) + float(noise[1]),
            z=self.gravity_g + float(noise[2]),
            timestamp=t,
        )

    @property
    def samples_generated(self) -> int:
        return self._index

    async def run(self, buffer: SampleBuffer, max_samples: Optional[int] = None) -> None:
        """
        Push samples into the buffer at the sample rate.

        Args:
            buffer: Destination buffer
            max_samples: Stop after this many samples (None = until stop())
        """
        self._running = True
        self._stop_event.clear()
        period = 1.0 / self.sample_rate_hz
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        logger.info("SimulatedSensor started")

        while self._running:
            if max_samples is not None and self._index >= max_samples:
                break

            await buffer.put(self.sample_at(self._index))
            self._index += 1

            next_tick += period
            delay = next_tick - loop.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                    break
                except asyncio.TimeoutError:
                    pass
            else:
                # Behind schedule, yield without sleeping
                await asyncio.sleep(0)

        self._running = False
        logger.info(f"SimulatedSensor stopped after {self._index} samples")

    async def stop(self) -> None:
        """Stop the run loop."""
        self._running = False
        self._stop_event.set()
