"""
Test Configuration
==================

Pytest fixtures and test configuration for the tremor monitor.
"""

import math

import numpy as np
import pytest


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Provide a manually advanced clock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def sine_window():
    """Factory for a sinusoid window: sine_window(freq, amplitude, n, fs, phase)."""

    def _make(freq: float, amplitude: float = 1.0, n: int = 128, fs: float = 50.0,
              phase: float = 0.0) -> np.ndarray:
        t = np.arange(n) / fs
        return amplitude * np.sin(2.0 * math.pi * freq * t + phase)

    return _make


@pytest.fixture
def default_thresholds():
    """Provide the pre-calibration thresholds."""
    from tremor_monitor.models.classification import CalibrationThresholds

    return CalibrationThresholds(noise_floor=0.01, score_base=0.01)


@pytest.fixture
def sample_message():
    """Provide a sample message as sent by a sensor bridge."""
    return {
        "ax": 0.0123,
        "ay": -0.004,
        "az": 0.9981,
        "timestamp": 1707321234.567,
        "seq": 1234,
    }
