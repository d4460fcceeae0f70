"""
Spectral Analyzer
=================

Narrow-band power estimation for a completed analysis window.

Instead of a full spectrum, the power is extracted at a few representative
frequencies per tremor band with the Goertzel recurrence:

    coeff = 2·cos(2π·f / fs)
    s     = x[i] + coeff·s1 - s2          (s1, s2 start at 0)
    power = s2² + s1² - coeff·s1·s2       (after the last sample)

For a bin-aligned sinusoid of amplitude A over N samples this equals
(A·N/2)², independent of phase. Non-finite or negative results are
clamped to 0.

Each band's power is the mean of its frequencies' powers.

Default Bands:
    Parkinsonian   4, 5, 6 Hz
    Essential      6, 7, 8 Hz
    Physiological  8, 10, 12 Hz
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from tremor_monitor.models.classification import BandPowers, MotionType


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BandDefinition:
    """
    A tremor band and its representative frequencies.

    Attributes:
        motion_type: Label the band stands for
        frequencies: Representative frequencies (Hz), evaluated in order
    """

    motion_type: MotionType
    frequencies: Tuple[float, ...]

    def __post_init__(self) -> None:
        if not self.frequencies:
            raise ValueError(f"{self.motion_type.value} band has no frequencies")


DEFAULT_BANDS: Tuple[BandDefinition, BandDefinition, BandDefinition] = (
    BandDefinition(MotionType.PARKINSONIAN, (4.0, 5.0, 6.0)),
    BandDefinition(MotionType.ESSENTIAL, (6.0, 7.0, 8.0)),
    BandDefinition(MotionType.PHYSIOLOGICAL, (8.0, 10.0, 12.0)),
)


def goertzel_power(data: Sequence[float], freq: float, sample_rate: float) -> float:
    """
    Single-frequency power of a block of samples.

    Args:
        data: Samples (any length)
        freq: Target frequency (Hz)
        sample_rate: Sampling rate (Hz)

    Returns:
        Power estimate, clamped to 0 when non-finite or negative
    """
    coeff = 2.0 * math.cos(2.0 * math.pi * freq / sample_rate)

    s_prev = 0.0
    s_prev2 = 0.0
    values = data.tolist() if isinstance(data, np.ndarray) else data
    for x in values:
        s = x + coeff * s_prev - s_prev2
        s_prev2 = s_prev
        s_prev = s

    power = s_prev2 * s_prev2 + s_prev * s_prev - coeff * s_prev * s_prev2

    if not math.isfinite(power) or power < 0.0:
        return 0.0
    return power


class SpectralAnalyzer:
    """
    Computes the three band powers of a completed window.

    Attributes:
        sample_rate_hz: Sampling rate of the window
        bands: Exactly three bands (Parkinsonian, Essential, Physiological)

    Example:
        analyzer = SpectralAnalyzer(sample_rate_hz=50.0)
        powers = analyzer.analyze(window.values)
    """

    def __init__(
        self,
        sample_rate_hz: float = 50.0,
        bands: Sequence[BandDefinition] = DEFAULT_BANDS,
    ) -> None:
        """
        Initialize spectral analyzer.

        Args:
            sample_rate_hz: Sampling rate in Hz
            bands: Three band definitions, in P1/P2/P3 order

        Raises:
            ValueError: On a non-positive rate, a band count other than
                three, or a frequency outside (0, fs/2)
        """
        if sample_rate_hz <= 0:
            raise ValueError(f"sample_rate_hz must be > 0, got {sample_rate_hz}")
        if len(bands) != 3:
            raise ValueError(f"exactly 3 bands are required, got {len(bands)}")

        nyquist = sample_rate_hz / 2.0
        for band in bands:
            for freq in band.frequencies:
                if not 0 < freq < nyquist:
                    raise ValueError(
                        f"{band.motion_type.value} frequency {freq}Hz "
                        f"outside (0, {nyquist})"
                    )

        self.sample_rate_hz = sample_rate_hz
        self.bands = tuple(bands)

        band_desc = ", ".join(
            f"{b.motion_type.value}{list(b.frequencies)}" for b in self.bands
        )
        logger.info(
            f"SpectralAnalyzer initialized: fs={sample_rate_hz}Hz, bands={band_desc}"
        )

    def band_power(self, window: Sequence[float], band: BandDefinition) -> float:
        """Mean Goertzel power over a band's frequencies."""
        total = 0.0
        for freq in band.frequencies:
            total += goertzel_power(window, freq, self.sample_rate_hz)
        return total / len(band.frequencies)

    def analyze(self, window: Sequence[float]) -> BandPowers:
        """
        Compute P1, P2, P3 for a completed window.

        Args:
            window: Tremor samples of one analysis window

        Returns:
            BandPowers in band order
        """
        p1, p2, p3 = (self.band_power(window, band) for band in self.bands)
        return BandPowers(p1=p1, p2=p2, p3=p3)
