"""
Session Report
==============

Structured statistics over the windows of the current session.

This module computes reports for observability ONLY. Reports do NOT
influence classification.

Sections:
    - frequency_profile: per-band mean/std, dominant band, dominance,
      band switches
    - intensity_profile: score distribution, mean magnitude,
      noise-floor-adjusted intensity
    - intensity_distribution: fraction of windows per severity bucket
    - variability_profile: CV, stability, spectral entropy,
      window-to-window variance
    - within_session_trend: slope per minute, early vs late change
    - multi_session_trend: comparison with up to two earlier sessions

A report needs at least MIN_WINDOWS windows. Finished sessions (those
reset while ready) are kept in memory for the multi-session trend; the
history does not survive a restart.

Memory:
    At most max_windows windows are kept per session. Past that the oldest
    windows are dropped and the report covers the most recent ones.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional, Tuple

import numpy as np

from tremor_monitor.models.classification import ClassificationResult


logger = logging.getLogger(__name__)


MIN_WINDOWS = 3

BAND_KEYS = ("hz_4_6", "hz_6_8", "hz_8_12")
DOMINANT_BAND_NAMES = ("4_6_hz", "6_8_hz", "8_12_hz")

# Score buckets: low < 2.5 <= moderate < 5 <= high < 7.5 <= very high
SCORE_BUCKETS = (2.5, 5.0, 7.5)

FATIGUE_CHANGE_PERCENT = 5.0

# Used when no calibration has run yet
UNCALIBRATED_INTENSITY_FACTOR = 0.93

DEFAULT_MAX_WINDOWS = 10000
DEFAULT_SESSION_HISTORY = 10

# Earlier sessions compared against the current one
TREND_SESSIONS = 2

SECONDS_PER_WEEK = 604800.0


@dataclass(frozen=True, slots=True)
class WindowRecord:
    """One classified window as seen by the report."""

    b1: float
    b2: float
    b3: float
    score: float
    mean_norm: float
    timestamp: float


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Summary of a finished session, kept for multi-session trends."""

    dominant_band: str
    mean_score: float
    timestamp: float


@dataclass(frozen=True)
class SessionReport:
    """
    Complete session report.

    All values are DERIVED from recorded windows and finished sessions.
    """

    metadata: Dict[str, Any]
    frequency_profile: Dict[str, Any]
    intensity_profile: Dict[str, Any]
    intensity_distribution: Dict[str, float]
    variability_profile: Dict[str, float]
    within_session_trend: Dict[str, Any]
    multi_session_trend: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": self.metadata,
            "frequency_profile": self.frequency_profile,
            "intensity_profile": self.intensity_profile,
            "intensity_distribution": self.intensity_distribution,
            "variability_profile": self.variability_profile,
            "within_session_trend": self.within_session_trend,
            "multi_session_trend": self.multi_session_trend,
        }


def _dominant_index(b1: float, b2: float, b3: float) -> int:
    # Ties resolve toward the lower band
    if b1 >= b2 and b1 >= b3:
        return 0
    if b2 >= b3:
        return 1
    return 2


def _band_label(band: str) -> str:
    """'4_6_hz' -> '4-6 Hz'"""
    low, high, _ = band.split("_")
    return f"{low}-{high} Hz"


class SessionReportBuilder:
    """
    Records window results and builds session reports.

    Does NOT import agent logic.

    Example:
        builder = SessionReportBuilder(sample_rate_hz=50.0)
        builder.record(result, timestamp=clock())
        builder.set_noise_floor(calibration.noise_floor)
        report = builder.build()
        builder.reset()  # session goes into the history
    """

    def __init__(
        self,
        sample_rate_hz: float = 50.0,
        max_windows: int = DEFAULT_MAX_WINDOWS,
        session_history: int = DEFAULT_SESSION_HISTORY,
    ) -> None:
        if max_windows < MIN_WINDOWS:
            raise ValueError(f"max_windows must be >= {MIN_WINDOWS}, got {max_windows}")
        if session_history < 1:
            raise ValueError(f"session_history must be >= 1, got {session_history}")

        self.sample_rate_hz = sample_rate_hz
        self._windows: Deque[WindowRecord] = deque(maxlen=max_windows)
        self._history: Deque[SessionRecord] = deque(maxlen=session_history)
        self._noise_floor: Optional[float] = None
        self._dropped_windows = 0

    @property
    def window_count(self) -> int:
        return len(self._windows)

    @property
    def max_windows(self) -> int:
        return self._windows.maxlen

    @property
    def dropped_windows(self) -> int:
        """Windows dropped from the current session by the window cap."""
        return self._dropped_windows

    @property
    def ready(self) -> bool:
        return len(self._windows) >= MIN_WINDOWS

    @property
    def history(self) -> Tuple[SessionRecord, ...]:
        """Finished sessions, oldest first."""
        return tuple(self._history)

    def record(self, result: ClassificationResult, timestamp: float) -> None:
        """Add one classified window."""
        if len(self._windows) == self._windows.maxlen:
            if self._dropped_windows == 0:
                logger.warning(
                    f"Session report holds {self._windows.maxlen} windows, "
                    f"dropping oldest"
                )
            self._dropped_windows += 1

        self._windows.append(
            WindowRecord(
                b1=result.powers.p1,
                b2=result.powers.p2,
                b3=result.powers.p3,
                score=result.score,
                mean_norm=result.mean_norm,
                timestamp=timestamp,
            )
        )

    def set_noise_floor(self, noise_floor: float) -> None:
        """Noise floor from the latest calibration."""
        self._noise_floor = noise_floor

    def reset(self) -> None:
        """
        Finish the current session and forget its windows.

        A session with enough windows for a report is added to the history.
        The noise floor is kept.
        """
        if self.ready:
            finished = self._session_record()
            self._history.append(finished)
            logger.info(
                f"Session archived: dominant={finished.dominant_band}, "
                f"mean score={finished.mean_score:.2f} "
                f"({len(self._history)} in history)"
            )

        self._windows.clear()
        self._dropped_windows = 0
        logger.info("Session report reset")

    def _session_record(self) -> SessionRecord:
        means = np.array([[w.b1, w.b2, w.b3] for w in self._windows]).mean(axis=0)
        return SessionRecord(
            dominant_band=DOMINANT_BAND_NAMES[_dominant_index(*means)],
            mean_score=float(np.mean([w.score for w in self._windows])),
            timestamp=self._windows[-1].timestamp,
        )

    def build(self) -> Optional[SessionReport]:
        """
        Compute the report.

        Returns:
            SessionReport, or None with fewer than MIN_WINDOWS windows
        """
        n = len(self._windows)
        if n < MIN_WINDOWS:
            return None

        bands = np.array([[w.b1, w.b2, w.b3] for w in self._windows], dtype=np.float64)
        scores = np.array([w.score for w in self._windows], dtype=np.float64)
        norms = np.array([w.mean_norm for w in self._windows], dtype=np.float64)

        duration_min = (self._windows[-1].timestamp - self._windows[0].timestamp) / 60.0
        frequency_profile = self._frequency_profile(bands)
        current = SessionRecord(
            dominant_band=frequency_profile["dominant_band"],
            mean_score=float(scores.mean()),
            timestamp=self._windows[-1].timestamp,
        )

        report = SessionReport(
            metadata={
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "windows": n,
                "duration_minutes": round(duration_min, 2),
                "sampling_rate_hz": self.sample_rate_hz,
                "tremor_score_scale": "0_to_10_log_scaled",
            },
            frequency_profile=frequency_profile,
            intensity_profile=self._intensity_profile(scores, norms),
            intensity_distribution=self._intensity_distribution(scores),
            variability_profile=self._variability_profile(bands, scores),
            within_session_trend=self._trend(scores, duration_min),
            multi_session_trend=self._multi_session_trend(current),
        )

        logger.info(
            f"Session report built: {n} windows, "
            f"dominant={report.frequency_profile['dominant_band']}, "
            f"mean score={report.intensity_profile['tremor_score']['mean']}"
        )
        return report

    def _frequency_profile(self, bands: np.ndarray) -> Dict[str, Any]:
        means = bands.mean(axis=0)
        stds = bands.std(axis=0)
        total = float(means.sum())

        dom = _dominant_index(*means)
        peak = float(means.max())
        low = float(means.min())

        switches = 0
        prev = _dominant_index(*bands[0])
        for row in bands[1:]:
            cur = _dominant_index(*row)
            if cur != prev:
                switches += 1
            prev = cur

        return {
            "band_power_mean": {k: round(float(v), 3) for k, v in zip(BAND_KEYS, means)},
            "band_power_std": {k: round(float(v), 3) for k, v in zip(BAND_KEYS, stds)},
            "dominant_band": DOMINANT_BAND_NAMES[dom],
            "dominance_ratio": round(peak / (low or 0.001), 2),
            "dominant_band_percentage": round(peak / (total or 1.0), 3),
            "band_switch_count": switches,
        }

    def _intensity_profile(self, scores: np.ndarray, norms: np.ndarray) -> Dict[str, Any]:
        norm_mean = float(norms.mean())
        if self._noise_floor is not None:
            adjusted = max(0.0, norm_mean - self._noise_floor)
        else:
            adjusted = norm_mean * UNCALIBRATED_INTENSITY_FACTOR

        p25, p50, p75, p90 = np.percentile(scores, [25, 50, 75, 90])

        return {
            "tremor_score": {
                "mean": round(float(scores.mean()), 2),
                "std": round(float(scores.std()), 2),
                "min": round(float(scores.min()), 2),
                "max": round(float(scores.max()), 2),
                "p25": round(float(p25), 2),
                "p50": round(float(p50), 2),
                "p75": round(float(p75), 2),
                "p90": round(float(p90), 2),
            },
            "rms_mean": round(norm_mean, 3),
            "noise_floor_adjusted_intensity": round(adjusted, 3),
        }

    @staticmethod
    def _intensity_distribution(scores: np.ndarray) -> Dict[str, float]:
        n = len(scores)
        low, moderate, high = SCORE_BUCKETS
        return {
            "low_fraction": round(float(np.sum(scores < low)) / n, 3),
            "moderate_fraction": round(float(np.sum((scores >= low) & (scores < moderate))) / n, 3),
            "high_fraction": round(float(np.sum((scores >= moderate) & (scores < high))) / n, 3),
            "very_high_fraction": round(float(np.sum(scores >= high)) / n, 3),
        }

    @staticmethod
    def _variability_profile(bands: np.ndarray, scores: np.ndarray) -> Dict[str, float]:
        mean = float(scores.mean())
        cv = float(scores.std()) / (mean or 1.0)

        means = bands.mean(axis=0)
        total = float(means.sum()) or 1.0
        p = means / total
        p = p[p > 0]
        entropy = float(-(p * np.log2(p)).sum() / np.log2(3))

        wtw = float(np.mean(np.diff(scores) ** 2))

        return {
            "coefficient_of_variation": round(cv, 3),
            "stability_index": round(max(0.0, 1.0 - cv), 3),
            "spectral_entropy": round(entropy, 4),
            "window_to_window_variance": round(wtw, 3),
        }

    @staticmethod
    def _trend(scores: np.ndarray, duration_min: float) -> Dict[str, Any]:
        n = len(scores)
        x = np.arange(n, dtype=np.float64)
        x_centered = x - x.mean()
        den = float(np.sum(x_centered ** 2))
        slope_per_window = float(np.sum(x_centered * (scores - scores.mean()))) / den if den else 0.0
        slope_per_min = (slope_per_window * n) / duration_min if duration_min > 0 else 0.0

        half = n // 2
        early = float(scores[:half].mean())
        late = float(scores[half:].mean())
        change = ((late - early) / early) * 100.0 if early else 0.0

        return {
            "linear_slope_per_minute_score_units": round(slope_per_min, 4),
            "early_vs_late_change_percent": round(change, 1),
            "fatigue_pattern_detected": change > FATIGUE_CHANGE_PERCENT,
        }

    def _multi_session_trend(self, current: SessionRecord) -> Dict[str, Any]:
        recent = list(self._history)[-TREND_SESSIONS:]
        sessions = recent + [current]

        consistent = sum(1 for s in sessions if s.dominant_band == current.dominant_band)
        consistency = (
            f"{_band_label(current.dominant_band)} in {consistent}/{len(sessions)} sessions"
        )

        weekly_slope = "+0.0"
        if len(sessions) >= 2:
            ts = np.array([s.timestamp for s in sessions], dtype=np.float64)
            means = np.array([s.mean_score for s in sessions], dtype=np.float64)
            ts_centered = ts - ts.mean()
            den = float(np.sum(ts_centered ** 2))
            slope = float(np.sum(ts_centered * (means - means.mean()))) / den if den else 0.0
            weekly_slope = f"{slope * SECONDS_PER_WEEK:+.2f}"

        severity_change = "N/A (first session)"
        if recent:
            oldest = recent[0].mean_score
            change = ((current.mean_score - oldest) / oldest) * 100.0 if oldest > 0 else 0.0
            severity_change = f"{change:+.1f}%"

        return {
            "dominant_band_consistency_last_3": consistency,
            "tremor_score_weekly_slope": weekly_slope,
            "severity_change_percent": severity_change,
            "band_shift_detected": bool(recent) and recent[-1].dominant_band != current.dominant_band,
        }
