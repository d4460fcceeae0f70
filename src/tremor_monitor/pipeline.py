"""
Tremor Pipeline
===============

The signal-processing core, driven one sample at a time.

Per sample:
    raw → HighPassFilter ×3 → Detrender → WindowAccumulator
        (+ Calibrator while collecting)

Per completed window:
    WindowAccumulator → SpectralAnalyzer → TremorAgentGraph
        (Classifier with current thresholds → SessionAggregator)

Events (fire-and-forget, through an optional sink):
    sample      every Nth tick, detrended axes
    bands       every window, classification result
    bands_csv   every window, raw powers as a CSV line
    calibrated  when a calibration run completes
    session     every Nth window, session summary

Threading:
    Every operation is synchronous and bounded. The pipeline is meant to
    be driven from a single thread (or one asyncio loop); callers that use
    several threads must serialize calls into it.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from tremor_monitor.agent import (
    CalibrationParameters,
    Calibrator,
    ClassifierParameters,
    TremorAgentGraph,
)
from tremor_monitor.models.classification import (
    MAX_SCORE,
    MIN_THRESHOLD,
    CalibrationResult,
    CalibrationThresholds,
    ClassificationResult,
)
from tremor_monitor.models.output import (
    BandsCsvEvent,
    BandsEvent,
    CalibratedEvent,
    EventType,
    SampleEvent,
    SessionEvent,
    TremorEvent,
)
from tremor_monitor.models.sample import DetrendedSample, RawSample
from tremor_monitor.models.session import SessionStats
from tremor_monitor.signals import (
    DEFAULT_BANDS,
    AxisFilterBank,
    BandDefinition,
    Detrender,
    SpectralAnalyzer,
    WindowAccumulator,
)


logger = logging.getLogger(__name__)


EventSink = Callable[[TremorEvent], None]
CalibrationCallback = Callable[[CalibrationResult], None]


class PipelineConfigurationError(ValueError):
    """Raised when pipeline parameters are invalid."""
    pass


@dataclass
class PipelineConfig:
    """
    All parameters of the core.

    Defaults reproduce the wrist device (50 Hz, 3.5 Hz high-pass,
    20-sample moving averages, 128-sample windows).
    """

    sample_rate_hz: float = 50.0

    # High-pass filter
    cutoff_hz: float = 3.5
    filter_q: float = 0.7071

    # Detrending
    moving_average_length: int = 20

    # Windowing
    window_size: int = 128

    # Bands (P1, P2, P3 order)
    bands: Sequence[BandDefinition] = DEFAULT_BANDS

    # Calibration
    calibration: CalibrationParameters = field(default_factory=CalibrationParameters)
    initial_thresholds: CalibrationThresholds = field(default_factory=CalibrationThresholds)

    # Classification
    classifier: ClassifierParameters = field(default_factory=ClassifierParameters)

    # Event cadence
    sample_event_every_n: int = 2
    session_event_every_n_windows: int = 10


class TremorPipeline:
    """
    Core facade: on_sample in, classification results and events out.

    Attributes:
        config: Pipeline parameters
        filters: Per-axis high-pass filters
        detrender: Two-stage detrender
        window: Analysis window accumulator
        analyzer: Band power estimator
        calibrator: Calibration state machine (owns the thresholds)
        agent: Classification + session graph

    Example:
        pipeline = TremorPipeline(PipelineConfig(), event_sink=broadcaster.publish)

        for sample in source:
            result = pipeline.on_sample(sample)
            if result is not None:
                print(result.motion_type.value, result.score)
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        event_sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Build the pipeline.

        Args:
            config: Pipeline parameters (defaults if None)
            event_sink: Receives every emitted event; failures are logged
            clock: Time source in seconds, used for calibration timing
                and session duration

        Raises:
            PipelineConfigurationError: If any parameter is invalid
        """
        self.config = config or PipelineConfig()
        self._validate_parameters(self.config)

        c = self.config
        self.filters = AxisFilterBank(c.sample_rate_hz, c.cutoff_hz, c.filter_q)
        self.detrender = Detrender(c.moving_average_length)
        self.window = WindowAccumulator(c.window_size)
        self.analyzer = SpectralAnalyzer(c.sample_rate_hz, c.bands)
        self.calibrator = Calibrator(c.calibration, c.initial_thresholds)
        self.agent = TremorAgentGraph(
            c.classifier,
            log_every_n_windows=c.session_event_every_n_windows,
        )

        self._event_sink = event_sink
        self._clock = clock
        self._calibration_callbacks: List[CalibrationCallback] = []

        self._sample_count: int = 0
        self._last_detrended: Optional[DetrendedSample] = None
        self._sink_error_count: int = 0

        logger.info(
            f"TremorPipeline initialized: fs={c.sample_rate_hz}Hz, "
            f"window={c.window_size} samples "
            f"({c.window_size / c.sample_rate_hz:.2f}s)"
        )

    @staticmethod
    def _validate_parameters(config: PipelineConfig) -> None:
        """Validate parameters at startup. Fail fast."""
        errors = []
        c = config

        if c.sample_rate_hz <= 0:
            errors.append(f"sample_rate_hz must be > 0, got {c.sample_rate_hz}")
        elif not 0 < c.cutoff_hz < c.sample_rate_hz / 2:
            errors.append(
                f"cutoff_hz must be in (0, {c.sample_rate_hz / 2}), got {c.cutoff_hz}"
            )
        if c.filter_q <= 0:
            errors.append(f"filter_q must be > 0, got {c.filter_q}")
        if c.moving_average_length < 1:
            errors.append(
                f"moving_average_length must be >= 1, got {c.moving_average_length}"
            )
        if c.window_size < 1:
            errors.append(f"window_size must be >= 1, got {c.window_size}")
        if len(c.bands) != 3:
            errors.append(f"exactly 3 bands are required, got {len(c.bands)}")
        if c.calibration.duration_ms <= 0:
            errors.append(
                f"calibration duration_ms must be > 0, got {c.calibration.duration_ms}"
            )
        if c.calibration.min_threshold < MIN_THRESHOLD:
            errors.append(
                f"calibration min_threshold must be >= {MIN_THRESHOLD}, "
                f"got {c.calibration.min_threshold}"
            )
        if not 0 < c.classifier.score_max <= MAX_SCORE:
            errors.append(
                f"classifier score_max must be in (0, {MAX_SCORE}], "
                f"got {c.classifier.score_max}"
            )
        if c.sample_event_every_n < 1:
            errors.append(
                f"sample_event_every_n must be >= 1, got {c.sample_event_every_n}"
            )
        if c.session_event_every_n_windows < 1:
            errors.append(
                f"session_event_every_n_windows must be >= 1, "
                f"got {c.session_event_every_n_windows}"
            )

        if errors:
            raise PipelineConfigurationError(
                "Pipeline parameter validation failed:\n" + "\n".join(errors)
            )

    # =========================================================================
    # Sample path
    # =========================================================================

    def on_sample(self, sample: RawSample) -> Optional[ClassificationResult]:
        """
        Process one raw sample.

        Args:
            sample: Accelerometer reading (finite values, in g)

        Returns:
            ClassificationResult when this sample completed a window,
            otherwise None
        """
        self._sample_count += 1

        fx, fy, fz = self.filters.process(sample.x, sample.y, sample.z)
        detrended = self.detrender.update(fx, fy, fz)
        self._last_detrended = detrended

        window_full = self.window.push(detrended.tremor)

        if self._sample_count % self.config.sample_event_every_n == 0:
            self._emit(EventType.SAMPLE, SampleEvent.from_detrended, detrended)

        if self.calibrator.is_calibrating:
            calibration = self.calibrator.update(detrended.tremor, self._clock())
            if calibration is not None:
                self._on_calibrated(calibration)

        if not window_full:
            return None

        return self._on_window(detrended.mean_norm)

    def _on_window(self, mean_norm: float) -> ClassificationResult:
        """Analyze and classify the completed window."""
        powers = self.analyzer.analyze(self.window.values)
        logger.debug(f"Window complete: {powers!r}, mean_norm={mean_norm:.4f}")

        result = self.agent.process(
            powers,
            mean_norm,
            self.calibrator.thresholds,
            self._clock(),
        )

        self._emit(EventType.BANDS, BandsEvent.from_result, result)
        self._emit(EventType.BANDS_CSV, BandsCsvEvent.from_result, result)

        if self.agent.aggregator.window_count % self.config.session_event_every_n_windows == 0:
            self._emit(EventType.SESSION, SessionEvent.from_stats, self.session_summary())

        return result

    def _on_calibrated(self, calibration: CalibrationResult) -> None:
        self._emit(EventType.CALIBRATED, CalibratedEvent.from_result, calibration)
        for callback in self._calibration_callbacks:
            try:
                callback(calibration)
            except Exception as e:
                logger.error(f"Calibration callback failed: {e}", exc_info=True)

    def _emit(self, event_type: EventType, build: Callable[[Any], Any], source: Any) -> None:
        """
        Build an event payload and hand it to the sink. Never raises.

        Args:
            event_type: Event name
            build: Payload constructor (e.g. BandsEvent.from_result)
            source: Core result the payload is built from
        """
        if self._event_sink is None:
            return
        try:
            self._event_sink(TremorEvent.wrap(event_type, build(source)))
        except Exception as e:
            self._sink_error_count += 1
            logger.error(f"Event sink error ({event_type.value}): {e}")

    # =========================================================================
    # External controls
    # =========================================================================

    def start_calibration(self) -> None:
        """Begin a calibration run (restarts any run in progress)."""
        self.calibrator.start(self._clock())

    @property
    def is_calibrating(self) -> bool:
        return self.calibrator.is_calibrating

    def on_calibration_complete(self, callback: CalibrationCallback) -> None:
        """
        Register a callback for completed calibration runs.

        Args:
            callback: Called with the CalibrationResult
        """
        self._calibration_callbacks.append(callback)

    @property
    def thresholds(self) -> CalibrationThresholds:
        return self.calibrator.thresholds

    def session_summary(self) -> SessionStats:
        """Current session statistics."""
        return self.agent.summary(self._clock())

    def reset_session(self) -> None:
        """Start a new session. Filter, detrend and window state are kept."""
        self.agent.reset()

    def reset(self) -> None:
        """
        Return to the startup state.

        Clears filter, detrend and window state, aborts calibration and
        restores the initial thresholds, then starts a new session.
        Used when the sample stream is replaced or restarted.
        """
        self.filters.reset()
        self.detrender.reset()
        self.window.reset()
        self.calibrator.reset()
        self.agent.reset()
        self._sample_count = 0
        self._last_detrended = None
        logger.info("TremorPipeline reset")

    @property
    def last_result(self) -> Optional[ClassificationResult]:
        return self.agent.last_result

    @property
    def last_detrended(self) -> Optional[DetrendedSample]:
        return self._last_detrended

    @property
    def sample_count(self) -> int:
        return self._sample_count

    def get_metrics(self) -> dict:
        """Get pipeline metrics for observability."""
        return {
            "samples_processed": self._sample_count,
            "windows_completed": self.window.windows_completed,
            "window_fill": self.window.length,
            "mean_norm": round(self.detrender.mean_norm, 4),
            "sink_errors": self._sink_error_count,
            "calibration": self.calibrator.get_metrics(),
            "agent": self.agent.get_metrics(),
        }
