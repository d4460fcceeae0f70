"""
Tremor Monitor Configuration
============================

This module handles configuration loading for the tremor monitor.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    TREMOR_SENSOR_SOURCE       -> sensor.source
    TREMOR_SENSOR_URL          -> sensor.url
    TREMOR_RECONNECT_BACKOFF_MS -> sensor.reconnect_backoff_ms
    TREMOR_MAX_QUEUE_SIZE      -> sensor.max_queue_size
    TREMOR_SAMPLE_RATE         -> sensor.sample_rate_hz
    TREMOR_SIM_AMPLITUDE       -> simulator.tremor_amplitude_g
    TREMOR_SIM_FREQUENCY       -> simulator.tremor_frequency_hz
    TREMOR_SIM_SEED            -> simulator.seed
    TREMOR_CALIBRATION_MS      -> calibration.duration_ms
    TREMOR_AGENT_PORT          -> server.port
    TREMOR_LOG_LEVEL           -> logging.level
    PORT                       -> server.port (Cloud Run)

Example:
    from tremor_monitor.config import settings

    print(settings.sensor.source)
    print(settings.window.size)
    print(settings.calibration.noise_floor_multiplier)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from tremor_monitor.agent import CalibrationParameters, ClassifierParameters
from tremor_monitor.models.classification import (
    MAX_SCORE,
    MIN_THRESHOLD,
    CalibrationThresholds,
    MotionType,
)
from tremor_monitor.pipeline import PipelineConfig
from tremor_monitor.signals import BandDefinition


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AgentConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="tremor-monitor", description="Service name")
    version: str = Field(default="v0.1.0", description="Protocol version")


class SensorConfig(BaseModel):
    """Sample source configuration."""

    source: str = Field(
        default="mock",
        description="Sample source: 'mock' or 'websocket'",
    )
    url: str = Field(
        default="ws://localhost:8000/ws/samples",
        description="WebSocket URL of the sensor bridge",
    )
    sample_rate_hz: float = Field(
        default=50.0,
        gt=0,
        description="Accelerometer sampling rate (Hz)",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )
    max_queue_size: int = Field(
        default=256,
        ge=1,
        description="Maximum size of internal sample buffer",
    )


class SimulatorConfig(BaseModel):
    """Simulated sensor configuration (mock source)."""

    tremor_frequency_hz: float = Field(
        default=5.0,
        gt=0,
        description="Frequency of the synthetic tremor component",
    )
    tremor_amplitude_g: float = Field(
        default=0.05,
        ge=0,
        description="Amplitude of the synthetic tremor component (g)",
    )
    noise_std_g: float = Field(
        default=0.002,
        ge=0,
        description="Standard deviation of the additive noise (g)",
    )
    gravity_g: float = Field(default=1.0, description="Static z-axis offset (g)")
    seed: int = Field(default=42, description="Random seed for reproducibility")


class FilterConfig(BaseModel):
    """High-pass filter configuration."""

    cutoff_hz: float = Field(default=3.5, gt=0, description="Cutoff frequency (Hz)")
    q: float = Field(default=0.7071, gt=0, description="Quality factor")


class DetrendConfig(BaseModel):
    """Moving-average detrending configuration."""

    length: int = Field(default=20, ge=1, description="Moving average length (samples)")


class WindowConfig(BaseModel):
    """Analysis window configuration."""

    size: int = Field(default=128, ge=8, description="Samples per analysis window")


class BandsConfig(BaseModel):
    """Representative frequencies per tremor band (Hz)."""

    parkinsonian: List[float] = Field(default_factory=lambda: [4.0, 5.0, 6.0])
    essential: List[float] = Field(default_factory=lambda: [6.0, 7.0, 8.0])
    physiological: List[float] = Field(default_factory=lambda: [8.0, 10.0, 12.0])


class CalibrationConfig(BaseModel):
    """Calibration configuration."""

    duration_ms: float = Field(default=5000.0, gt=0, description="Collection duration (ms)")
    noise_floor_multiplier: float = Field(default=1.8, gt=0)
    score_base_multiplier: float = Field(default=1.4, gt=0)
    min_threshold: float = Field(default=MIN_THRESHOLD, ge=MIN_THRESHOLD)
    initial_noise_floor: float = Field(
        default=0.01,
        ge=MIN_THRESHOLD,
        description="Noise floor before the first calibration",
    )
    initial_score_base: float = Field(
        default=0.01,
        ge=MIN_THRESHOLD,
        description="Score base before the first calibration",
    )


class ClassifierConfig(BaseModel):
    """Classification constants."""

    dominance_min_power: float = Field(default=0.3, ge=0)
    voluntary_mean_norm: float = Field(default=0.7, ge=0)
    voluntary_max_power: float = Field(default=5.0, ge=0)
    voluntary_confidence: float = Field(default=0.6, ge=0, le=1.0)
    mixed_max_confidence: float = Field(default=0.5, ge=0, le=1.0)
    score_scale: float = Field(default=3.0, gt=0)
    score_max: float = Field(default=MAX_SCORE, gt=0, le=MAX_SCORE)


class EventsConfig(BaseModel):
    """Event emission configuration."""

    sample_every_n: int = Field(
        default=2,
        ge=1,
        description="Emit a sample event every N samples",
    )
    session_every_n_windows: int = Field(
        default=10,
        ge=1,
        description="Emit a session event every N windows",
    )
    subscriber_queue_size: int = Field(
        default=256,
        ge=1,
        description="Per-subscriber event queue size",
    )


class ReportConfig(BaseModel):
    """Session report configuration."""

    max_windows: int = Field(
        default=10000,
        ge=3,
        description="Windows kept per session report (oldest dropped)",
    )
    session_history: int = Field(
        default=10,
        ge=1,
        description="Finished sessions kept for multi-session trends",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8001, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the tremor monitor.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    agent: AgentConfig = Field(default_factory=AgentConfig)
    sensor: SensorConfig = Field(default_factory=SensorConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    detrend: DetrendConfig = Field(default_factory=DetrendConfig)
    window: WindowConfig = Field(default_factory=WindowConfig)
    bands: BandsConfig = Field(default_factory=BandsConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Sensor settings
    if env_source := os.environ.get("TREMOR_SENSOR_SOURCE"):
        config_data.setdefault("sensor", {})["source"] = env_source
    if env_url := os.environ.get("TREMOR_SENSOR_URL"):
        config_data.setdefault("sensor", {})["url"] = env_url
    if env_backoff := os.environ.get("TREMOR_RECONNECT_BACKOFF_MS"):
        config_data.setdefault("sensor", {})["reconnect_backoff_ms"] = int(env_backoff)
    if env_queue := os.environ.get("TREMOR_MAX_QUEUE_SIZE"):
        config_data.setdefault("sensor", {})["max_queue_size"] = int(env_queue)
    if env_rate := os.environ.get("TREMOR_SAMPLE_RATE"):
        config_data.setdefault("sensor", {})["sample_rate_hz"] = float(env_rate)

    # Simulator settings
    if env_amp := os.environ.get("TREMOR_SIM_AMPLITUDE"):
        config_data.setdefault("simulator", {})["tremor_amplitude_g"] = float(env_amp)
    if env_freq := os.environ.get("TREMOR_SIM_FREQUENCY"):
        config_data.setdefault("simulator", {})["tremor_frequency_hz"] = float(env_freq)
    if env_seed := os.environ.get("TREMOR_SIM_SEED"):
        config_data.setdefault("simulator", {})["seed"] = int(env_seed)

    # Calibration settings
    if env_calib := os.environ.get("TREMOR_CALIBRATION_MS"):
        config_data.setdefault("calibration", {})["duration_ms"] = float(env_calib)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("TREMOR_AGENT_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("TREMOR_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def build_pipeline_config(settings: Settings) -> PipelineConfig:
    """
    Map settings onto the core's parameter dataclasses.

    Args:
        settings: Loaded settings

    Returns:
        PipelineConfig for TremorPipeline
    """
    bands = (
        BandDefinition(MotionType.PARKINSONIAN, tuple(settings.bands.parkinsonian)),
        BandDefinition(MotionType.ESSENTIAL, tuple(settings.bands.essential)),
        BandDefinition(MotionType.PHYSIOLOGICAL, tuple(settings.bands.physiological)),
    )

    calib = settings.calibration
    clf = settings.classifier

    return PipelineConfig(
        sample_rate_hz=settings.sensor.sample_rate_hz,
        cutoff_hz=settings.filter.cutoff_hz,
        filter_q=settings.filter.q,
        moving_average_length=settings.detrend.length,
        window_size=settings.window.size,
        bands=bands,
        calibration=CalibrationParameters(
            duration_ms=calib.duration_ms,
            noise_floor_multiplier=calib.noise_floor_multiplier,
            score_base_multiplier=calib.score_base_multiplier,
            min_threshold=calib.min_threshold,
        ),
        initial_thresholds=CalibrationThresholds(
            noise_floor=calib.initial_noise_floor,
            score_base=calib.initial_score_base,
        ),
        classifier=ClassifierParameters(
            dominance_min_power=clf.dominance_min_power,
            voluntary_mean_norm=clf.voluntary_mean_norm,
            voluntary_max_power=clf.voluntary_max_power,
            voluntary_confidence=clf.voluntary_confidence,
            mixed_max_confidence=clf.mixed_max_confidence,
            score_scale=clf.score_scale,
            score_max=clf.score_max,
        ),
        sample_event_every_n=settings.events.sample_every_n,
        session_event_every_n_windows=settings.events.session_every_n_windows,
    )


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
