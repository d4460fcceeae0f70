"""
Configuration Tests
===================

Tests for settings loading, environment overrides and the mapping onto
pipeline parameters.
"""

import pytest
import yaml
from pydantic import ValidationError

from tremor_monitor.config import Settings, build_pipeline_config, load_config
from tremor_monitor.models.classification import MotionType
from tremor_monitor.pipeline import PipelineConfig, TremorPipeline


@pytest.fixture
def config_file(tmp_path):
    """Write a config.yaml and return its path."""

    def _write(data: dict) -> str:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    return _write


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_match_device_constants(self):
        settings = Settings()
        assert settings.sensor.sample_rate_hz == 50.0
        assert settings.filter.cutoff_hz == 3.5
        assert settings.detrend.length == 20
        assert settings.window.size == 128
        assert settings.calibration.duration_ms == 5000.0
        assert settings.calibration.noise_floor_multiplier == 1.8
        assert settings.calibration.score_base_multiplier == 1.4
        assert settings.classifier.dominance_min_power == 0.3

    def test_yaml_values(self, config_file):
        path = config_file({"window": {"size": 256}, "sensor": {"source": "websocket"}})
        settings = load_config(path)
        assert settings.window.size == 256
        assert settings.sensor.source == "websocket"
        # Untouched sections keep defaults
        assert settings.filter.q == 0.7071

    def test_env_overrides_file(self, config_file, monkeypatch):
        path = config_file({"sensor": {"url": "ws://file:1/ws"}, "calibration": {"duration_ms": 3000}})
        monkeypatch.setenv("TREMOR_SENSOR_URL", "ws://env:2/ws")
        monkeypatch.setenv("TREMOR_CALIBRATION_MS", "7000")
        monkeypatch.setenv("TREMOR_LOG_LEVEL", "DEBUG")

        settings = load_config(path)
        assert settings.sensor.url == "ws://env:2/ws"
        assert settings.calibration.duration_ms == 7000.0
        assert settings.logging.level == "DEBUG"

    def test_port_env(self, config_file, monkeypatch):
        path = config_file({})
        monkeypatch.setenv("TREMOR_AGENT_PORT", "9100")
        monkeypatch.delenv("PORT", raising=False)
        assert load_config(path).server.port == 9100

        monkeypatch.setenv("PORT", "8080")
        assert load_config(path).server.port == 8080

    def test_invalid_values_rejected(self, config_file):
        path = config_file({"calibration": {"initial_noise_floor": 0.0}})
        with pytest.raises(ValidationError):
            load_config(path)

    def test_score_max_bounded_by_scale(self, config_file):
        path = config_file({"classifier": {"score_max": 20.0}})
        with pytest.raises(ValidationError):
            load_config(path)

    def test_report_section(self, config_file):
        settings = load_config(config_file({"report": {"max_windows": 500}}))
        assert settings.report.max_windows == 500
        assert settings.report.session_history == 10

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)).window.size == 128


class TestBuildPipelineConfig:
    """Tests for build_pipeline_config."""

    def test_defaults_match_pipeline_defaults(self):
        config = build_pipeline_config(Settings())
        defaults = PipelineConfig()

        assert config.sample_rate_hz == defaults.sample_rate_hz
        assert config.cutoff_hz == defaults.cutoff_hz
        assert config.filter_q == defaults.filter_q
        assert config.moving_average_length == defaults.moving_average_length
        assert config.window_size == defaults.window_size
        assert config.calibration == defaults.calibration
        assert config.initial_thresholds == defaults.initial_thresholds
        assert config.classifier == defaults.classifier
        assert tuple(config.bands) == tuple(defaults.bands)

    def test_custom_values_flow_through(self):
        settings = Settings.model_validate({
            "bands": {"physiological": [9.0, 11.0]},
            "classifier": {"voluntary_confidence": 0.55},
            "events": {"session_every_n_windows": 5},
        })
        config = build_pipeline_config(settings)

        assert config.bands[2].motion_type == MotionType.PHYSIOLOGICAL
        assert config.bands[2].frequencies == (9.0, 11.0)
        assert config.classifier.voluntary_confidence == 0.55
        assert config.session_event_every_n_windows == 5

    def test_builds_a_working_pipeline(self):
        pipeline = TremorPipeline(build_pipeline_config(Settings()))
        assert pipeline.config.window_size == 128
