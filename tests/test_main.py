"""
Service Tests
=============

Tests for the FastAPI endpoints, run against the simulated sensor.
"""

import time

import pytest
from fastapi.testclient import TestClient

from tremor_monitor import main
from tremor_monitor.main import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main.settings.sensor, "source", "mock")
    with TestClient(app) as test_client:
        yield test_client


class TestInfoEndpoints:
    """Tests for service information and probes."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "TremorMonitor"
        assert data["sample_source"] == "mock"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_once_processing_runs(self, client):
        deadline = time.monotonic() + 5.0
        response = client.get("/ready")
        while response.status_code != 200 and time.monotonic() < deadline:
            time.sleep(0.02)
            response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["pipeline_initialized"] is True
        assert data["source_connected"] is True

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        data = response.json()
        assert "pipeline" in data
        assert "buffer" in data
        assert data["report"]["sessions_in_history"] == 0
        assert data["sample_source"] == "mock"


class TestCalibrationEndpoints:
    """Tests for calibration triggers."""

    def test_start_calib_device_route(self, client):
        response = client.get("/startCalib")
        assert response.status_code == 200
        assert response.text == "OK"
        assert client.get("/session").json()["calibrating"] is True

    def test_calibration_start(self, client):
        response = client.post("/calibration/start")
        assert response.status_code == 200
        assert response.json() == {"status": "collecting", "duration_ms": 5000.0}


class TestSessionEndpoints:
    """Tests for session summary, reset, output and report."""

    def test_get_session_device_fields(self, client):
        data = client.get("/getSession").json()
        for key in ("duration_ms", "avgScore", "peakScore", "windows", "dominant"):
            assert key in data

    def test_session(self, client):
        data = client.get("/session").json()
        assert data["noise_floor"] == 0.01
        assert data["score_base"] == 0.01
        assert "windows" in data

    def test_reset(self, client):
        response = client.post("/session/reset")
        assert response.status_code == 200
        assert client.get("/getSession").json()["windows"] == 0

    def test_full_reset(self, client):
        client.get("/startCalib")
        response = client.post("/reset")
        assert response.status_code == 200
        assert response.json()["status"] == "reset"

        session = client.get("/session").json()
        assert session["calibrating"] is False
        assert session["noise_floor"] == 0.01
        assert session["windows"] == 0

    def test_output_before_first_window(self, client):
        response = client.get("/output")
        assert response.status_code == 503

    def test_report_needs_windows(self, client):
        response = client.get("/report")
        assert response.status_code == 503
        assert response.json()["windows"] < 3


class TestEventStream:
    """Tests for the /ws/events WebSocket."""

    def test_receives_events(self, client):
        with client.websocket_connect("/ws/events") as websocket:
            message = websocket.receive_json()
        assert message["event"] in ("sample", "bands", "bands_csv", "calibrated", "session")
        assert isinstance(message["data"], dict)
