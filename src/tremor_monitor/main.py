"""
Tremor Monitor Main Application
===============================

FastAPI entry point for the tremor monitor.

Sample source (simulated sensor or WebSocket bridge) → SampleBuffer →
TremorPipeline → events (WebSocket) + session report.

Endpoints:
    GET  /                   - Service information
    GET  /health             - Liveness probe (is process alive?)
    GET  /ready              - Readiness probe (source + pipeline running?)
    GET  /metrics            - Detailed metrics
    GET  /startCalib         - Start calibration (device-compatible route)
    POST /calibration/start  - Start calibration
    GET  /getSession         - Session summary (device-compatible route)
    GET  /session            - Session summary
    POST /session/reset      - Start a new session
    POST /reset              - Reset signal state, calibration and session
    GET  /output             - Latest window classification
    GET  /report             - Session report (needs >= 3 windows)
    WS   /ws/events          - Real-time event stream
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, PlainTextResponse

from tremor_monitor.config import build_pipeline_config, settings
from tremor_monitor.models.classification import CalibrationResult
from tremor_monitor.models.output import BandsEvent, SessionEvent
from tremor_monitor.observability import MIN_WINDOWS, SessionReportBuilder
from tremor_monitor.pipeline import TremorPipeline
from tremor_monitor.stream import (
    EventBroadcaster,
    SampleBuffer,
    SampleConsumer,
    SimulatedSensor,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

# Shutdown flag
_shutdown_flag: bool = False

# Ingestion
_sample_buffer: Optional[SampleBuffer] = None
_sample_source: Optional[Union[SimulatedSensor, SampleConsumer]] = None
_source_task: Optional[asyncio.Task] = None

# Core
_pipeline: Optional[TremorPipeline] = None

# Outputs
_broadcaster: Optional[EventBroadcaster] = None
_report_builder: Optional[SessionReportBuilder] = None

# Processing task
_processing_task: Optional[asyncio.Task] = None

_startup_time: float = 0.0
_is_ready: bool = False

# Error counters
_pipeline_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_sample_buffer() -> Optional[SampleBuffer]:
    return _sample_buffer

def get_sample_source() -> Optional[Union[SimulatedSensor, SampleConsumer]]:
    return _sample_source

def get_pipeline() -> Optional[TremorPipeline]:
    return _pipeline

def get_broadcaster() -> Optional[EventBroadcaster]:
    return _broadcaster

def get_report_builder() -> Optional[SessionReportBuilder]:
    return _report_builder

def is_ready() -> bool:
    return _is_ready


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Sample Source Factory
# =============================================================================

def create_sample_source(buffer: SampleBuffer) -> Union[SimulatedSensor, SampleConsumer]:
    """
    Create sample source based on config.

    Fails fast on an unknown source name.
    """
    source = settings.sensor.source

    if source == "mock":
        sim = settings.simulator
        logger.info("Using SimulatedSensor")
        return SimulatedSensor(
            sample_rate_hz=settings.sensor.sample_rate_hz,
            tremor_frequency_hz=sim.tremor_frequency_hz,
            tremor_amplitude_g=sim.tremor_amplitude_g,
            noise_std_g=sim.noise_std_g,
            gravity_g=sim.gravity_g,
            seed=sim.seed,
        )

    elif source == "websocket":
        logger.info(f"Using SampleConsumer: {settings.sensor.url}")
        return SampleConsumer(
            url=settings.sensor.url,
            buffer=buffer,
            reconnect_backoff_ms=settings.sensor.reconnect_backoff_ms,
            max_reconnect_attempts=settings.sensor.max_reconnect_attempts,
        )

    else:
        raise ValueError(f"Unknown sample source: {source}")


def _run_source(source: Union[SimulatedSensor, SampleConsumer], buffer: SampleBuffer):
    if isinstance(source, SimulatedSensor):
        return source.run(buffer)
    return source.run()


# =============================================================================
# Processing Pipeline
# =============================================================================

async def process_samples() -> None:
    """Drain the sample buffer into the pipeline."""
    global _is_ready, _pipeline_error_count

    if _sample_buffer is None or _pipeline is None or _report_builder is None:
        logger.error("Processing pipeline not initialized")
        return

    logger.info("Sample processing pipeline started")
    _is_ready = True

    while not _shutdown_flag:
        try:
            sample = await _sample_buffer.get(timeout=1.0)

            if sample is None:
                continue

            result = _pipeline.on_sample(sample)
            if result is not None:
                _report_builder.record(result, time.monotonic())

        except asyncio.CancelledError:
            logger.info("Sample processing pipeline cancelled")
            break
        except Exception as e:
            _pipeline_error_count += 1
            logger.error(f"Pipeline error: {e}")
            await asyncio.sleep(0.1)

    _is_ready = False
    logger.info("Sample processing pipeline stopped")


def _on_calibrated(result: CalibrationResult) -> None:
    if _report_builder is not None:
        _report_builder.set_noise_floor(result.noise_floor)


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _sample_buffer, _sample_source, _source_task
    global _pipeline, _broadcaster, _report_builder
    global _processing_task, _startup_time, _shutdown_flag

    # signal.signal only works in the main thread (not under TestClient)
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    # Startup
    _shutdown_flag = False
    _startup_time = time.time()
    logger.info(f"Starting {settings.agent.name} {settings.agent.version}")

    port = int(os.environ.get("PORT", settings.server.port))
    logger.info(f"Configured port: {port}")

    # Outputs
    _broadcaster = EventBroadcaster(queue_size=settings.events.subscriber_queue_size)
    _report_builder = SessionReportBuilder(
        sample_rate_hz=settings.sensor.sample_rate_hz,
        max_windows=settings.report.max_windows,
        session_history=settings.report.session_history,
    )

    # Core
    _pipeline = TremorPipeline(
        build_pipeline_config(settings),
        event_sink=_broadcaster.publish,
    )
    _pipeline.on_calibration_complete(_on_calibrated)

    # Ingestion
    _sample_buffer = SampleBuffer(maxsize=settings.sensor.max_queue_size)
    _sample_source = create_sample_source(_sample_buffer)
    _source_task = asyncio.create_task(
        _run_source(_sample_source, _sample_buffer),
        name="sample_source",
    )

    _processing_task = asyncio.create_task(
        process_samples(),
        name="sample_processing",
    )

    logger.info("All components started")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _processing_task:
        _processing_task.cancel()
        try:
            await _processing_task
        except asyncio.CancelledError:
            pass

    if _sample_source:
        await _sample_source.stop()

    if _source_task:
        try:
            await asyncio.wait_for(_source_task, timeout=5.0)
        except asyncio.TimeoutError:
            _source_task.cancel()
            try:
                await _source_task
            except asyncio.CancelledError:
                pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="TremorMonitor",
    description="Real-time tremor classification from a wrist accelerometer",
    version=settings.agent.version,
    lifespan=lifespan,
)


def _not_initialized() -> JSONResponse:
    return JSONResponse({"error": "Pipeline not initialized"}, status_code=503)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "TremorMonitor",
        "version": settings.agent.version,
        "name": settings.agent.name,
        "status": "running",
        "sample_source": settings.sensor.source,
        "sample_rate_hz": settings.sensor.sample_rate_hz,
        "window_size": settings.window.size,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is the service ready to handle requests?

    Returns 200 once the processing loop runs, 503 otherwise.
    """
    source = get_sample_source()
    pipeline = get_pipeline()

    source_connected = True
    if isinstance(source, SampleConsumer):
        source_connected = source.connected

    pipeline_ready = _is_ready and pipeline is not None

    if pipeline_ready:
        return JSONResponse({
            "status": "ready",
            "source_connected": source_connected,
            "pipeline_initialized": pipeline_ready,
            "samples_processed": pipeline.sample_count,
        })
    return JSONResponse(
        {
            "status": "not_ready",
            "source_connected": source_connected,
            "pipeline_initialized": pipeline_ready,
        },
        status_code=503,
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    buffer = get_sample_buffer()
    source = get_sample_source()
    pipeline = get_pipeline()
    broadcaster = get_broadcaster()
    builder = get_report_builder()

    stream_metrics = {}
    if buffer:
        stream_metrics["buffer"] = buffer.metrics()
    if isinstance(source, SampleConsumer):
        stream_metrics["consumer"] = {
            "connected": source.connected,
            **source.metrics.to_dict(),
        }
    elif isinstance(source, SimulatedSensor):
        stream_metrics["simulator"] = {"samples_generated": source.samples_generated}

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "sample_source": settings.sensor.source,
        "pipeline_errors": _pipeline_error_count,
        "pipeline": pipeline.get_metrics() if pipeline else {},
        "events": broadcaster.metrics() if broadcaster else {},
        "report": {
            "windows": builder.window_count,
            "dropped_windows": builder.dropped_windows,
            "sessions_in_history": len(builder.history),
        } if builder else {},
        **stream_metrics,
    })


@app.get("/startCalib")
async def start_calib() -> PlainTextResponse:
    """Start calibration. Plain-text reply for device dashboards."""
    pipeline = get_pipeline()
    if pipeline is None:
        return PlainTextResponse("Pipeline not initialized", status_code=503)

    pipeline.start_calibration()
    return PlainTextResponse("OK")


@app.post("/calibration/start")
async def calibration_start() -> JSONResponse:
    """Start a calibration run (restarts any run in progress)."""
    pipeline = get_pipeline()
    if pipeline is None:
        return _not_initialized()

    pipeline.start_calibration()
    return JSONResponse({
        "status": "collecting",
        "duration_ms": pipeline.config.calibration.duration_ms,
    })


@app.get("/getSession")
async def get_session() -> JSONResponse:
    """Session summary with the device's field names."""
    pipeline = get_pipeline()
    if pipeline is None:
        return _not_initialized()

    return JSONResponse(SessionEvent.from_stats(pipeline.session_summary()).model_dump())


@app.get("/session")
async def session() -> JSONResponse:
    """Session summary plus current thresholds."""
    pipeline = get_pipeline()
    if pipeline is None:
        return _not_initialized()

    thresholds = pipeline.thresholds
    return JSONResponse({
        **pipeline.session_summary().to_dict(),
        "calibrating": pipeline.is_calibrating,
        "noise_floor": thresholds.noise_floor,
        "score_base": thresholds.score_base,
    })


@app.post("/session/reset")
async def session_reset() -> JSONResponse:
    """Start a new session."""
    pipeline = get_pipeline()
    if pipeline is None:
        return _not_initialized()

    pipeline.reset_session()
    builder = get_report_builder()
    if builder is not None:
        builder.reset()

    return JSONResponse({"status": "reset"})


@app.post("/reset")
async def full_reset() -> JSONResponse:
    """
    Return the pipeline to its startup state.

    Drops queued samples, clears filter, detrend and window state, aborts
    calibration, restores the initial thresholds and starts a new session.
    """
    pipeline = get_pipeline()
    if pipeline is None:
        return _not_initialized()

    buffer = get_sample_buffer()
    dropped = buffer.clear() if buffer is not None else 0

    pipeline.reset()
    builder = get_report_builder()
    if builder is not None:
        builder.reset()

    logger.info(f"Full reset ({dropped} queued samples dropped)")
    return JSONResponse({"status": "reset", "dropped_samples": dropped})


@app.get("/output")
async def output() -> JSONResponse:
    """Latest window classification."""
    pipeline = get_pipeline()
    result = pipeline.last_result if pipeline else None

    if result is None:
        return JSONResponse(
            {"error": "No output available yet"},
            status_code=503,
        )

    return JSONResponse(BandsEvent.from_result(result).model_dump())


@app.get("/report")
async def report() -> JSONResponse:
    """Structured report over the current session."""
    builder = get_report_builder()
    session_report = builder.build() if builder else None

    if session_report is None:
        return JSONResponse(
            {
                "error": f"Report needs at least {MIN_WINDOWS} windows",
                "windows": builder.window_count if builder else 0,
            },
            status_code=503,
        )

    return JSONResponse(session_report.to_dict())


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/events")
async def event_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time events."""
    broadcaster = get_broadcaster()
    await websocket.accept()

    if broadcaster is None:
        await websocket.close(code=1011)
        return

    queue = broadcaster.subscribe()
    logger.info("Client connected to /ws/events")

    try:
        while not _shutdown_flag:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        broadcaster.unsubscribe(queue)
        logger.info("Client disconnected from /ws/events")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "tremor_monitor.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
