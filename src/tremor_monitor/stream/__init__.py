"""
Stream Module
=============

Sample acquisition and event fan-out.

This module provides the I/O edges around the pipeline:
    - SampleBuffer: Async-safe bounded queue (drops oldest on overflow)
    - SampleConsumer: WebSocket client with validation and reconnection
    - SimulatedSensor: Deterministic synthetic accelerometer (mock source)
    - EventBroadcaster: Non-blocking fan-out of pipeline events

Example:
    from tremor_monitor.stream import SampleBuffer, SimulatedSensor

    buffer = SampleBuffer(maxsize=256)
    sensor = SimulatedSensor(sample_rate_hz=50.0)

    task = asyncio.create_task(sensor.run(buffer))

    while True:
        sample = await buffer.get()
        pipeline.on_sample(sample)
"""

from tremor_monitor.stream.buffer import SampleBuffer
from tremor_monitor.stream.consumer import SampleConsumer, SampleConsumerMetrics
from tremor_monitor.stream.simulator import SimulatedSensor
from tremor_monitor.stream.events import EventBroadcaster


__all__ = [
    "SampleBuffer",
    "SampleConsumer",
    "SampleConsumerMetrics",
    "SimulatedSensor",
    "EventBroadcaster",
]
