"""
Sample Consumer
===============

WebSocket client for consuming accelerometer samples from a sensor bridge.

This module provides the SampleConsumer class which:
    - Connects to the bridge's WebSocket endpoint
    - Receives and validates sample messages (SampleMessage schema)
    - Drops non-finite readings (counted as parse errors)
    - Warns on sequence gaps and timestamp regressions
    - Handles reconnection with backoff
    - Pushes validated samples into a SampleBuffer

Design Rules:
    - Does NOT filter or transform readings
    - Logs validation warnings but continues processing
    - Reconnects automatically on disconnect
    - Exposes metrics for health monitoring
"""

import asyncio
import logging
from typing import Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    ConnectionClosedError,
)

from tremor_monitor.models.input import SampleMessage
from tremor_monitor.models.sample import RawSample
from tremor_monitor.stream.buffer import SampleBuffer


logger = logging.getLogger(__name__)


class SampleConsumerMetrics:
    """Metrics for SampleConsumer observability."""

    __slots__ = (
        "samples_received",
        "reconnect_count",
        "last_seq",
        "last_timestamp",
        "validation_warnings",
        "parse_errors",
    )

    def __init__(self) -> None:
        self.samples_received: int = 0
        self.reconnect_count: int = 0
        self.last_seq: int = -1
        self.last_timestamp: float = 0.0
        self.validation_warnings: int = 0
        self.parse_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "samples_received": self.samples_received,
            "reconnect_count": self.reconnect_count,
            "last_seq": self.last_seq,
            "last_timestamp": self.last_timestamp,
            "validation_warnings": self.validation_warnings,
            "parse_errors": self.parse_errors,
        }


class SampleConsumer:
    """
    WebSocket consumer for accelerometer samples.

    Attributes:
        url: WebSocket URL to connect to
        buffer: SampleBuffer to push samples into
        connected: Whether currently connected
        metrics: Operational metrics

    Example:
        buffer = SampleBuffer(maxsize=256)
        consumer = SampleConsumer(
            url="ws://localhost:8000/ws/samples",
            buffer=buffer,
        )

        task = asyncio.create_task(consumer.run())
        ...
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        buffer: SampleBuffer,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize sample consumer.

        Args:
            url: WebSocket URL of the sensor bridge
            buffer: SampleBuffer to push validated samples into
            reconnect_backoff_ms: Backoff between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.buffer = buffer
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        # State
        self._websocket = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        # Metrics
        self.metrics = SampleConsumerMetrics()

    @property
    def connected(self) -> bool:
        """Whether currently connected to the bridge."""
        return self._connected

    async def run(self) -> None:
        """
        Start consuming samples.

        Runs indefinitely, reconnecting on disconnect.
        Call stop() to terminate gracefully.
        """
        self._running = True
        self._stop_event.clear()

        logger.info(f"SampleConsumer starting, connecting to {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break

                logger.error(f"Connection error: {e}")
                self._connected = False

                if (
                    self.max_reconnect_attempts > 0
                    and self.metrics.reconnect_count >= self.max_reconnect_attempts
                ):
                    logger.error(
                        f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                    )
                    break

                self.metrics.reconnect_count += 1
                backoff_sec = self.reconnect_backoff_ms / 1000.0
                logger.info(
                    f"Reconnecting in {backoff_sec:.1f}s "
                    f"(attempt {self.metrics.reconnect_count})"
                )

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                    break
                except asyncio.TimeoutError:
                    pass

        logger.info("SampleConsumer stopped")

    async def stop(self) -> None:
        """Signal the run loop to exit and close the connection."""
        logger.info("SampleConsumer stopping...")
        self._running = False
        self._stop_event.set()

        if self._websocket is not None:
            try:
                await self._websocket.close()
            except ConnectionClosed:
                pass

        self._connected = False

    async def _connect_and_consume(self) -> None:
        """Connect to WebSocket and consume messages until disconnect."""
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to sensor bridge: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break

                    sample = self.parse_message(message)
                    if sample is not None:
                        await self.buffer.put(sample)

            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosedError as e:
                logger.warning(f"Connection closed with error: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    def parse_message(self, raw) -> Optional[RawSample]:
        """
        Parse and validate a raw WebSocket message.

        Ordering and timing violations are logged and counted but the
        sample is kept; malformed or non-finite messages are dropped.

        Args:
            raw: JSON text (or bytes) from the WebSocket

        Returns:
            RawSample, or None on parse error
        """
        try:
            message = SampleMessage.model_validate_json(raw)
        except ValidationError as e:
            self.metrics.parse_errors += 1
            logger.error(f"Invalid sample message: {e.error_count()} error(s)")
            return None

        if message.seq is not None:
            if self.metrics.last_seq >= 0:
                expected = self.metrics.last_seq + 1
                if message.seq != expected:
                    self.metrics.validation_warnings += 1
                    if message.seq < expected:
                        logger.warning(
                            f"Sequence went backwards: got {message.seq}, "
                            f"expected {expected}"
                        )
                    else:
                        logger.warning(
                            f"Sequence gap: got {message.seq}, expected {expected} "
                            f"(gap of {message.seq - expected} samples)"
                        )
            self.metrics.last_seq = message.seq

        if self.metrics.last_timestamp > 0 and message.timestamp > 0:
            if message.timestamp < self.metrics.last_timestamp:
                self.metrics.validation_warnings += 1
                logger.warning(
                    f"Timestamp went backwards: got {message.timestamp:.3f}, "
                    f"previous was {self.metrics.last_timestamp:.3f}"
                )
        if message.timestamp > 0:
            self.metrics.last_timestamp = message.timestamp

        self.metrics.samples_received += 1
        return message.to_sample()
