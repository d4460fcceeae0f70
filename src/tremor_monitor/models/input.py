"""
Input Message Schema
====================

Pydantic model for raw sample messages received from a sensor bridge.

Input Contract:
    {
        "ax": 0.0123,
        "ay": -0.0040,
        "az": 0.9981,
        "timestamp": 1707321234.567,
        "seq": 1234
    }

Guarantees expected from the bridge:
    - one message per sampling tick at the configured rate
    - accelerations in g
    - seq (optional) increases by 1 per message

Example:
    from tremor_monitor.models.input import SampleMessage

    raw = await websocket.recv()
    message = SampleMessage.model_validate_json(raw)
    sample = message.to_sample()
"""

import math
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from tremor_monitor.models.sample import RawSample


class SampleMessage(BaseModel):
    """
    Schema for one accelerometer reading on the wire.

    Non-finite values are rejected here so they never reach the core.

    Attributes:
        ax: X acceleration (g)
        ay: Y acceleration (g)
        az: Z acceleration (g)
        timestamp: UNIX timestamp of the reading
        seq: Optional monotonically increasing sequence number
    """

    ax: float = Field(..., description="X acceleration (g)")
    ay: float = Field(..., description="Y acceleration (g)")
    az: float = Field(..., description="Z acceleration (g)")

    timestamp: float = Field(
        default=0.0,
        ge=0,
        description="UNIX timestamp in seconds of the reading",
    )

    seq: Optional[int] = Field(
        default=None,
        ge=0,
        description="Sequence number from the bridge",
    )

    @field_validator("ax", "ay", "az")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("acceleration must be finite")
        return value

    def to_sample(self) -> RawSample:
        """Convert to the internal sample type."""
        return RawSample(x=self.ax, y=self.ay, z=self.az, timestamp=self.timestamp)

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "ax": 0.0123,
                "ay": -0.004,
                "az": 0.9981,
                "timestamp": 1707321234.567,
                "seq": 1234,
            }
        }
