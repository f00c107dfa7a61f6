"""Agent <-> collector stream records.

Both ends exchange JSON text frames: the agent sends one MetricEvent per
monitor cycle, the collector pushes ControlMessage records at any time.
"""
import base64

from pydantic import BaseModel, Field, field_serializer, field_validator


class MetricEvent(BaseModel):
    device_id: str
    user_id: str = ""
    domain: str = ""
    timestamp_unix: int
    ssid: str = ""
    interface_name: str = ""
    signal_percent: int = Field(0, ge=0, le=100)
    avg_ping_ms: int = Field(0, ge=0)  # 0 when latency could not be measured
    experience_score: int = Field(0, ge=0, le=100)

    @field_validator("device_id")
    @classmethod
    def device_id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("device_id must not be empty")
        return v.strip()


class ControlMessage(BaseModel):
    # open tag: unknown types are accepted and left to the receiver
    type: str
    data: bytes = b""

    @field_validator("type")
    @classmethod
    def type_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("type must not be empty")
        return v.strip()

    @field_validator("data", mode="before")
    @classmethod
    def decode_data(cls, v):
        if isinstance(v, str):
            return base64.b64decode(v)
        return v

    @field_serializer("data")
    def encode_data(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")
