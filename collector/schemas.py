from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class DeviceStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    device_id: str
    user_id: str
    domain: str
    timestamp_unix: int
    last_seen: datetime
    ssid: str
    interface_name: str
    signal_percent: int
    avg_ping_ms: int
    experience_score: int


class MetricOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    device_id: str
    timestamp_unix: int
    ssid: str
    interface_name: str
    signal_percent: int
    avg_ping_ms: int
    experience_score: int


class ControlCreate(BaseModel):
    type: str
    data: str = ""

    @field_validator("type")
    @classmethod
    def type_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("type must not be empty")
        return v.strip()
