from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from .database import Base


class NetworkMetric(Base):
    """Raw per-cycle history, pruned by the retention job."""

    __tablename__ = "network_metrics"
    id = Column(Integer, primary_key=True, index=True)
    device_id = Column(String, index=True, nullable=False)
    user_id = Column(String, default="")
    domain = Column(String, default="")
    timestamp_unix = Column(BigInteger, index=True, nullable=False)
    ssid = Column(String, default="")
    interface_name = Column(String, default="")
    signal_percent = Column(Integer, default=0)
    avg_ping_ms = Column(Integer, default=0)
    experience_score = Column(Integer, default=0)
    received_at = Column(DateTime(timezone=True), server_default=func.now())


class DeviceStatus(Base):
    """Latest known health per device; one row per device_id."""

    __tablename__ = "device_status"
    device_id = Column(String, primary_key=True, index=True)
    user_id = Column(String, default="")
    domain = Column(String, default="")
    timestamp_unix = Column(BigInteger, nullable=False)
    last_seen = Column(DateTime(timezone=True), nullable=False)
    ssid = Column(String, default="")
    interface_name = Column(String, default="")
    signal_percent = Column(Integer, default=0)
    avg_ping_ms = Column(Integer, default=0)
    experience_score = Column(Integer, default=0)
