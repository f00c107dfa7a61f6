"""Records read from the network manager and the monitor's published state."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class NetworkProfile:
    """A saved network profile.

    raw_name is the name exactly as the OS stores it (used to connect),
    clean_name is the trimmed form used for matching and display.
    """

    raw_name: str
    clean_name: str

    @classmethod
    def from_raw(cls, raw: str) -> "NetworkProfile":
        return cls(raw_name=raw, clean_name=raw.strip())


@dataclass(frozen=True)
class ConnectionStatus:
    interface_name: str
    ssid: str
    profile_name: str = ""
    signal: int = 0  # percent, 0 means unknown

    def describe(self) -> str:
        return (
            f"Interface={self.interface_name}, SSID={self.ssid}, "
            f"Profile={self.profile_name}, Signal={self.signal}%"
        )


@dataclass(frozen=True)
class HealthSnapshot:
    ssid: str = ""
    profile: str = ""
    signal: int = 0
    avg_ping_ms: Optional[float] = None
    score: int = 0
    last_updated: Optional[datetime] = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["last_updated"] = self.last_updated.isoformat() if self.last_updated else None
        return d
