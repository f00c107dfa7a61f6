import getpass
import os
import socket
from dataclasses import dataclass, field
from typing import List


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str = "") -> List[str]:
    return [p.strip() for p in os.getenv(name, default).split(",") if p.strip()]


def _default_user():
    try:
        return getpass.getuser()
    except Exception:
        return ""


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MIN_SIGNAL_PERCENT = int(os.getenv("MIN_SIGNAL_PERCENT", "60"))
MAX_AVG_PING_MS = int(os.getenv("MAX_AVG_PING_MS", "120"))
PING_HOST = os.getenv("PING_HOST", "8.8.8.8")
PING_COUNT = int(os.getenv("PING_COUNT", "3"))
CHECK_INTERVAL = int(os.getenv("CHECK_INTERVAL_SEC", "10"))
SETTLE_DELAY = float(os.getenv("SETTLE_DELAY_SEC", "7"))
COMMAND_TIMEOUT = float(os.getenv("COMMAND_TIMEOUT_SEC", "10"))
PREFERRED_PROFILES = _env_list("PREFERRED_PROFILES")
SWITCH_AUTOMATICALLY = _env_bool("SWITCH_AUTOMATICALLY")
SCAN_VERIFY_CONNECT = _env_bool("SCAN_VERIFY_CONNECT")
WIFI_BACKEND = os.getenv("WIFI_BACKEND", "auto").lower()

COLLECTOR_URL = os.getenv("COLLECTOR_URL", "ws://127.0.0.1:8000/agent/stream")
DEVICE_ID = os.getenv("DEVICE_ID") or socket.gethostname()
USER_ID = os.getenv("USER_ID") or _default_user()
DEVICE_DOMAIN = os.getenv("DEVICE_DOMAIN", "laptop")

STATUS_API_HOST = os.getenv("STATUS_API_HOST", "127.0.0.1")
STATUS_API_PORT = int(os.getenv("STATUS_API_PORT", "9090"))
STATUS_API_ORIGINS = _env_list("STATUS_API_ORIGINS", "http://localhost:3000")


@dataclass
class MonitorConfig:
    min_signal_percent: int = MIN_SIGNAL_PERCENT
    max_avg_ping_ms: int = MAX_AVG_PING_MS
    ping_host: str = PING_HOST
    check_interval: int = CHECK_INTERVAL
    settle_delay: float = SETTLE_DELAY
    preferred_profiles: List[str] = field(default_factory=lambda: list(PREFERRED_PROFILES))
    verify_scan_connect: bool = SCAN_VERIFY_CONNECT
    device_id: str = DEVICE_ID
    user_id: str = USER_ID
    domain: str = DEVICE_DOMAIN
