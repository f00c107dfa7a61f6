import os
from datetime import timedelta

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./netshield.db")
RETENTION_HORIZON = timedelta(days=int(os.getenv("RETENTION_DAYS", "30")))
RETENTION_PERIOD = timedelta(hours=float(os.getenv("RETENTION_PERIOD_HOURS", "6")))

COLLECTOR_HOST = os.getenv("COLLECTOR_HOST", "0.0.0.0")
COLLECTOR_PORT = int(os.getenv("COLLECTOR_PORT", "8000"))
