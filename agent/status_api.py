import logging
import threading
from typing import List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import config
from .monitor import Monitor

logger = logging.getLogger(__name__)


class SnapshotOut(BaseModel):
    ssid: str
    profile: str
    signal_percent: int
    avg_ping_ms: Optional[float] = None
    score: int
    last_updated: Optional[str] = None


class ModeOut(BaseModel):
    switch_automatically: bool


def create_app(monitor: Monitor, origins: Optional[List[str]] = None) -> FastAPI:
    app = FastAPI(title="NetShield Agent")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if origins is not None else config.STATUS_API_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/current", response_model=SnapshotOut)
    def current():
        snap = monitor.snapshot().to_dict()
        snap["signal_percent"] = snap.pop("signal")
        return snap

    @app.get("/mode", response_model=ModeOut)
    def get_mode():
        return {"switch_automatically": monitor.switch_automatically}

    @app.post("/mode/toggle", response_model=ModeOut)
    def toggle_mode():
        return {"switch_automatically": monitor.toggle_mode()}

    return app


def start_status_api(monitor: Monitor, host: str = config.STATUS_API_HOST, port: int = config.STATUS_API_PORT):
    server = uvicorn.Server(uvicorn.Config(create_app(monitor), host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="status-api", daemon=True)
    thread.start()
    logger.info(f"local API on http://{host}:{port}/current")
    return server, thread
