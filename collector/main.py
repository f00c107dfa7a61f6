import asyncio
import contextlib
import logging
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket
from fastapi.responses import PlainTextResponse

from wire import ControlMessage

from . import config, schemas
from .database import make_engine
from .retention import run_retention
from .store import Store, StoreError
from .stream import AgentHub, handle_agent_stream

logger = logging.getLogger(__name__)


def get_store(request: Request) -> Store:
    return request.app.state.store


def create_app(store: Optional[Store] = None, retention: bool = True) -> FastAPI:
    app = FastAPI(title="NetShield Collector")
    app.state.store = store or Store(make_engine())
    app.state.hub = AgentHub()
    app.state.retention_task = None

    @app.on_event("startup")
    async def startup():
        await app.state.store.init_models()
        if retention:
            app.state.retention_task = asyncio.create_task(run_retention(app.state.store))

    @app.on_event("shutdown")
    async def shutdown():
        task = app.state.retention_task
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await app.state.store.close()

    # --- Ingest ---

    @app.websocket("/agent/stream")
    async def agent_stream(ws: WebSocket):
        await handle_agent_stream(ws, app.state.store, app.state.hub)

    # --- Read ---

    @app.get("/status", response_model=List[schemas.DeviceStatusOut])
    async def get_status(store: Store = Depends(get_store)):
        try:
            return await store.list_device_status()
        except StoreError as e:
            logger.error(f"status query failed: {e}")
            raise HTTPException(status_code=500, detail="db error")

    @app.get("/metrics", response_model=List[schemas.MetricOut])
    async def get_metrics(device_id: Optional[str] = None, limit: int = 50, store: Store = Depends(get_store)):
        if device_id is not None:
            device_id = device_id.strip()
        try:
            return await store.list_metrics(device_id=device_id or None, limit=limit)
        except StoreError as e:
            logger.error(f"metrics query failed: {e}")
            raise HTTPException(status_code=500, detail="db error")

    @app.get("/health", response_class=PlainTextResponse)
    async def health():
        return "ok"

    # --- Control ---

    @app.get("/agents", response_model=List[str])
    async def get_agents():
        return app.state.hub.connected()

    @app.post("/control/{device_id}")
    async def send_control(device_id: str, control_in: schemas.ControlCreate):
        msg = ControlMessage(type=control_in.type, data=control_in.data.encode())
        if not await app.state.hub.push(device_id, msg):
            raise HTTPException(status_code=404, detail="Agent not connected")
        return {"status": "sent"}

    return app


app = create_app()


def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )
    uvicorn.run(app, host=config.COLLECTOR_HOST, port=config.COLLECTOR_PORT)


if __name__ == "__main__":
    main()
