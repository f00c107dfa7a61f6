"""WebSocket endpoint the agents stream their metrics into."""

import logging
from typing import Dict, List

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from wire import ControlMessage, MetricEvent

from .store import Store, StoreError

logger = logging.getLogger(__name__)


class AgentHub:
    """Open agent streams by device_id, used to push control messages."""

    def __init__(self):
        self._agents: Dict[str, WebSocket] = {}

    def register(self, device_id: str, ws: WebSocket):
        self._agents[device_id] = ws
        logger.info(f"agent connected: {device_id} (total {len(self._agents)})")

    def unregister(self, device_id: str, ws: WebSocket):
        # a reconnected agent may already have replaced this socket
        if self._agents.get(device_id) is ws:
            del self._agents[device_id]
            logger.info(f"agent disconnected: {device_id} (total {len(self._agents)})")

    def connected(self) -> List[str]:
        return sorted(self._agents)

    async def push(self, device_id: str, msg: ControlMessage) -> bool:
        ws = self._agents.get(device_id)
        if ws is None:
            return False
        try:
            await ws.send_text(msg.model_dump_json())
        except Exception as e:
            logger.warning(f"push to {device_id} failed: {e}")
            self.unregister(device_id, ws)
            return False
        return True


async def handle_agent_stream(ws: WebSocket, store: Store, hub: AgentHub):
    await ws.accept()
    device_id = None
    try:
        while True:
            raw = await ws.receive_text()
            try:
                metric = MetricEvent.model_validate_json(raw)
            except ValidationError as e:
                logger.warning(f"rejected metric: {e}")
                await ws.send_text(ControlMessage(type="error", data=b"invalid metric").model_dump_json())
                continue

            if metric.device_id != device_id:
                if device_id is not None:
                    hub.unregister(device_id, ws)
                device_id = metric.device_id
                hub.register(device_id, ws)

            try:
                await store.ingest(metric)
            except StoreError as e:
                logger.error(f"ingest failed: {e}")
    except WebSocketDisconnect as e:
        logger.info(f"stream from {device_id or 'unknown agent'} closed: code={e.code}")
    finally:
        if device_id is not None:
            hub.unregister(device_id, ws)
