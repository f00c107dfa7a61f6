"""Duplex telemetry stream to the collector.

One WebSocket per agent process. Metrics go up synchronously from the
monitor thread; control messages come down on a background listener thread.
"""

import logging
import threading
from typing import Callable, Dict, Optional

from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from wire import ControlMessage, MetricEvent

from .errors import TelemetryError

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5


class TelemetryClient:
    def __init__(self, conn):
        self._conn = conn
        self._send_lock = threading.Lock()
        self._handlers: Dict[str, Callable[[ControlMessage], None]] = {}
        self._listener: Optional[threading.Thread] = None

    @classmethod
    def connect(cls, url: str, timeout: float = CONNECT_TIMEOUT) -> Optional["TelemetryClient"]:
        """Dial the collector; None means run standalone."""
        if not url:
            logger.info("no collector configured, running standalone")
            return None
        try:
            conn = ws_connect(url, open_timeout=timeout)
        except Exception as e:
            logger.warning(f"failed to connect to collector at {url}: {e}; running standalone")
            return None

        logger.info(f"connected to collector at {url}")
        client = cls(conn)
        client.listen_control_async()
        return client

    def on_control(self, msg_type: str, handler: Callable[[ControlMessage], None]):
        self._handlers[msg_type] = handler

    def report_metric(self, metric: MetricEvent):
        try:
            with self._send_lock:
                self._conn.send(metric.model_dump_json())
        except Exception as e:
            raise TelemetryError(f"send metric failed: {e}") from e

    def listen_control_async(self):
        self._listener = threading.Thread(target=self._listen, name="telemetry-control", daemon=True)
        self._listener.start()

    def _listen(self):
        while True:
            try:
                raw = self._conn.recv()
            except ConnectionClosed as e:
                logger.info(f"control stream closed: {e}")
                return
            except Exception as e:
                logger.error(f"control stream failed: {e}")
                return

            try:
                msg = ControlMessage.model_validate_json(raw)
            except ValidationError as e:
                logger.warning(f"ignoring malformed control message: {e}")
                continue
            self.dispatch(msg)

    def dispatch(self, msg: ControlMessage):
        handler = self._handlers.get(msg.type)
        if handler is None:
            logger.info(f"control message: type={msg.type} data={msg.data!r}")
            return
        try:
            handler(msg)
        except Exception as e:
            logger.error(f"control handler for {msg.type} failed: {e}")

    def close(self):
        try:
            self._conn.close()
        finally:
            if self._listener is not None and self._listener is not threading.current_thread():
                self._listener.join(timeout=CONNECT_TIMEOUT)
