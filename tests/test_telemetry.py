"""Unit tests for the agent telemetry client."""

import json
import queue

import pytest
from websockets.exceptions import ConnectionClosedOK

from agent import telemetry
from agent.errors import TelemetryError
from agent.telemetry import TelemetryClient
from wire import ControlMessage, MetricEvent


class FakeConnection:
    """Stands in for a websockets sync connection."""

    def __init__(self, incoming=()):
        self.sent = []
        self.closed = False
        self.fail_send = False
        self._incoming = queue.Queue()
        for item in incoming:
            self._incoming.put(item)

    def send(self, message):
        if self.fail_send:
            raise ConnectionError("broken pipe")
        self.sent.append(message)

    def recv(self):
        item = self._incoming.get(timeout=5)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True
        self._incoming.put(ConnectionClosedOK(None, None))


def metric(**overrides):
    fields = dict(
        device_id="laptop-01",
        user_id="alice",
        domain="laptop",
        timestamp_unix=1760000000,
        ssid="Home",
        interface_name="wlan0",
        signal_percent=80,
        avg_ping_ms=20,
        experience_score=76,
    )
    fields.update(overrides)
    return MetricEvent(**fields)


def control_frame(msg_type, data=b""):
    return ControlMessage(type=msg_type, data=data).model_dump_json()


class TestConnect:
    def test_unreachable_collector_means_standalone(self, monkeypatch):
        def refuse(url, **kwargs):
            raise ConnectionRefusedError("connection refused")

        monkeypatch.setattr(telemetry, "ws_connect", refuse)
        assert TelemetryClient.connect("ws://127.0.0.1:1/agent/stream") is None

    def test_no_url_means_standalone(self):
        assert TelemetryClient.connect("") is None

    def test_connect_starts_listener(self, monkeypatch):
        conn = FakeConnection()
        monkeypatch.setattr(telemetry, "ws_connect", lambda url, **kwargs: conn)

        client = TelemetryClient.connect("ws://collector/agent/stream")
        assert client is not None
        client.close()
        assert conn.closed
        assert not client._listener.is_alive()


class TestSend:
    def test_report_metric_sends_json(self):
        conn = FakeConnection()
        TelemetryClient(conn).report_metric(metric())

        assert len(conn.sent) == 1
        payload = json.loads(conn.sent[0])
        assert payload["device_id"] == "laptop-01"
        assert payload["experience_score"] == 76

    def test_send_failure_raises_and_keeps_stream(self):
        conn = FakeConnection()
        conn.fail_send = True
        client = TelemetryClient(conn)

        with pytest.raises(TelemetryError):
            client.report_metric(metric())
        assert not conn.closed

        conn.fail_send = False
        client.report_metric(metric())
        assert len(conn.sent) == 1


class TestControl:
    def test_handlers_receive_messages_until_close(self):
        received = []
        conn = FakeConnection([
            control_frame("reconnect", b"Office"),
            "not json",
            control_frame("notice", b"hello"),
            ConnectionClosedOK(None, None),
        ])
        client = TelemetryClient(conn)
        client.on_control("reconnect", received.append)

        client.listen_control_async()
        client._listener.join(timeout=5)

        assert not client._listener.is_alive()
        assert [(m.type, m.data) for m in received] == [("reconnect", b"Office")]

    def test_listener_stops_on_error(self):
        client = TelemetryClient(FakeConnection([OSError("reset by peer")]))
        client.listen_control_async()
        client._listener.join(timeout=5)
        assert not client._listener.is_alive()

    def test_handler_errors_are_contained(self):
        def broken(msg):
            raise RuntimeError("bad handler")

        client = TelemetryClient(FakeConnection())
        client.on_control("reconnect", broken)
        client.dispatch(ControlMessage(type="reconnect"))
