"""End-to-end tests for the collector's HTTP and stream endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from collector.database import make_engine
from collector.main import create_app
from collector.store import Store
from wire import ControlMessage, MetricEvent


def metric_json(device_id="laptop-01", **overrides):
    fields = dict(
        device_id=device_id,
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
    return MetricEvent(**fields).model_dump_json()


def flush(ws):
    # the server answers an invalid frame in order, so everything before it was ingested
    ws.send_text("{}")
    reply = ControlMessage.model_validate_json(ws.receive_text())
    assert reply.type == "error"


@pytest.fixture
def client(tmp_path):
    store = Store(make_engine(f"sqlite+aiosqlite:///{tmp_path / 'collector.db'}"))
    with TestClient(create_app(store, retention=False)) as c:
        yield c


class TestCollectorApi:
    def test_health(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.text == "ok"

    def test_status_empty(self, client):
        res = client.get("/status")
        assert res.status_code == 200
        assert res.json() == []

    def test_stream_ingests_metrics(self, client):
        with client.websocket_connect("/agent/stream") as ws:
            ws.send_text(metric_json(signal_percent=55))
            ws.send_text(metric_json(signal_percent=65, experience_score=60))
            flush(ws)

        rows = client.get("/status").json()
        assert len(rows) == 1
        assert rows[0]["device_id"] == "laptop-01"
        assert rows[0]["signal_percent"] == 65
        assert rows[0]["experience_score"] == 60
        assert rows[0]["timestamp_unix"] == 1760000000

        history = client.get("/metrics", params={"device_id": "laptop-01"}).json()
        assert [m["signal_percent"] for m in history] == [65, 55]

    def test_control_push_to_connected_agent(self, client):
        with client.websocket_connect("/agent/stream") as ws:
            ws.send_text(metric_json("laptop-02"))
            flush(ws)
            assert client.get("/agents").json() == ["laptop-02"]

            res = client.post("/control/laptop-02", json={"type": "notice", "data": "maintenance at 22:00"})
            assert res.status_code == 200

            msg = ControlMessage.model_validate_json(ws.receive_text())
            assert msg.type == "notice"
            assert msg.data == b"maintenance at 22:00"

    def test_control_to_unknown_agent(self, client):
        res = client.post("/control/nobody", json={"type": "notice"})
        assert res.status_code == 404

    def test_invalid_metric_is_reported(self, client):
        with client.websocket_connect("/agent/stream") as ws:
            ws.send_text(json.dumps({"device_id": "", "timestamp_unix": 1}))
            reply = ControlMessage.model_validate_json(ws.receive_text())
            assert reply.type == "error"
        assert client.get("/status").json() == []

    def test_control_to_closing_agent(self, client):
        class ClosingSocket:
            async def send_text(self, text):
                raise RuntimeError("Cannot call \"send\" once a close message has been sent.")

        hub = client.app.state.hub
        hub.register("laptop-03", ClosingSocket())

        res = client.post("/control/laptop-03", json={"type": "notice"})

        assert res.status_code == 404
        assert res.json()["detail"] == "Agent not connected"
        assert hub.connected() == []
