"""Tests for the agent/collector stream records."""

import json

import pytest
from pydantic import ValidationError

from wire import ControlMessage, MetricEvent


class TestMetricEvent:
    def test_device_id_required(self):
        with pytest.raises(ValidationError):
            MetricEvent(device_id="  ", timestamp_unix=1)

    def test_device_id_trimmed(self):
        assert MetricEvent(device_id=" laptop-01 ", timestamp_unix=1).device_id == "laptop-01"

    def test_signal_out_of_range(self):
        with pytest.raises(ValidationError):
            MetricEvent(device_id="d", timestamp_unix=1, signal_percent=101)


class TestControlMessage:
    def test_data_is_base64_on_the_wire(self):
        payload = json.loads(ControlMessage(type="notice", data=b"\x00hi").model_dump_json())
        assert payload == {"type": "notice", "data": "AGhp"}

    def test_decode_from_wire(self):
        msg = ControlMessage.model_validate_json('{"type": "reconnect", "data": "T2ZmaWNl"}')
        assert msg.type == "reconnect"
        assert msg.data == b"Office"

    def test_unknown_type_accepted(self):
        assert ControlMessage.model_validate_json('{"type": "future-command"}').data == b""

    def test_empty_type_rejected(self):
        with pytest.raises(ValidationError):
            ControlMessage(type=" ")
