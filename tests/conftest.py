"""Shared fakes for agent and collector tests."""

import pytest

from agent.config import MonitorConfig
from agent.errors import NetworkManagerError
from agent.models import ConnectionStatus, NetworkProfile


class FakeWifi:
    """In-memory network manager.

    after_connect maps a profile clean name to the status reported once
    that profile has been connected; profiles not listed leave the current
    status unchanged.
    """

    def __init__(self, status=None, profiles=(), visible=(), after_connect=None, fail_connect=()):
        self.status = status
        self.profiles = [NetworkProfile.from_raw(p) if isinstance(p, str) else p for p in profiles]
        self.visible = list(visible)
        self.after_connect = after_connect or {}
        self.fail_connect = set(fail_connect)
        self.connects = []
        self.status_reads = 0

    def list_profiles(self):
        return list(self.profiles)

    def current_status(self):
        self.status_reads += 1
        if self.status is None:
            raise NetworkManagerError("no active Wi-Fi interface found")
        return self.status

    def connect(self, profile):
        self.connects.append(profile.clean_name)
        if profile.clean_name in self.fail_connect:
            raise NetworkManagerError(f"connect {profile.clean_name} refused")
        if profile.clean_name in self.after_connect:
            self.status = self.after_connect[profile.clean_name]

    def visible_networks(self):
        return list(self.visible)


class FakeProber:
    def __init__(self, latency=None):
        self.latency = latency
        self.calls = 0

    def measure(self, host):
        self.calls += 1
        return self.latency


def wifi_status(name, signal, iface="wlan0"):
    return ConnectionStatus(interface_name=iface, ssid=name, profile_name=name, signal=signal)


@pytest.fixture
def cfg():
    return MonitorConfig(
        min_signal_percent=60,
        max_avg_ping_ms=120,
        ping_host="8.8.8.8",
        check_interval=10,
        settle_delay=7,
        preferred_profiles=[],
        verify_scan_connect=False,
        device_id="laptop-01",
        user_id="alice",
        domain="laptop",
    )


@pytest.fixture
def sleeps():
    return []
