"""Wi-Fi network manager adapters.

The monitor only depends on the NetworkManager protocol. The concrete
managers shell out to the platform tool (nmcli on Linux, netsh on Windows)
and turn its text output into NetworkProfile / ConnectionStatus records.
"""

import logging
import platform
import re
import shutil
import subprocess
from typing import List, Optional, Protocol

from . import config
from .errors import NetworkManagerError
from .models import ConnectionStatus, NetworkProfile

logger = logging.getLogger(__name__)


class NetworkManager(Protocol):
    def list_profiles(self) -> List[NetworkProfile]:
        ...

    def current_status(self) -> ConnectionStatus:
        """Raises NetworkManagerError when no Wi-Fi interface is connected."""
        ...

    def connect(self, profile: NetworkProfile) -> None:
        ...

    def visible_networks(self) -> List[str]:
        """SSIDs currently in range, in the order the OS reports them."""
        ...


def find_profile_by_clean_name(profiles: List[NetworkProfile], name: str) -> Optional[NetworkProfile]:
    wanted = name.strip()
    for p in profiles:
        if p.clean_name.strip() == wanted:
            return p
    return None


def run_command(cmd: List[str], timeout: float = config.COMMAND_TIMEOUT) -> str:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise NetworkManagerError(f"{' '.join(cmd)} timed out after {timeout}s")
    except OSError as e:
        raise NetworkManagerError(f"{' '.join(cmd)} failed: {e}")
    if result.returncode != 0:
        raise NetworkManagerError(
            f"{' '.join(cmd)} failed: returncode={result.returncode} | stderr: {result.stderr.strip()}"
        )
    return result.stdout


def _after_colon(line: str) -> str:
    parts = line.split(":", 1)
    if len(parts) != 2:
        return ""
    return parts[1].strip()


# --- netsh (Windows) ---

def parse_netsh_profiles(output: str) -> List[NetworkProfile]:
    profiles = []
    for line in output.splitlines():
        if "All User Profile" not in line:
            continue
        parts = line.rstrip("\r\n").split(":", 1)
        if len(parts) != 2:
            continue
        # netsh pads the value with exactly one space; anything beyond is part of the name
        raw = parts[1][1:] if parts[1].startswith(" ") else parts[1]
        profiles.append(NetworkProfile.from_raw(raw))
    return profiles


def parse_netsh_interfaces(output: str) -> Optional[ConnectionStatus]:
    name = ssid = profile = ""
    signal = 0
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("Name") and not name:
            name = _after_colon(line)
        elif line.startswith("SSID") and "BSSID" not in line:
            ssid = _after_colon(line)
        elif line.startswith("Profile"):
            profile = _after_colon(line)
        elif line.startswith("Signal"):
            raw = _after_colon(line).rstrip("%").strip()
            if raw.isdigit():
                signal = int(raw)

    if not name or not ssid:
        return None
    return ConnectionStatus(interface_name=name, ssid=ssid, profile_name=profile, signal=min(signal, 100))


def parse_netsh_networks(output: str) -> List[str]:
    ssids = []
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("SSID ") and " : " in line:
            name = line.split(" : ", 1)[1].strip()
            if name:
                ssids.append(name)
    return ssids


class NetshManager:
    def __init__(self, timeout: float = config.COMMAND_TIMEOUT):
        self.timeout = timeout

    def _netsh(self, *args: str) -> str:
        return run_command(["netsh", *args], timeout=self.timeout)

    def list_profiles(self) -> List[NetworkProfile]:
        return parse_netsh_profiles(self._netsh("wlan", "show", "profiles"))

    def current_status(self) -> ConnectionStatus:
        status = parse_netsh_interfaces(self._netsh("wlan", "show", "interfaces"))
        if status is None:
            raise NetworkManagerError("no active Wi-Fi interface found")
        return status

    def connect(self, profile: NetworkProfile) -> None:
        self._netsh("wlan", "connect", f"name={profile.raw_name}")

    def visible_networks(self) -> List[str]:
        return parse_netsh_networks(self._netsh("wlan", "show", "networks", "mode=bssid"))


# --- nmcli (Linux NetworkManager) ---

_TERSE_SPLIT = re.compile(r"(?<!\\):")


def split_terse(line: str) -> List[str]:
    """Split an `nmcli -t` line on unescaped colons."""
    return [f.replace("\\:", ":").replace("\\\\", "\\") for f in _TERSE_SPLIT.split(line)]


def parse_nmcli_profiles(output: str) -> List[NetworkProfile]:
    profiles = []
    for line in output.splitlines():
        fields = split_terse(line)
        if len(fields) >= 2 and fields[1] == "802-11-wireless" and fields[0]:
            profiles.append(NetworkProfile.from_raw(fields[0]))
    return profiles


def parse_nmcli_device(output: str) -> Optional[tuple]:
    """(device, connection) of the first connected wifi device."""
    for line in output.splitlines():
        fields = split_terse(line)
        if len(fields) >= 4 and fields[1] == "wifi" and fields[2] == "connected":
            return fields[0], fields[3]
    return None


def parse_nmcli_active_network(output: str) -> Optional[tuple]:
    """(ssid, signal) of the access point marked in use."""
    for line in output.splitlines():
        fields = split_terse(line)
        if len(fields) >= 3 and fields[0] == "*":
            signal = int(fields[2]) if fields[2].isdigit() else 0
            return fields[1], min(signal, 100)
    return None


def parse_nmcli_networks(output: str) -> List[str]:
    ssids = []
    for line in output.splitlines():
        name = split_terse(line)[0].strip()
        if name and name not in ssids:
            ssids.append(name)
    return ssids


class NmcliManager:
    def __init__(self, timeout: float = config.COMMAND_TIMEOUT):
        self.timeout = timeout

    def _nmcli(self, *args: str) -> str:
        return run_command(["nmcli", "-t", *args], timeout=self.timeout)

    def list_profiles(self) -> List[NetworkProfile]:
        return parse_nmcli_profiles(self._nmcli("-f", "NAME,TYPE", "connection", "show"))

    def current_status(self) -> ConnectionStatus:
        device = parse_nmcli_device(self._nmcli("-f", "DEVICE,TYPE,STATE,CONNECTION", "device", "status"))
        if device is None:
            raise NetworkManagerError("no active Wi-Fi interface found")
        iface, connection = device

        active = parse_nmcli_active_network(
            self._nmcli("-f", "IN-USE,SSID,SIGNAL", "device", "wifi", "list", "ifname", iface, "--rescan", "no")
        )
        ssid, signal = active if active else (connection, 0)
        if not ssid:
            raise NetworkManagerError(f"{iface} is connected but reports no SSID")
        return ConnectionStatus(interface_name=iface, ssid=ssid, profile_name=connection, signal=signal)

    def connect(self, profile: NetworkProfile) -> None:
        self._nmcli("connection", "up", "id", profile.raw_name)

    def visible_networks(self) -> List[str]:
        return parse_nmcli_networks(self._nmcli("-f", "SSID", "device", "wifi", "list"))


def get_manager(backend: str = config.WIFI_BACKEND) -> NetworkManager:
    if backend == "auto":
        if platform.system() == "Windows":
            backend = "netsh"
        elif shutil.which("nmcli"):
            backend = "nmcli"
        else:
            raise NetworkManagerError("no supported Wi-Fi backend found (need nmcli or netsh)")

    if backend == "netsh":
        return NetshManager()
    if backend == "nmcli":
        return NmcliManager()
    raise NetworkManagerError(f"unknown WIFI_BACKEND: {backend}")
