"""Latency probe using the system ping command."""

import logging
import platform
import re
import subprocess
from math import ceil
from typing import Optional

from . import config

logger = logging.getLogger(__name__)

# Linux: "rtt min/avg/max/mdev = 9.1/12.3/15.0/2.1 ms"
# macOS/BSD: "round-trip min/avg/max/stddev = 8.1/8.1/8.1/0.0 ms"
_UNIX_SUMMARY = re.compile(r"=\s*[\d.]+/([\d.]+)/[\d.]+(?:/[\d.]+)?\s*ms")
# Windows: "Minimum = 15ms, Maximum = 15ms, Average = 15ms"
_WINDOWS_AVERAGE = re.compile(r"Average\s*=\s*(\d+)\s*ms", re.IGNORECASE)


def parse_ping_average_ms(output: str) -> Optional[float]:
    """Mean round trip from a ping summary, or None if there is none.

    A parsed mean below one millisecond is reported as 1.0 so that a
    successful probe can never read as zero.
    """
    if not output:
        return None

    match = _UNIX_SUMMARY.search(output) or _WINDOWS_AVERAGE.search(output)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return max(value, 1.0)


class LatencyProber:
    def __init__(self, count: int = config.PING_COUNT, timeout: float = config.COMMAND_TIMEOUT):
        if count <= 0:
            raise ValueError("count must be positive")
        self.count = count
        self.timeout = timeout
        self.system = platform.system()

    def build_command(self, host: str):
        if self.system == "Windows":
            return ["ping", "-n", str(self.count), host]
        wait = max(1, ceil(self.timeout / self.count))
        return ["ping", "-c", str(self.count), "-W", str(wait), host]

    def measure(self, host: str) -> Optional[float]:
        """Mean latency in ms for host, None when unreachable or unparseable."""
        if not host or not host.strip():
            return None
        try:
            result = subprocess.run(
                self.build_command(host.strip()),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"ping {host} timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.error(f"ping {host} failed: {e}")
            return None

        if result.returncode != 0:
            logger.warning(f"ping {host} failed: returncode={result.returncode} stderr={result.stderr.strip()}")
            return None

        latency = parse_ping_average_ms(result.stdout)
        if latency is None:
            logger.warning(f"could not parse ping output for {host}")
        return latency
