"""Periodic Wi-Fi health evaluation and failover."""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import schedule

from wire import MetricEvent

from .config import MonitorConfig
from .errors import MonitorError, NoAlternativeProfile, StatusUnavailable
from .models import ConnectionStatus, HealthSnapshot, NetworkProfile
from .probe import LatencyProber
from .scoring import score as compute_score
from .wifi import NetworkManager, find_profile_by_clean_name

logger = logging.getLogger(__name__)


def now_utc():
    return datetime.now(timezone.utc)


def is_degraded(signal: int, latency_ms: Optional[float], cfg: MonitorConfig) -> bool:
    # signal 0 means "unknown", never "bad"
    bad_signal = 0 < signal < cfg.min_signal_percent
    bad_latency = latency_ms is not None and latency_ms > cfg.max_avg_ping_ms
    return bad_signal or bad_latency


class Monitor:
    """Owns the health snapshot and the failover mode flag.

    One cycle (check_once) reads the interface status, probes latency,
    scores, publishes a new snapshot, emits a metric and, when the link is
    degraded, tries to move to another saved network. With
    switch_automatically off it walks the configured preferred profiles in
    order; with it on it connects to the first visible network that has a
    saved profile.
    """

    def __init__(
        self,
        wifi: NetworkManager,
        cfg: Optional[MonitorConfig] = None,
        prober: Optional[LatencyProber] = None,
        switch_automatically: bool = False,
        on_metric: Optional[Callable[[MetricEvent], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.wifi = wifi
        self.cfg = cfg or MonitorConfig()
        self.prober = prober or LatencyProber()
        self.on_metric = on_metric
        self._sleep = sleep
        self._clock = clock

        self._lock = threading.Lock()
        self._snapshot = HealthSnapshot()
        self._switch_automatically = switch_automatically

    # --- shared state ---

    def snapshot(self) -> HealthSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def switch_automatically(self) -> bool:
        with self._lock:
            return self._switch_automatically

    @switch_automatically.setter
    def switch_automatically(self, value: bool):
        with self._lock:
            self._switch_automatically = bool(value)

    def toggle_mode(self) -> bool:
        with self._lock:
            self._switch_automatically = not self._switch_automatically
            value = self._switch_automatically
        logger.info(f"switch_automatically set to {value}")
        return value

    def _publish(self, status: ConnectionStatus, latency: Optional[float], score: int) -> HealthSnapshot:
        with self._lock:
            ts = self._clock()
            prev = self._snapshot.last_updated
            if prev is not None and ts < prev:
                ts = prev
            self._snapshot = HealthSnapshot(
                ssid=status.ssid,
                profile=status.profile_name,
                signal=status.signal,
                avg_ping_ms=latency,
                score=score,
                last_updated=ts,
            )
            return self._snapshot

    # --- loop ---

    def start(self, stop_event: threading.Event):
        """Run cycles every check_interval seconds until stop_event is set."""
        scheduler = schedule.Scheduler()
        scheduler.every(self.cfg.check_interval).seconds.do(self.run_cycle)
        logger.info(f"Monitor started: interval={self.cfg.check_interval}s")

        while not stop_event.is_set():
            scheduler.run_pending()
            stop_event.wait(1)

        scheduler.clear()
        logger.info("Monitor stopped.")

    def run_cycle(self):
        try:
            self.check_once()
        except MonitorError as e:
            logger.warning(f"monitor cycle: {e}")
        except Exception as e:
            logger.error(f"monitor cycle failed: {e}", exc_info=True)

    def check_once(self) -> Optional[NetworkProfile]:
        """Run one evaluation cycle.

        Returns the profile switched to, or None when the link is healthy or
        a scan found nothing to connect to. Raises StatusUnavailable when the
        interface cannot be read and NoAlternativeProfile when failover is
        exhausted.
        """
        try:
            status = self.wifi.current_status()
        except Exception as e:
            raise StatusUnavailable(f"get current status: {e}") from e

        latency = self._measure()
        score = compute_score(status.signal, latency)
        snap = self._publish(status, latency, score)
        logger.info(
            f"ssid={snap.ssid} profile={snap.profile} signal={snap.signal}% "
            f"ping={latency if latency is not None else '-'}ms score={score}"
        )

        self._emit(status, latency, score, snap.last_updated)

        if not is_degraded(status.signal, latency, self.cfg):
            return None

        if self.switch_automatically:
            return self.try_visible_networks(status)
        return self.try_failover(status)

    def _emit(self, status: ConnectionStatus, latency: Optional[float], score: int, ts: datetime):
        handler = self.on_metric
        if handler is None:
            logger.debug("no metric handler set, skipping emission")
            return

        try:
            metric = MetricEvent(
                device_id=self.cfg.device_id,
                user_id=self.cfg.user_id,
                domain=self.cfg.domain,
                timestamp_unix=int(ts.timestamp()),
                ssid=status.ssid,
                interface_name=status.interface_name,
                signal_percent=status.signal,
                avg_ping_ms=int(round(latency)) if latency is not None else 0,
                experience_score=score,
            )
            handler(metric)
        except Exception as e:
            logger.error(f"metric emission failed: {e}")

    # --- recovery ---

    def _is_current(self, profile: NetworkProfile, status: ConnectionStatus) -> bool:
        return profile.clean_name in (status.profile_name, status.ssid) or profile.raw_name == status.profile_name

    def _measure(self) -> Optional[float]:
        try:
            return self.prober.measure(self.cfg.ping_host)
        except Exception as e:
            logger.warning(f"ping failed: {e}")
            return None

    def _verify_switch(self, profile: NetworkProfile) -> bool:
        """Wait for the link to settle and check it landed on profile with usable signal.

        On success the snapshot is refreshed from the new connection.
        """
        self._sleep(self.cfg.settle_delay)
        try:
            new_status = self.wifi.current_status()
        except Exception as e:
            logger.warning(f"after-switch status error: {e}")
            return False

        logger.info(f"after-switch: {new_status.describe()}")
        matched = new_status.profile_name == profile.raw_name or new_status.ssid == profile.clean_name
        if not matched or new_status.signal < self.cfg.min_signal_percent:
            return False

        latency = self._measure()
        self._publish(new_status, latency, compute_score(new_status.signal, latency))
        return True

    def try_failover(self, current: ConnectionStatus) -> NetworkProfile:
        try:
            profiles = self.wifi.list_profiles()
        except Exception as e:
            raise NoAlternativeProfile(f"list profiles: {e}") from e

        for preferred in self.cfg.preferred_profiles:
            if preferred in (current.profile_name, current.ssid):
                continue

            profile = find_profile_by_clean_name(profiles, preferred)
            if profile is None:
                logger.debug(f"preferred profile not saved: {preferred}")
                continue

            logger.info(f"attempting switch to: {profile.clean_name}")
            try:
                self.wifi.connect(profile)
            except Exception as e:
                logger.warning(f"connect to {profile.clean_name} failed: {e}")
                continue

            if self._verify_switch(profile):
                logger.info(f"failover to {profile.clean_name} successful")
                return profile

        raise NoAlternativeProfile("no suitable alternative profile found or all failed")

    def try_visible_networks(self, current: ConnectionStatus) -> Optional[NetworkProfile]:
        try:
            visible = self.wifi.visible_networks()
            saved = self.wifi.list_profiles()
        except Exception as e:
            raise MonitorError(f"network scan failed: {e}") from e

        saved_by_name = {p.clean_name: p for p in saved}
        logger.info(f"visible SSIDs: {', '.join(visible) or '(none)'}")

        for ssid in visible:
            profile = saved_by_name.get(ssid.strip())
            if profile is None:
                logger.debug(f"visible SSID has no saved profile: {ssid}")
                continue
            if self._is_current(profile, current):
                logger.debug(f"already connected to: {profile.raw_name}")
                continue

            logger.info(f"attempting connect to: {profile.raw_name}")
            try:
                self.wifi.connect(profile)
            except Exception as e:
                logger.warning(f"connect to {profile.raw_name} failed: {e}")
                continue

            if self.cfg.verify_scan_connect and not self._verify_switch(profile):
                logger.warning(f"{profile.clean_name} did not come up healthy, trying next")
                continue

            logger.info(f"connected to: {profile.raw_name}")
            return profile

        return None
