import logging
import signal
import threading

from . import config
from .monitor import Monitor
from .probe import LatencyProber
from .status_api import start_status_api
from .telemetry import TelemetryClient
from .wifi import get_manager

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def main():
    configure_logging()

    wifi = get_manager()
    monitor = Monitor(
        wifi=wifi,
        cfg=config.MonitorConfig(),
        prober=LatencyProber(),
        switch_automatically=config.SWITCH_AUTOMATICALLY,
    )

    client = TelemetryClient.connect(config.COLLECTOR_URL)
    if client is not None:
        monitor.on_metric = client.report_metric
    else:
        logger.info("telemetry disabled (standalone mode)")

    start_status_api(monitor)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    logger.info("Agent started.")
    monitor.run_cycle()
    try:
        monitor.start(stop)
    finally:
        if client is not None:
            client.close()


if __name__ == "__main__":
    main()
