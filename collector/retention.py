import asyncio
import logging
from datetime import timedelta

from . import config

logger = logging.getLogger(__name__)


async def retention_tick(store, horizon: timedelta = config.RETENTION_HORIZON):
    logger.info(f"running retention job: delete metrics older than {horizon.days} days")
    try:
        removed = await store.delete_older_than(horizon)
        logger.info(f"retention job removed {removed} metric rows")
    except Exception as e:
        logger.error(f"retention error: {e}")


async def run_retention(
    store,
    period: timedelta = config.RETENTION_PERIOD,
    horizon: timedelta = config.RETENTION_HORIZON,
    sleep=asyncio.sleep,
):
    """Prune old metrics every period until the task is cancelled."""
    while True:
        await sleep(period.total_seconds())
        await retention_tick(store, horizon)
