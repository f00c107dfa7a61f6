"""Metric persistence: raw history plus the latest status per device."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from wire import MetricEvent

from . import models
from .database import Base

logger = logging.getLogger(__name__)


def now_utc():
    return datetime.now(timezone.utc)


class StoreError(Exception):
    pass


class Store:
    def __init__(self, engine):
        self.engine = engine
        self.session = async_sessionmaker(engine, expire_on_commit=False)

    async def init_models(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self):
        await self.engine.dispose()

    async def ingest(self, metric: MetricEvent):
        """Append metric to history and overwrite the device's status row.

        Rows are overwritten in arrival order; the embedded timestamp is not
        compared against the stored one.
        """
        fields = metric.model_dump()
        status_fields = {k: v for k, v in fields.items() if k != "device_id"}
        last_seen = datetime.fromtimestamp(metric.timestamp_unix, tz=timezone.utc)

        try:
            async with self.session() as db:
                db.add(models.NetworkMetric(**fields))

                row = await db.get(models.DeviceStatus, metric.device_id)
                if row:
                    for k, v in status_fields.items():
                        setattr(row, k, v)
                    row.last_seen = last_seen
                else:
                    db.add(models.DeviceStatus(device_id=metric.device_id, last_seen=last_seen, **status_fields))

                await db.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"ingest metric for {metric.device_id}: {e}") from e

    async def list_device_status(self) -> List[models.DeviceStatus]:
        try:
            async with self.session() as db:
                result = await db.execute(select(models.DeviceStatus).order_by(models.DeviceStatus.device_id))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"list device status: {e}") from e

    async def list_metrics(self, device_id: Optional[str] = None, limit: int = 50) -> List[models.NetworkMetric]:
        query = select(models.NetworkMetric)
        if device_id:
            query = query.where(models.NetworkMetric.device_id == device_id)
        query = query.order_by(models.NetworkMetric.timestamp_unix.desc(), models.NetworkMetric.id.desc()).limit(limit)
        try:
            async with self.session() as db:
                result = await db.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"list metrics: {e}") from e

    async def delete_older_than(self, horizon: timedelta, now: Optional[datetime] = None) -> int:
        """Delete raw metrics stamped before now - horizon. device_status is left alone."""
        cutoff = int(((now or now_utc()) - horizon).timestamp())
        try:
            async with self.session() as db:
                result = await db.execute(
                    delete(models.NetworkMetric).where(models.NetworkMetric.timestamp_unix < cutoff)
                )
                await db.commit()
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise StoreError(f"delete metrics older than {horizon}: {e}") from e
