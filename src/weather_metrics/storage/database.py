import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from weather_metrics.config import DATABASE_ECHO, DATABASE_URL
from weather_metrics.data.models import (
    AggregateRow,
    Base,
    ReadingFilter,
    ReadingValue,
    Snapshot,
    Statistic,
)

logger = logging.getLogger(__name__)


class MetricStore(Protocol):
    async def aggregate_readings(
        self, reading_filter: ReadingFilter, statistic: Statistic
    ) -> list[AggregateRow]: ...

    async def record_snapshot(
        self, sensor_id: str, timestamp: datetime, readings: dict[str, float]
    ) -> int: ...


class MetricStoreHandler:
    """SQLAlchemy-backed metric store (PostgreSQL/TimescaleDB in production)."""

    def __init__(self, database_url: str | None = None, **engine_kwargs):
        engine_kwargs.setdefault("echo", DATABASE_ECHO)
        self.async_engine = create_async_engine(database_url or DATABASE_URL, **engine_kwargs)
        self.async_session = async_sessionmaker(
            self.async_engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self):
        """Get async database session"""
        session = self.async_session()
        try:
            yield session
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create missing tables and indexes"""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def record_snapshot(
        self, sensor_id: str, timestamp: datetime, readings: dict[str, float]
    ) -> int:
        """Store one snapshot and one reading row per metric in a single transaction"""
        async with self.get_session() as session, session.begin():
            snapshot = Snapshot(id=uuid4(), sensor_id=sensor_id, ts=timestamp)
            session.add(snapshot)
            await session.flush()

            session.add_all(
                ReadingValue(
                    id=uuid4(),
                    snapshot_id=snapshot.id,
                    sensor_id=sensor_id,
                    ts=timestamp,
                    metric=metric,
                    value=value,
                )
                for metric, value in readings.items()
            )
            logger.debug("Saving %d readings for snapshot %s", len(readings), snapshot.id)
        return len(readings)

    async def aggregate_readings(
        self, reading_filter: ReadingFilter, statistic: Statistic
    ) -> list[AggregateRow]:
        """Group readings by (sensor, metric) and apply the statistic to each group"""
        agg_func = statistic.to_sqlalchemy_func()

        stmt = (
            select(
                ReadingValue.sensor_id,
                ReadingValue.metric,
                agg_func(ReadingValue.value).label("value"),
                func.count(ReadingValue.id).label("data_points"),
            )
            .where(
                ReadingValue.ts >= reading_filter.start,
                ReadingValue.ts < reading_filter.end,
                ReadingValue.metric.in_(reading_filter.metrics),
            )
            .group_by(ReadingValue.sensor_id, ReadingValue.metric)
            .order_by(ReadingValue.sensor_id, ReadingValue.metric)
        )

        if reading_filter.sensor_ids is not None:
            stmt = stmt.where(ReadingValue.sensor_id.in_(reading_filter.sensor_ids))

        async with self.get_session() as session:
            rows = (await session.execute(stmt)).fetchall()

        return [
            AggregateRow(
                sensor_id=row.sensor_id,
                metric=row.metric,
                value=float(row.value) if row.value is not None else None,
                data_points=int(row.data_points),
            )
            for row in rows
        ]

    async def list_sensor_ids(self) -> list[str]:
        """Return distinct sensor IDs seen"""
        async with self.get_session() as session:
            stmt = select(Snapshot.sensor_id).distinct()
            result = await session.execute(stmt)
            rows = result.scalars().all()
            return sorted(set(rows))

    async def ping(self) -> None:
        async with self.get_session() as session:
            await session.execute(select(1))

    async def close(self):
        """Close database connections"""
        await self.async_engine.dispose()
