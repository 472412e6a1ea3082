from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

import msgspec
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Statistic(str, Enum):
    MIN = "min"
    MAX = "max"
    SUM = "sum"
    AVG = "average"

    def to_sqlalchemy_func(self):
        mapping = {
            Statistic.MIN: func.min,
            Statistic.MAX: func.max,
            Statistic.SUM: func.sum,
            Statistic.AVG: func.avg,
        }
        return mapping[self]


class MetricType(str, Enum):
    """Metric names accepted by the update endpoint, in storage order."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    WIND_SPEED = "windSpeed"
    WIND_DIRECTION = "windDirection"
    RAINFALL = "rainfall"
    UV_INDEX = "uvIndex"
    AQI = "aqi"


class Snapshot(Base):
    """One ingest call for one sensor; every reading row points at one."""

    __tablename__ = "snapshots"

    id = Column(Uuid, primary_key=True, default=uuid4)
    sensor_id = Column(Text, nullable=False)
    ts = Column(DateTime(timezone=True), nullable=False)
    received_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("idx_snapshots_sensor_ts", "sensor_id", "ts"),)


class ReadingValue(Base):
    """A single metric value of a snapshot"""

    __tablename__ = "reading_values"

    id = Column(Uuid, primary_key=True, default=uuid4)
    snapshot_id = Column(Uuid, ForeignKey("snapshots.id"), nullable=False)
    sensor_id = Column(Text, nullable=False)
    ts = Column(DateTime(timezone=True), nullable=False)
    metric = Column(Text, nullable=False)
    value = Column(Float(precision=53), nullable=False)

    __table_args__ = (
        UniqueConstraint("snapshot_id", "metric", name="uk_snapshot_metric"),
        UniqueConstraint("sensor_id", "ts", "metric", name="uk_sensor_ts_metric"),
        Index("idx_values_sensor_ts", "sensor_id", "ts"),
        Index("idx_values_metric_ts", "metric", "ts"),
        Index("idx_values_sensor_metric_ts", "sensor_id", "metric", "ts"),
    )


class ReadingFilter(msgspec.Struct, frozen=True):
    """Store-agnostic description of the rows an aggregate query covers.

    ``start`` is inclusive and ``end`` exclusive. ``sensor_ids`` of ``None``
    means every sensor; an empty list matches no sensor.
    """

    start: datetime
    end: datetime
    metrics: list[str]
    sensor_ids: list[str] | None = None


class AggregateRow(msgspec.Struct, frozen=True):
    """One (sensor, metric) group produced by the store"""

    sensor_id: str
    metric: str
    value: float | None
    data_points: int


class FetchRequest(msgspec.Struct, rename="camel"):
    """Body of the fetch endpoint"""

    metrics: list[str | None] | None = None
    statistic: str | None = None
    sensor_id: list[str | None] | None = None
    start_date: date | None = None
    end_date: date | None = None


class MetricStatistic(msgspec.Struct, rename="camel", omit_defaults=True, kw_only=True):
    """Result for a single metric with calculated statistic; a null value is omitted"""

    metric: str
    statistic: str
    value: float | None = None
    data_points: int


class SensorResult(msgspec.Struct, rename="camel"):
    """Results for a single sensor, keyed by metric name"""

    sensor_id: str
    metrics: dict[str, MetricStatistic]


class QueryInfo(msgspec.Struct, rename="camel", omit_defaults=True, kw_only=True):
    """Echo of the effective query; ``sensor_id`` is omitted when unfiltered"""

    sensor_id: list[str | None] | None = None
    metrics: list[str | None]
    statistic: str
    start_date: date
    end_date: date
    total_sensors: int
    total_data_points: int


class FetchResponse(msgspec.Struct):
    """Complete fetch response"""

    query: QueryInfo
    results: list[SensorResult]


class UpdateMetrics(msgspec.Struct, rename="camel"):
    """Metric values of one update call; only temperature and humidity are mandatory"""

    temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    rainfall: float | None = None
    uv_index: float | None = None
    aqi: float | None = None

    def values(self) -> dict[str, float | None]:
        """All values keyed by stored metric name, in MetricType order"""
        return {
            MetricType.TEMPERATURE.value: self.temperature,
            MetricType.HUMIDITY.value: self.humidity,
            MetricType.PRESSURE.value: self.pressure,
            MetricType.WIND_SPEED.value: self.wind_speed,
            MetricType.WIND_DIRECTION.value: self.wind_direction,
            MetricType.RAINFALL.value: self.rainfall,
            MetricType.UV_INDEX.value: self.uv_index,
            MetricType.AQI.value: self.aqi,
        }

    def provided(self) -> dict[str, float]:
        return {name: float(value) for name, value in self.values().items() if value is not None}


class UpdateRequest(msgspec.Struct, rename="camel"):
    """Body of the update endpoint"""

    sensor_id: str | None = None
    metrics: UpdateMetrics | None = None


class UpdateResponse(msgspec.Struct, rename="camel"):
    sensor_id: str
    timestamp: datetime
    saved_count: int


class ApiError(msgspec.Struct, rename="camel", omit_defaults=True):
    """Error body shared by every 4xx/5xx response"""

    status: str
    error_code: str
    message: str
    trace_id: str
    details: dict[str, Any] | None = None

    @classmethod
    def of(cls, code: str, message: str, trace_id: str, details: dict[str, Any] | None = None) -> "ApiError":
        return cls(status="error", error_code=code, message=message, trace_id=trace_id, details=details)
