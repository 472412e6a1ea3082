"""Aggregate statistics over stored sensor readings."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, time, timedelta

from weather_metrics.data.models import (
    AggregateRow,
    FetchRequest,
    FetchResponse,
    MetricStatistic,
    QueryInfo,
    ReadingFilter,
    SensorResult,
    Statistic,
)
from weather_metrics.errors import InvalidArgumentError
from weather_metrics.services import Clock, utc_now
from weather_metrics.storage.database import MetricStore

logger = logging.getLogger(__name__)

VALID_STATISTICS = frozenset({"min", "max", "sum", "average"})
DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 31


class FetchService:
    def __init__(self, store: MetricStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def query(self, request: FetchRequest, *, trace_id: str | None = None) -> FetchResponse:
        """Run one fetch request against the store.

        Raises InvalidArgumentError for an unknown statistic or an unusable
        date range. Store failures propagate unchanged.
        """
        log_extra = {"trace_id": trace_id}
        logger.debug("Processing fetch query: %s", request, extra=log_extra)

        statistic = validate_statistic(request.statistic, trace_id=trace_id)

        start_date, end_date = resolve_dates(request.start_date, request.end_date, today=self._today())
        logger.debug("Resolved date range: %s to %s", start_date, end_date, extra=log_extra)
        validate_date_range(start_date, end_date, trace_id=trace_id)

        metrics = request.metrics or []
        reading_filter = build_reading_filter(request.sensor_id, metrics, start_date, end_date)
        aggregate = aggregate_function(statistic)
        logger.debug("Executing query with aggregate function: %s", aggregate.name, extra=log_extra)

        rows = await self._store.aggregate_readings(reading_filter, aggregate)
        logger.debug("Query returned %d raw result rows", len(rows), extra=log_extra)

        grouped = group_by_sensor(rows, statistic)
        results = [SensorResult(sensor_id=sensor_id, metrics=stats) for sensor_id, stats in grouped.items()]
        total_data_points = sum(row.data_points for row in rows)

        logger.info(
            "Fetch query successful: %d sensors, %d metrics, %d data points processed",
            len(results),
            len(metrics),
            total_data_points,
            extra=log_extra,
        )

        return FetchResponse(
            query=QueryInfo(
                sensor_id=request.sensor_id or None,
                metrics=metrics,
                statistic=statistic,
                start_date=start_date,
                end_date=end_date,
                total_sensors=len(results),
                total_data_points=total_data_points,
            ),
            results=results,
        )

    def _today(self) -> date:
        return self._clock().astimezone(UTC).date()


def validate_statistic(statistic: str | None, *, trace_id: str | None = None) -> str:
    if statistic is None or statistic.lower() not in VALID_STATISTICS:
        logger.warning("Invalid statistic requested: %s", statistic, extra={"trace_id": trace_id})
        raise InvalidArgumentError("Statistic must be one of: min, max, sum, average")
    return statistic


def resolve_dates(start: date | None, end: date | None, *, today: date) -> tuple[date, date]:
    """Fill in missing dates: end defaults to today, start to a week before end."""
    end_date = end if end is not None else today
    start_date = start if start is not None else end_date - timedelta(days=DEFAULT_WINDOW_DAYS)
    return start_date, end_date


def validate_date_range(start: date, end: date, *, trace_id: str | None = None) -> None:
    log_extra = {"trace_id": trace_id}
    if start > end:
        logger.warning("Invalid date range: start=%s is after end=%s", start, end, extra=log_extra)
        raise InvalidArgumentError("startDate must be before or equal to endDate")

    days = (end - start).days + 1
    if days < 1:
        logger.warning("Date range too short: %d days", days, extra=log_extra)
        raise InvalidArgumentError("Date range must be at least 1 day")
    if days > MAX_WINDOW_DAYS:
        logger.warning("Date range too long: %d days", days, extra=log_extra)
        raise InvalidArgumentError(f"Date range must not exceed {MAX_WINDOW_DAYS} days")


def window_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Half-open UTC instants covering every day from start through end."""
    return (
        datetime.combine(start, time.min, tzinfo=UTC),
        datetime.combine(end + timedelta(days=1), time.min, tzinfo=UTC),
    )


def build_reading_filter(
    sensor_ids: list[str | None] | None,
    metrics: list[str | None],
    start: date,
    end: date,
) -> ReadingFilter:
    start_at, end_at = window_bounds(start, end)
    return ReadingFilter(
        start=start_at,
        end=end_at,
        metrics=[m for m in metrics if m is not None],
        # No filter means every sensor; a list of only nulls matches none.
        sensor_ids=[s for s in sensor_ids if s is not None] if sensor_ids else None,
    )


def aggregate_function(statistic: str) -> Statistic:
    mapping = {
        "min": Statistic.MIN,
        "max": Statistic.MAX,
        "sum": Statistic.SUM,
        "average": Statistic.AVG,
    }
    try:
        return mapping[statistic.lower()]
    except KeyError as e:
        raise InvalidArgumentError(f"Invalid statistic: {statistic}") from e


def group_by_sensor(rows: list[AggregateRow], statistic: str) -> dict[str, dict[str, MetricStatistic]]:
    """Nest rows as sensor -> metric -> statistic, keeping the store's row order."""
    grouped: dict[str, dict[str, MetricStatistic]] = {}
    for row in rows:
        grouped.setdefault(row.sensor_id, {})[row.metric] = MetricStatistic(
            metric=row.metric,
            statistic=statistic,
            value=row.value,
            data_points=row.data_points,
        )
    return grouped
