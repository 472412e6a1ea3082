from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from weather_metrics.data.models import (
    FetchRequest,
    MetricType,
    ReadingValue,
    Snapshot,
    UpdateMetrics,
    UpdateRequest,
)
from weather_metrics.errors import InvalidArgumentError

ALL_METRICS = UpdateMetrics(
    temperature=21.5,
    humidity=60.0,
    pressure=1013.0,
    wind_speed=12.0,
    wind_direction=270.0,
    rainfall=0.4,
    uv_index=5.0,
    aqi=42.0,
)


async def count_rows(store, model) -> int:
    async with store.get_session() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestIngest:
    @pytest.mark.asyncio
    async def test_all_metrics_round_trip(self, update_service, fetch_service, clock):
        response = await update_service.ingest(UpdateRequest(sensor_id="station_1", metrics=ALL_METRICS))

        assert response.saved_count == 8
        assert response.sensor_id == "station_1"
        assert response.timestamp == clock.now

        names = [m.value for m in MetricType]
        fetched = await fetch_service.query(FetchRequest(sensor_id=["station_1"], metrics=names, statistic="max"))

        metrics = fetched.results[0].metrics
        assert set(metrics) == set(names)
        assert all(stat.data_points == 1 for stat in metrics.values())
        assert metrics["windDirection"].value == pytest.approx(270.0)
        assert metrics["uvIndex"].value == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_mandatory_metrics_only(self, update_service, fetch_service):
        response = await update_service.ingest(
            UpdateRequest(sensor_id="station_2", metrics=UpdateMetrics(temperature=-3.0, humidity=88.0))
        )

        assert response.saved_count == 2
        fetched = await fetch_service.query(
            FetchRequest(metrics=[m.value for m in MetricType], statistic="min")
        )
        assert list(fetched.results[0].metrics) == ["humidity", "temperature"]

    @pytest.mark.asyncio
    async def test_writes_one_snapshot_per_call(self, store, update_service, clock):
        await update_service.ingest(UpdateRequest(sensor_id="station_1", metrics=ALL_METRICS))
        clock.advance(minutes=1)
        await update_service.ingest(
            UpdateRequest(sensor_id="station_1", metrics=UpdateMetrics(temperature=20.0, humidity=50.0))
        )

        assert await count_rows(store, Snapshot) == 2
        assert await count_rows(store, ReadingValue) == 10

    @pytest.mark.asyncio
    async def test_sensor_id_is_trimmed(self, store, update_service):
        response = await update_service.ingest(
            UpdateRequest(sensor_id="  station_3 ", metrics=UpdateMetrics(temperature=1.0, humidity=2.0))
        )

        assert response.sensor_id == "station_3"
        assert await store.list_sensor_ids() == ["station_3"]

    @pytest.mark.asyncio
    async def test_rows_share_snapshot_timestamp(self, store, update_service, clock):
        clock.now = datetime(2024, 6, 15, 8, 30, 15, tzinfo=UTC)
        await update_service.ingest(UpdateRequest(sensor_id="station_1", metrics=ALL_METRICS))

        async with store.get_session() as session:
            snapshot = (await session.execute(select(Snapshot))).scalar_one()
            readings = (await session.execute(select(ReadingValue))).scalars().all()

        assert {r.snapshot_id for r in readings} == {snapshot.id}
        assert {r.ts.replace(tzinfo=None) for r in readings} == {snapshot.ts.replace(tzinfo=None)}

    @pytest.mark.asyncio
    async def test_duplicate_timestamp_is_rejected_atomically(self, store, update_service):
        request = UpdateRequest(sensor_id="station_1", metrics=UpdateMetrics(temperature=1.0, humidity=2.0))
        await update_service.ingest(request)

        with pytest.raises(IntegrityError):
            await update_service.ingest(request)

        assert await count_rows(store, Snapshot) == 1
        assert await count_rows(store, ReadingValue) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sensor_id", [None, "", "   "])
    async def test_blank_sensor_id(self, update_service, sensor_id):
        with pytest.raises(InvalidArgumentError, match="sensorId is required"):
            await update_service.ingest(
                UpdateRequest(sensor_id=sensor_id, metrics=UpdateMetrics(temperature=1.0, humidity=2.0))
            )

    @pytest.mark.asyncio
    async def test_missing_metrics(self, update_service):
        with pytest.raises(InvalidArgumentError, match="metrics object is required"):
            await update_service.ingest(UpdateRequest(sensor_id="station_1"))


def test_provided_skips_nulls_in_storage_order():
    metrics = UpdateMetrics(aqi=10, humidity=50.0, temperature=20.0, wind_speed=3.0)
    assert list(metrics.provided().items()) == [
        ("temperature", 20.0),
        ("humidity", 50.0),
        ("windSpeed", 3.0),
        ("aqi", 10.0),
    ]
