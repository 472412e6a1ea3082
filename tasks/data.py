import asyncio
import contextlib
import random

import aiohttp
from invoke.collection import Collection
from invoke.tasks import task

from weather_metrics.data.models import MetricType

# metric -> (low, high) used for generated values; kept inside the API bounds
METRIC_RANGES = {
    MetricType.TEMPERATURE.value: (-20.0, 40.0),
    MetricType.HUMIDITY.value: (10.0, 100.0),
    MetricType.PRESSURE.value: (950.0, 1050.0),
    MetricType.WIND_SPEED.value: (0.0, 120.0),
    MetricType.WIND_DIRECTION.value: (0.0, 360.0),
    MetricType.RAINFALL.value: (0.0, 50.0),
    MetricType.UV_INDEX.value: (0.0, 11.0),
    MetricType.AQI.value: (0.0, 300.0),
}
MANDATORY_METRICS = (MetricType.TEMPERATURE.value, MetricType.HUMIDITY.value)


def generate_weather_data() -> dict:
    """Generate the mandatory metrics plus a random subset of the optional ones."""
    metrics = {}
    for key, (low, high) in METRIC_RANGES.items():
        if key in MANDATORY_METRICS or random.random() < 0.5:  # nosec B311
            metrics[key] = round(random.uniform(low, high), 2)  # nosec B311
    return metrics


async def send_sensor_data(session: aiohttp.ClientSession, sensor_id: str, api_url: str) -> bool:
    """Send one update to the API."""
    payload = {"sensorId": sensor_id, "metrics": generate_weather_data()}

    async with session.post(f"{api_url}/api/weather/metrics/v1/update", json=payload) as response:
        if response.status >= 400:
            with contextlib.suppress(Exception):
                await response.text()
            return False
        return True


async def send_all_data_concurrently(
    sensor_ids: list[str], api_url: str, semaphore: asyncio.Semaphore
) -> list[bool]:
    """Send sensor data concurrently with a single session and semaphore control."""
    timeout = aiohttp.ClientTimeout(total=30)
    async with aiohttp.ClientSession(timeout=timeout) as session:

        async def send_with_semaphore(sensor_id):
            async with semaphore:
                return await send_sensor_data(session, sensor_id, api_url)

        results = await asyncio.gather(
            *[send_with_semaphore(sensor_id) for sensor_id in sensor_ids],
            return_exceptions=True,
        )

        return [result if isinstance(result, bool) else False for result in results]


async def _run_generation(sensors: int, rounds: int, interval: float, api_url: str, max_workers: int):
    sensor_ids = [f"sensor_{i:03d}" for i in range(1, sensors + 1)]
    semaphore = asyncio.Semaphore(max_workers)

    sent = failed = 0
    for round_no in range(rounds):
        results = await send_all_data_concurrently(sensor_ids, api_url, semaphore)
        sent += sum(results)
        failed += len(results) - sum(results)
        if round_no < rounds - 1:
            # Timestamps are server-assigned and unique per (sensor, ts, metric).
            await asyncio.sleep(interval)

    print(f"Sent {sent} updates, {failed} failed")


@task
def generate(ctx, sensors=5, rounds=10, interval=1.0, api_url="http://localhost:8000", max_workers=50):
    """Generate and send synthetic sensor readings to the API."""
    asyncio.run(_run_generation(int(sensors), int(rounds), float(interval), api_url, int(max_workers)))


data_ns = Collection("data", generate=generate)
