import os

# The config module requires a database URL at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

# ruff: noqa: E402
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from litestar.testing import TestClient

from weather_metrics.main import create_app
from weather_metrics.services.fetch import FetchService
from weather_metrics.services.update import UpdateService
from weather_metrics.storage.database import MetricStoreHandler


class FrozenClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 6, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}"


@pytest_asyncio.fixture
async def store(database_url):
    storage = MetricStoreHandler(database_url)
    await storage.create_schema()
    yield storage
    await storage.close()


@pytest.fixture
def fetch_service(store, clock) -> FetchService:
    return FetchService(store, clock)


@pytest.fixture
def update_service(store, clock) -> UpdateService:
    return UpdateService(store, clock)


@pytest.fixture
def client(database_url, clock):
    app = create_app(database_url=database_url, clock=clock)
    with TestClient(app=app) as test_client:
        yield test_client
