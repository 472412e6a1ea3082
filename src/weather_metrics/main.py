from contextlib import asynccontextmanager

from litestar import Litestar
from litestar.datastructures import State
from litestar.openapi import OpenAPIConfig

from weather_metrics.api.errors import exception_handlers
from weather_metrics.api.metrics import metrics_router
from weather_metrics.api.tracing import TraceIdMiddleware
from weather_metrics.config import configure_logging
from weather_metrics.services import Clock, utc_now
from weather_metrics.storage.database import MetricStoreHandler


def create_app(database_url: str | None = None, clock: Clock = utc_now) -> Litestar:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: Litestar):
        """Application lifespan"""
        storage = MetricStoreHandler(database_url)
        await storage.create_schema()
        app.state.storage = storage

        try:
            yield
        finally:
            await storage.close()

    return Litestar(
        route_handlers=[metrics_router],
        lifespan=[lifespan],
        middleware=[TraceIdMiddleware],
        exception_handlers=exception_handlers,
        logging_config=None,
        state=State({"clock": clock}),
        openapi_config=OpenAPIConfig(
            title="Weather Metrics API",
            description="Ingests weather sensor readings and aggregates them over date ranges",
            version="0.1.0",
        ),
    )


app = create_app()
