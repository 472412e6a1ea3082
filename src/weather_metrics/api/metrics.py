import logging

from litestar import Router, get, post
from litestar.connection import Request
from litestar.exceptions import ServiceUnavailableException
from litestar.status_codes import HTTP_200_OK

from weather_metrics.api.tracing import get_trace_id
from weather_metrics.api.utils import decode_json_body
from weather_metrics.api.validators import validate_fetch_request, validate_update_request
from weather_metrics.data.models import (
    FetchRequest,
    FetchResponse,
    MetricType,
    UpdateRequest,
    UpdateResponse,
)
from weather_metrics.services.fetch import FetchService
from weather_metrics.services.update import UpdateService

logger = logging.getLogger(__name__)


@post("/fetch", status_code=HTTP_200_OK)
async def fetch_metrics(request: Request) -> FetchResponse:
    """Aggregate metrics for sensors over a date range"""
    trace_id = get_trace_id(request)
    payload = await decode_json_body(request, FetchRequest)
    validate_fetch_request(payload)

    logger.info("Fetching request", extra={"trace_id": trace_id})
    logger.debug("Fetching request %s", payload, extra={"trace_id": trace_id})

    service = FetchService(request.app.state.storage, request.app.state.clock)
    response = await service.query(payload, trace_id=trace_id)

    logger.info(
        "Fetch query completed",
        extra={
            "trace_id": trace_id,
            "sensor_count": response.query.total_sensors,
            "data_points": response.query.total_data_points,
        },
    )
    return response


@post("/update", status_code=HTTP_200_OK)
async def update_metrics(request: Request) -> UpdateResponse:
    """Ingest one set of metric values for a sensor"""
    trace_id = get_trace_id(request)
    payload = await decode_json_body(request, UpdateRequest)
    validate_update_request(payload)

    logger.info("Received update request", extra={"trace_id": trace_id})

    service = UpdateService(request.app.state.storage, request.app.state.clock)
    response = await service.ingest(payload, trace_id=trace_id)

    logger.info("Successfully ingested", extra={"trace_id": trace_id, "sensor_id": response.sensor_id})
    return response


@get("/sensors")
async def list_sensors(request: Request) -> dict[str, list[str]]:
    """List all sensors that have reported at least once"""
    storage = request.app.state.storage

    sensor_ids = await storage.list_sensor_ids()
    return {"sensors": sensor_ids}


@get("/metrics")
async def list_metrics() -> dict[str, list[str]]:
    """List all metrics accepted by the update endpoint"""
    return {"metrics": [m.value for m in MetricType]}


@get("/health")
async def health_check(request: Request) -> dict[str, str]:
    try:
        await request.app.state.storage.ping()
    except Exception as e:  # noqa: BLE001 - report any store failure as unavailable
        raise ServiceUnavailableException("Metric store is unavailable") from e
    return {"status": "healthy", "service": "weather-metrics"}


metrics_router = Router(
    path="/api/weather/metrics/v1",
    route_handlers=[
        fetch_metrics,
        update_metrics,
        list_sensors,
        list_metrics,
        health_check,
    ],
)
