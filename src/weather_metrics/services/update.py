import logging

from weather_metrics.data.models import UpdateRequest, UpdateResponse
from weather_metrics.errors import InvalidArgumentError
from weather_metrics.services import Clock, utc_now
from weather_metrics.storage.database import MetricStore

logger = logging.getLogger(__name__)


class UpdateService:
    def __init__(self, store: MetricStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    async def ingest(self, request: UpdateRequest, *, trace_id: str | None = None) -> UpdateResponse:
        """Persist one snapshot of the request's metrics at the server time."""
        if not request.sensor_id or not request.sensor_id.strip():
            raise InvalidArgumentError("sensorId is required and cannot be blank")
        if request.metrics is None:
            raise InvalidArgumentError("metrics object is required")

        sensor_id = request.sensor_id.strip()
        timestamp = self._clock()
        readings = request.metrics.provided()

        logger.debug(
            "Starting ingestion at %s",
            timestamp.isoformat(),
            extra={"trace_id": trace_id, "sensor_id": sensor_id},
        )

        saved = await self._store.record_snapshot(sensor_id, timestamp, readings)

        logger.info(
            "Ingestion complete",
            extra={"trace_id": trace_id, "sensor_id": sensor_id, "saved_count": saved},
        )
        return UpdateResponse(sensor_id=sensor_id, timestamp=timestamp, saved_count=saved)
