import math
import re

from litestar.exceptions import ValidationException

from weather_metrics.data.models import FetchRequest, MetricType, UpdateRequest

VALIDATION_FAILED_MESSAGE = "Request validation failed. Please check the field errors."

SENSOR_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SENSOR_ID_PATTERN_MESSAGE = "sensorId must contain only alphanumeric characters, hyphens, and underscores"
STATISTIC_PATTERN = re.compile(r"^(min|max|sum|average)$")

MAX_SENSORS_PER_QUERY = 100
MAX_METRICS_PER_QUERY = 20
SENSOR_ID_MIN_LENGTH = 3
SENSOR_ID_MAX_LENGTH = 50

REQUIRED_METRICS = frozenset({MetricType.TEMPERATURE.value, MetricType.HUMIDITY.value})

# metric -> (lower bound, upper bound, lower message, upper message)
# The aqi upper message has always said 1000; the enforced bound is 500.
METRIC_BOUNDS: dict[str, tuple[float, float, str, str]] = {
    MetricType.TEMPERATURE.value: (
        -100.0,
        100.0,
        "temperature must be at least -100°C",
        "temperature must not exceed 100°C",
    ),
    MetricType.HUMIDITY.value: (0.0, 100.0, "humidity must be at least 0%", "humidity must not exceed 100%"),
    MetricType.PRESSURE.value: (
        800.0,
        1200.0,
        "pressure must be at least 800 hPa",
        "pressure must not exceed 1200 hPa",
    ),
    MetricType.WIND_SPEED.value: (
        0.0,
        500.0,
        "windSpeed must be at least 0 km/h",
        "windSpeed must not exceed 500 km/h",
    ),
    MetricType.WIND_DIRECTION.value: (
        0.0,
        360.0,
        "windDirection must be at least 0 degrees",
        "windDirection must not exceed 360 degrees",
    ),
    MetricType.RAINFALL.value: (0.0, 1000.0, "rainfall must be at least 0 mm", "rainfall must not exceed 1000 mm"),
    MetricType.UV_INDEX.value: (0.0, 20.0, "uvIndex must be at least 0", "uvIndex must not exceed 20"),
    MetricType.AQI.value: (0.0, 500.0, "aqi must be at least 0", "aqi must not exceed 1000"),
}


def _raise_if_errors(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationException(VALIDATION_FAILED_MESSAGE, extra=errors)


def validate_fetch_request(payload: FetchRequest) -> None:
    """Validate a decoded fetch body.

    Raises ValidationException carrying a field -> message map.
    """
    errors: dict[str, str] = {}

    if payload.sensor_id is not None:
        if len(payload.sensor_id) > MAX_SENSORS_PER_QUERY:
            errors["sensorId"] = f"Maximum {MAX_SENSORS_PER_QUERY} sensors can be queried at once"
        for idx, sensor_id in enumerate(payload.sensor_id):
            if sensor_id is None:
                errors[f"sensorId[{idx}]"] = "sensorId cannot be null"
            elif not SENSOR_ID_PATTERN.fullmatch(sensor_id):
                errors[f"sensorId[{idx}]"] = SENSOR_ID_PATTERN_MESSAGE

    metrics = payload.metrics or []
    if not metrics:
        errors["metrics"] = "At least one metric must be specified"
    elif len(metrics) > MAX_METRICS_PER_QUERY:
        errors["metrics"] = f"Maximum {MAX_METRICS_PER_QUERY} metrics can be queried at once"
    for idx, metric in enumerate(metrics):
        if metric is None:
            errors[f"metrics[{idx}]"] = "Metric name cannot be null"

    if payload.statistic is None:
        errors["statistic"] = "Statistic type is required"
    elif not STATISTIC_PATTERN.fullmatch(payload.statistic):
        errors["statistic"] = "Statistic must be one of: min, max, sum, average"

    _raise_if_errors(errors)


def _sensor_id_error(sensor_id: str | None) -> str | None:
    if sensor_id is None or not sensor_id.strip():
        return "sensorId is required and cannot be blank"
    if not SENSOR_ID_MIN_LENGTH <= len(sensor_id) <= SENSOR_ID_MAX_LENGTH:
        return f"sensorId must be between {SENSOR_ID_MIN_LENGTH} and {SENSOR_ID_MAX_LENGTH} characters"
    if not SENSOR_ID_PATTERN.fullmatch(sensor_id):
        return SENSOR_ID_PATTERN_MESSAGE
    return None


def validate_update_request(payload: UpdateRequest) -> None:
    """Validate a decoded update body, including per-metric bounds."""
    errors: dict[str, str] = {}

    if (message := _sensor_id_error(payload.sensor_id)) is not None:
        errors["sensorId"] = message

    if payload.metrics is None:
        errors["metrics"] = "metrics object is required"
        _raise_if_errors(errors)
        return

    for name, value in payload.metrics.values().items():
        field = f"metrics.{name}"
        if value is None:
            if name in REQUIRED_METRICS:
                errors[field] = f"{name} is required"
            continue
        if not math.isfinite(value):
            errors[field] = f"{name} must be a finite number"
            continue
        lower, upper, lower_message, upper_message = METRIC_BOUNDS[name]
        if value < lower:
            errors[field] = lower_message
        elif value > upper:
            errors[field] = upper_message

    _raise_if_errors(errors)
