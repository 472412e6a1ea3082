"""Map exceptions to the shared JSON error body."""

import logging
from typing import Any

from litestar import Request, Response
from litestar.exceptions import HTTPException, ValidationException
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_409_CONFLICT,
    HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from weather_metrics.api.tracing import TRACE_ID_HEADER, get_trace_id
from weather_metrics.api.validators import VALIDATION_FAILED_MESSAGE
from weather_metrics.data.models import ApiError
from weather_metrics.errors import ErrorCode, InvalidArgumentError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please contact support with the trace ID."

_STATUS_ERROR_CODES = {
    HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    HTTP_415_UNSUPPORTED_MEDIA_TYPE: ErrorCode.UNSUPPORTED_MEDIA_TYPE,
    HTTP_503_SERVICE_UNAVAILABLE: ErrorCode.DATA_UNAVAILABLE,
}


def error_response(
    request: Request,
    status_code: int,
    code: ErrorCode,
    message: str,
    details: dict[str, Any] | None = None,
) -> Response[ApiError]:
    trace_id = get_trace_id(request)
    return Response(
        content=ApiError.of(code.value, message, trace_id, details),
        status_code=status_code,
        headers={TRACE_ID_HEADER: trace_id},
    )


def validation_exception_handler(request: Request, exc: ValidationException) -> Response[ApiError]:
    details: dict[str, Any] | None = exc.extra if isinstance(exc.extra, dict) else None
    logger.warning(
        "Validation failed: %d field errors - %s",
        len(details or {}),
        details,
        extra={"trace_id": get_trace_id(request), "error_code": ErrorCode.VALIDATION_FAILED.value},
    )
    return error_response(
        request, HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_FAILED, VALIDATION_FAILED_MESSAGE, details
    )


def invalid_argument_handler(request: Request, exc: InvalidArgumentError) -> Response[ApiError]:
    logger.warning(
        "Invalid argument: %s",
        exc,
        extra={"trace_id": get_trace_id(request), "error_code": ErrorCode.BAD_REQUEST.value},
    )
    return error_response(request, HTTP_400_BAD_REQUEST, ErrorCode.BAD_REQUEST, str(exc))


def http_exception_handler(request: Request, exc: HTTPException) -> Response[ApiError]:
    status_code = exc.status_code
    code = _STATUS_ERROR_CODES.get(status_code)
    if code is None:
        if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
            return internal_error_handler(request, exc)
        code = ErrorCode.BAD_REQUEST

    message = exc.detail
    details: dict[str, Any] | None = exc.extra if isinstance(exc.extra, dict) else None

    if code is ErrorCode.METHOD_NOT_ALLOWED:
        message = "HTTP method not supported for this endpoint"
        details = {"method": request.method}
        allow = (exc.headers or {}).get("Allow")
        if allow:
            details["supportedMethods"] = [m.strip() for m in allow.split(",") if m.strip()]
    elif code is ErrorCode.NOT_FOUND:
        message = f"No resource found for {request.method} {request.url.path}"

    logger.log(
        logging.ERROR if status_code >= HTTP_500_INTERNAL_SERVER_ERROR else logging.WARNING,
        "Request rejected: %s",
        message,
        extra={"trace_id": get_trace_id(request), "error_code": code.value},
    )
    return error_response(request, status_code, code, message, details)


def integrity_error_handler(request: Request, exc: IntegrityError) -> Response[ApiError]:
    logger.warning(
        "Write conflicts with stored data: %s",
        exc.orig,
        extra={"trace_id": get_trace_id(request), "error_code": ErrorCode.CONFLICT.value},
    )
    return error_response(
        request, HTTP_409_CONFLICT, ErrorCode.CONFLICT, "Request conflicts with data that is already stored"
    )


def data_unavailable_handler(request: Request, exc: Exception) -> Response[ApiError]:
    logger.error(
        "Metric store unavailable",
        exc_info=exc,
        extra={"trace_id": get_trace_id(request), "error_code": ErrorCode.DATA_UNAVAILABLE.value},
    )
    return error_response(
        request, HTTP_503_SERVICE_UNAVAILABLE, ErrorCode.DATA_UNAVAILABLE, "Metric store is unavailable"
    )


def internal_error_handler(request: Request, exc: Exception) -> Response[ApiError]:
    logger.error(
        "Unexpected error: %s",
        exc,
        exc_info=exc,
        extra={"trace_id": get_trace_id(request), "error_code": ErrorCode.INTERNAL_ERROR.value},
    )
    return error_response(
        request, HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE
    )


exception_handlers = {
    ValidationException: validation_exception_handler,
    InvalidArgumentError: invalid_argument_handler,
    HTTPException: http_exception_handler,
    IntegrityError: integrity_error_handler,
    OperationalError: data_unavailable_handler,
    InterfaceError: data_unavailable_handler,
    Exception: internal_error_handler,
}
