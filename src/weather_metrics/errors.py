from enum import Enum


class ErrorCode(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    CONFLICT = "CONFLICT"
    DATA_UNAVAILABLE = "DATA_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class InvalidArgumentError(ValueError):
    """Raised by services when a request argument is unusable.

    The message is returned to the caller verbatim, so it must stay
    human-readable and free of internals.
    """
