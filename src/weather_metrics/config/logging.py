import logging
import os
import time
from logging.config import dictConfig

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO"

_configured = False

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"


class ContextualFormatter(logging.Formatter):
    """UTC formatter that appends request context passed through ``extra=``.

    Only the keys in ``CONTEXT_KEYS`` are rendered, in that order, so a log
    line for a request always reads ``... | trace_id=<id> sensor_id=<id>``.
    """

    converter = time.gmtime

    CONTEXT_KEYS = (
        "trace_id",
        "sensor_id",
        "statistic",
        "sensor_count",
        "data_points",
        "saved_count",
        "error_code",
    )

    def __init__(self) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={record.__dict__[key]}"
            for key in self.CONTEXT_KEYS
            if record.__dict__.get(key) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int | None = None) -> None:
    """Route the root logger to stderr through ContextualFormatter, once."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else LOG_LEVEL
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"contextual": {"()": ContextualFormatter}},
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )
    _configured = True
