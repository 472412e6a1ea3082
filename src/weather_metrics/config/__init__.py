from dotenv import load_dotenv

# ruff: noqa: E402
load_dotenv()

from weather_metrics.config.database import DATABASE_ECHO, DATABASE_URL
from weather_metrics.config.logging import LOG_LEVEL, configure_logging

__all__ = [
    "DATABASE_ECHO",
    "DATABASE_URL",
    "LOG_LEVEL",
    "configure_logging",
]
