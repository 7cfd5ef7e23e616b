"""Logging configuration for the reservation API"""
import logging
import logging.config
from typing import Any, Dict

from infrastructure.config import settings


def build_logging_config(level: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            # Engine layers
            "application": {"level": level, "propagate": True},
            "main": {"level": level, "propagate": True},
        },
        "root": {"handlers": ["console"], "level": level},
    }


def setup_logging(level: str = None) -> None:
    """Apply the logging config once at host startup"""
    level = (level or settings.LOG_LEVEL).upper()
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger(__name__).debug("Logging configured at %s", level)
