"""Logging setup: one dictConfig call at startup, module loggers everywhere else."""

import logging
import logging.config

from app.core.config import settings


def configure_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "app": {"handlers": ["console"], "level": level, "propagate": False},
                # SQL echo is controlled by DB_ECHO, keep the engine logger quiet otherwise
                "sqlalchemy.engine": {"level": "WARNING"},
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
        }
    )
    logging.getLogger(__name__).debug("Logging configured at level %s", level)
