"""Console logging setup. Audit events go through the separate "audit" logger."""
import logging.config

from khatabook.core.config import settings


def get_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
            # Audit lines are already JSON
            "raw": {"format": "{message}", "style": "{"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
            "audit": {"class": "logging.StreamHandler", "formatter": "raw"},
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "audit": {"handlers": ["audit"], "level": "INFO", "propagate": False},
        },
    }


def configure_logging() -> None:
    logging.config.dictConfig(get_logging_config(settings.LOG_LEVEL.upper()))
