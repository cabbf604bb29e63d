"""Logging utilities for the caching settings."""

import json
import logging
import os
from typing import Any, Dict

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON.

        Args:
            record: Log record to format.

        Returns:
            str: JSON formatted log message.
        """
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(_extra_fields(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, log_level, logging.INFO))

        handler = logging.StreamHandler()
        handler.setLevel(logger.level)

        if os.environ.get("AWS_LAMBDA_FUNCTION_NAME"):
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def log_settings_summary(logger: logging.Logger, settings: Any) -> None:
    """Log a one-line summary of derived caching settings.

    Args:
        logger: Logger instance.
        settings: `GlobalCachingSettings` to summarize.
    """
    if not settings.is_configured:
        logger.info("API Gateway caching is not configured")
        return

    endpoints = settings.endpoint_settings
    summary = {
        "stage": settings.stage,
        "region": settings.region,
        "caching_enabled": settings.caching_enabled,
        "endpoint_count": len(endpoints),
        "cached_endpoint_count": sum(
            1 for endpoint in endpoints if endpoint.caching_enabled
        ),
    }
    logger.info("Caching settings derived", extra=summary)
