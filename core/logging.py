"""
Logging configuration for Ski Live Timing.

Structured logging to stdout: any ``extra=`` fields passed to a log call are
appended to the line as ``key=value`` pairs.

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Decoded feed", extra={"dialect": "primary", "racers": 42})
    logger.warning("Fetch failed", extra={"race_id": "299423"})
"""

import logging
import sys
from typing import Optional


# Attributes every LogRecord carries; anything else came in via extra=
_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message", "asctime",
}


class StructuredFormatter(logging.Formatter):
    """Formatter that includes extra fields in log output."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        ]

        if extras:
            return f"{base} | {' '.join(extras)}"
        return base


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a configured logger.

    Args:
        name: Logger name (usually __name__)
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        logger.setLevel(level)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        formatter = StructuredFormatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger


def log_api_call(
    logger: logging.Logger,
    endpoint: str,
    params: dict,
    success: bool,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None,
) -> None:
    """Log an API call with standard format."""
    extra = {
        "endpoint": endpoint,
        "params": str(params),
        "success": success,
    }
    if duration_ms:
        extra["duration_ms"] = round(duration_ms, 2)
    if error:
        extra["error"] = error

    if success:
        logger.debug(f"API call: {endpoint}", extra=extra)
    else:
        logger.warning(f"API call failed: {endpoint}", extra=extra)


def log_decode_summary(
    logger: logging.Logger,
    dialect: str,
    race_name: str,
    racer_count: int,
    **details,
) -> None:
    """Log the outcome of decoding one feed snapshot."""
    logger.info(
        f"Decoded {racer_count} racers for '{race_name}' ({dialect} dialect)",
        extra={"dialect": dialect, "racers": racer_count, **details},
    )
