"""Structured logging for retry runs and a ready-made logging error hook."""

from .logging import (
    AttemptRecord,
    JsonFormatter,
    RetryLogger,
    configure_from_settings,
    configure_logging,
    get_logger,
    logging_hook,
)

__all__ = [
    "AttemptRecord",
    "JsonFormatter",
    "RetryLogger",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "logging_hook",
]
