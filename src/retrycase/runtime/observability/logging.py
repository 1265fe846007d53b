"""Structured logging for retry runs.

The executor reports through the stdlib ``retrycase.retry`` logger with plain
messages. ``RetryLogger`` is for error hooks that want each failed attempt as
a structured record: bound run context (job, tenant, ...) plus the error, its
type and its FailureKind. Records go through stdlib logging, so handlers and
levels configured by the application still apply.

``configure_logging`` installs one handler on the ``retrycase`` logger:
- console: ``time level logger: event key=value ...``
- json: one object per line (orjson), structured fields kept as keys
- none: no handler; records propagate to the application's own logging

Quick Start:
    >>> from retrycase import retry, on_error, simple
    >>> from retrycase.runtime.observability import configure_logging, get_logger, logging_hook
    >>>
    >>> configure_logging(format="json")
    >>> log = get_logger("billing", job="nightly-sync")
    >>> retry(simple(3), sync_invoices, on_error(logging_hook(log)))
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Callable, TextIO

import orjson

from retrycase.foundation.errors import FailureKind, classify_failure

if TYPE_CHECKING:
    from retrycase.foundation.config import LoggingSettings

ROOT_LOGGER = "retrycase"
RECORD_ATTR = "retrycase"  # LogRecord attribute holding structured fields
FORMATS = ("console", "json", "none")
_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


@dataclass(slots=True, frozen=True)
class AttemptRecord:
    """One failed attempt: the event name, run context and the classified error."""

    event: str
    error: str
    error_type: str
    kind: FailureKind
    context: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: BaseException, event: str, context: dict[str, object]) -> AttemptRecord:
        return cls(event, str(error), type(error).__name__, classify_failure(error), context)

    def fields(self) -> dict[str, object]:
        """Flat mapping for JSON output. Error fields win over context keys."""
        return {"event": self.event, **self.context, "error": self.error,
                "error_type": self.error_type, "kind": str(self.kind)}

    def __str__(self) -> str:
        ctx = [f"{k}={_text(v)}" for k, v in sorted(self.context.items())]
        tail = [f"error_type={self.error_type}", f"kind={self.kind}", f"error={_text(self.error)}"]
        return " ".join([self.event, *ctx, *tail])


@dataclass(slots=True, frozen=True)
class RetryLogger:
    """Logs retry failures with bound run context. ``bind`` returns a new logger.

    Example:
        >>> log = get_logger("billing").bind(job="sync")
        >>> log.attempt_failed(TimeoutError("slow"), attempt=2)
        # => attempt failed attempt=2 job="sync" error_type=TimeoutError kind=OPERATIONAL error="slow"
    """

    name: str = ROOT_LOGGER
    context: dict[str, object] = field(default_factory=dict)

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(self.name)

    def bind(self, **kw: object) -> RetryLogger:
        return RetryLogger(self.name, {**self.context, **kw})

    def unbind(self, *keys: str) -> RetryLogger:
        return RetryLogger(self.name, {k: v for k, v in self.context.items() if k not in keys})

    def record(self, level: int, error: BaseException, event: str = "attempt failed", **kw: object) -> AttemptRecord | None:
        """Log ``error`` at ``level``. Returns the record, or None if the level is disabled."""
        logger = self.logger
        if not logger.isEnabledFor(level):
            return None
        rec = AttemptRecord.from_error(error, event, {**self.context, **kw})
        logger.log(level, "%s", rec, extra={RECORD_ATTR: rec.fields()})
        return rec

    def attempt_failed(self, error: BaseException, **kw: object) -> AttemptRecord | None:
        return self.record(logging.WARNING, error, "attempt failed", **kw)

    def gave_up(self, error: BaseException, **kw: object) -> AttemptRecord | None:
        return self.record(logging.ERROR, error, "gave up", **kw)


class JsonFormatter(logging.Formatter):
    """JSON Lines output. Attempt records keep their fields; other records become ``event``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
        }
        if (fields := getattr(record, RECORD_ATTR, None)) is not None:
            payload.update(fields)
        else:
            payload["event"] = record.getMessage()
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_logging(
    format: str = "console",  # noqa: A002 - matches LoggingSettings.format
    level: str = "INFO",
    *,
    stream: TextIO | None = None,
) -> logging.Handler | None:
    """Set the ``retrycase`` logger's level and (re)install its handler.

    Returns the installed handler, or None for format "none".
    """
    global _handler
    if format not in FORMATS:
        raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(_level_number(level))
    if _handler is not None:
        root.removeHandler(_handler)
        _handler = None
    if format == "none":
        root.propagate = True
        return None
    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(JsonFormatter() if format == "json" else logging.Formatter(_CONSOLE_FORMAT))
    root.addHandler(_handler)
    root.propagate = False
    return _handler


def configure_from_settings(settings: LoggingSettings | None = None, *, stream: TextIO | None = None) -> logging.Handler | None:
    """Configure logging from ``RETRYCASE_LOG_*`` settings."""
    if settings is None:
        from retrycase.foundation.config import get_settings
        settings = get_settings().logging
    return configure_logging(format=settings.format, level=settings.level, stream=stream)


def get_logger(name: str | None = None, **context: object) -> RetryLogger:
    """RetryLogger under the ``retrycase`` namespace, e.g. ``billing`` -> ``retrycase.billing``."""
    if not name or name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return RetryLogger(name or ROOT_LOGGER, dict(context))
    return RetryLogger(f"{ROOT_LOGGER}.{name}", dict(context))


# ─────────────────────────────────────────────────────────────────────────────
# Error Hook
# ─────────────────────────────────────────────────────────────────────────────


def logging_hook(
    log: RetryLogger | None = None,
    *,
    event: str = "attempt failed",
    level: str = "warning",
) -> Callable[[Exception], None]:
    """Error hook that logs each failed attempt with its type and failure kind.

    Example:
        >>> retry(fixed(3, 1.0), upload, on_error(logging_hook(get_logger("uploads"))))
    """
    bound = log or get_logger()
    lvl = _level_number(level)

    def hook(error: Exception) -> None:
        bound.record(lvl, error, event)

    return hook


def _level_number(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _text(v: object) -> str:
    return f'"{v}"' if isinstance(v, str) else str(v)
