"""JSON logging with correlation ids and PII scrubbing.

Every orchestrator operation runs under a correlation id held in a context
variable, so provider attempts, image fetches and saves emitted during one
request can be joined. Owner identifiers, image URLs and the model's free-text
advice never reach the log stream in clear.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import sys
import time
import uuid
from typing import Any, Dict, Iterator, Optional, TextIO

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

REDACTED_KEYS = frozenset(
    {
        "owner_id",
        "email",
        "image_url",
        "imageUrl",
        "cover_image",
        "coverImage",
        "advice",
        "prompt",
        "raw_text",
        "api_key",
    }
)
MAX_TEXT_LENGTH = 300

_EMAIL = re.compile(r"[\w.+\-]+@[\w\-]+\.[\w.\-]+")
_URL = re.compile(r"https?://\S+", re.IGNORECASE)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, event, correlation id and extras."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key in payload:
                continue
            payload[key] = redact_for_log({key: value})[key]
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None, stream: TextIO | None = None) -> None:
    """Route the root logger to a single JSON handler.

    ``level`` defaults to ``LOG_LEVEL`` from the environment, then ``INFO``.
    """

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO"))


def _scrub_text(value: str) -> str:
    value = _EMAIL.sub("[redacted-email]", value)
    value = _URL.sub("[redacted-url]", value)
    if len(value) > MAX_TEXT_LENGTH:
        value = f"{value[:MAX_TEXT_LENGTH]}...[{len(value) - MAX_TEXT_LENGTH} more chars]"
    return value


def redact_for_log(payload: Any) -> Any:
    """Return a JSON-safe copy of ``payload`` with sensitive keys and text masked."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in REDACTED_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(item) for item in payload]
    return _scrub_text(str(payload))


def get_logger(name: str) -> logging.Logger:
    """Module logger; installs the JSON handler the first time logging is used."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id``, else keep the current one, else mint a new one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Scope a correlation id; the previous one is restored on exit."""

    token = CORRELATION_ID.set(correlation_id or CORRELATION_ID.get() or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()  # type: ignore[misc]
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with scrubbed ``fields`` attached as JSON properties.

    Field names must not collide with ``LogRecord`` attributes.
    """

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **redact_for_log(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, **attributes: Any) -> Iterator[str]:
    """Run one orchestrator operation under a correlation id, logging its duration."""

    logger = logging.getLogger(__name__)
    with correlation_context(attributes.pop("correlation_id", None)) as correlation_id:
        started = time.perf_counter()
        log_event(logger, logging.DEBUG, "operation_started", operation=name, **attributes)
        try:
            yield correlation_id
        except Exception as exc:
            log_event(
                logger,
                logging.DEBUG,
                "operation_failed",
                operation=name,
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        log_event(
            logger,
            logging.DEBUG,
            "operation_completed",
            operation=name,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "redact_for_log",
    "operation_context",
]
