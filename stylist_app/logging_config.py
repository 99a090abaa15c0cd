"""Structured JSON logging for the Wardrobe Stylist app.

Every record is rendered as a single JSON object carrying the active
correlation id and operation name, both held in context variables so nested
calls (app -> orchestrator -> tool) share them without threading arguments
through. Photo locators, free text from the user and credentials are scrubbed
before they reach a handler.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import time
import uuid
from typing import Any, Dict, Iterator

CORRELATION_ID: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)
OPERATION: contextvars.ContextVar[str | None] = contextvars.ContextVar("operation", default=None)

# attributes every LogRecord carries; anything else on a record came from ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}
_SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "base_photo",
        "base_photo_url",
        "image_path",
        "image_url",
        "photo_path",
        "user_message",
    }
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+\.\w+")
_PHOTO_LOCATOR = re.compile(r"(/api/image\?path=|/generated/)\S*|\S+\.(jpe?g|png|webp|gif)\b", re.IGNORECASE)


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are scrubbed and merged in."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        rendered = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": rendered,
            "event": getattr(record, "event", record.getMessage()),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
            "operation": OPERATION.get(),
        }
        extras = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRIBUTES}
        for key, value in redact_for_log(extras).items():
            payload.setdefault(key, value)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Route the root logger through a single JSON stream handler.

    ``LOG_LEVEL`` picks the level when none is given.
    """

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level or os.getenv("LOG_LEVEL", "INFO"), handlers=[handler], force=True)


def _scrub_text(value: str) -> str:
    value = _EMAIL.sub("[redacted-email]", value)
    value = _PHOTO_LOCATOR.sub("[redacted-photo]", value)
    if value.lower().startswith(("http://", "https://")):
        return "[redacted-url]"
    return value


def redact_for_log(payload: Any) -> Any:
    """Return a copy of ``payload`` safe to log."""

    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, dict):
        return {
            key: "[redacted]" if key in _SENSITIVE_KEYS else redact_for_log(value)
            for key, value in payload.items()
        }
    if isinstance(payload, (list, tuple, set)):
        return [redact_for_log(item) for item in payload]
    return _scrub_text(str(payload))


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Bind ``correlation_id`` (or keep the current one, or mint one) and return it."""

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
    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with ``fields`` attached as structured, redacted extras.

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
    """Run the block as operation ``name`` under the caller's correlation id.

    A fresh id is minted only at the outermost operation. Start and finish are
    logged at DEBUG, the finish record with the elapsed time.
    """

    logger = get_logger("stylist_app.operations")
    parent = attributes.pop("correlation_id", None) or CORRELATION_ID.get()
    operation_token = OPERATION.set(name)
    started = time.perf_counter()
    try:
        with correlation_context(parent) as scoped_id:
            log_event(logger, logging.DEBUG, "operation_started", operation_name=name, **attributes)
            try:
                yield scoped_id
            finally:
                log_event(
                    logger,
                    logging.DEBUG,
                    "operation_finished",
                    operation_name=name,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
    finally:
        OPERATION.reset(operation_token)


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "OPERATION",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
