"""Structured logging and tool instrumentation behaviour."""

import io
import json
import logging

import pytest
from pydantic import BaseModel, ValidationError

from stylist_app.logging_config import (
    CORRELATION_ID,
    OPERATION,
    JsonFormatter,
    correlation_context,
    log_event,
    operation_context,
    redact_for_log,
)
from tools.observability import instrument_tool


@pytest.fixture()
def captured() -> io.StringIO:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("tests.structured")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield stream
    logger.removeHandler(handler)


def _records(stream: io.StringIO) -> list:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def test_log_event_emits_json_with_operation_and_scrubbed_fields(captured: io.StringIO) -> None:
    logger = logging.getLogger("tests.structured")

    with operation_context("app:chat") as correlation_id:
        log_event(
            logger,
            logging.INFO,
            "tool_call_started",
            tool="plan_outfit",
            base_photo="me/portrait.jpg",
            note="photo at /api/image?path=me%2Fa.jpg",
        )

    record = _records(captured)[0]
    assert record["event"] == "tool_call_started"
    assert record["operation"] == "app:chat"
    assert record["correlation_id"] == correlation_id
    assert record["tool"] == "plan_outfit"
    assert record["base_photo"] == "[redacted]"
    assert "me%2Fa.jpg" not in record["note"]


def test_nested_operations_share_correlation_id() -> None:
    with correlation_context("req-1"):
        with operation_context("outer") as outer:
            with operation_context("inner") as inner:
                assert OPERATION.get() == "inner"
            assert OPERATION.get() == "outer"
        assert CORRELATION_ID.get() == "req-1"

    assert outer == inner == "req-1"


def test_redaction_handles_nested_structures() -> None:
    scrubbed = redact_for_log({"items": [{"image_url": "x"}, "ask bob@example.org"], "count": 2})

    assert scrubbed == {"items": [{"image_url": "[redacted]"}, "ask [redacted-email]"], "count": 2}


class _Args(BaseModel):
    limit: int = 10


def test_instrument_tool_validates_and_replaces_kwargs() -> None:
    seen = {}

    @instrument_tool("demo", input_model=_Args)
    def tool(prefix: str, limit: int = 10) -> list:
        seen["limit"] = limit
        return [prefix] * limit

    assert tool("x", limit=2.0) == ["x", "x"]
    assert seen["limit"] == 2
    with pytest.raises(ValidationError):
        tool("x", limit="lots")
