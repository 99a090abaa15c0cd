"""Instrumentation for the tools the stylist model can call."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, ParamSpec, TypeVar

from pydantic import BaseModel, ValidationError

from stylist_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")

_SCALARS = (str, int, float, bool, type(None))


def _argument_preview(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    # scalars only; catalogs and outfits are summarised by type name
    return {key: value if isinstance(value, _SCALARS) else type(value).__name__ for key, value in kwargs.items()}


def _result_summary(result: Any) -> Dict[str, Any]:
    if isinstance(result, (list, tuple)):
        return {"result_count": len(result)}
    if hasattr(result, "success"):
        return {"success": bool(result.success)}
    if hasattr(result, "items") and callable(result.items) and not isinstance(result, dict):
        return {"item_ids": [item.id for item in result.items()]}
    return {}


def instrument_tool(
    tool_name: str,
    input_model: type[BaseModel] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Validate a tool's keyword arguments and log its lifecycle.

    Keyword arguments come from the model, so they are parsed by
    ``input_model`` and replaced with its dump (aliases such as
    ``excludeWornThisWeek`` arrive as field names). Positional arguments carry
    run state and pass through untouched. A :class:`ValidationError` is logged
    and re-raised; the caller decides how the model hears about it.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()

            if input_model is not None:
                try:
                    kwargs = input_model.model_validate(kwargs).model_dump()
                except ValidationError as exc:
                    log_event(
                        LOGGER,
                        logging.WARNING,
                        "tool_arguments_rejected",
                        tool=tool_name,
                        correlation_id=correlation_id,
                        fields=[".".join(str(part) for part in error["loc"]) for error in exc.errors()],
                    )
                    raise

            log_event(
                LOGGER,
                logging.INFO,
                "tool_call_started",
                tool=tool_name,
                correlation_id=correlation_id,
                arguments=_argument_preview(kwargs),
            )
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "tool_call_failed",
                    tool=tool_name,
                    correlation_id=correlation_id,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    exc_info=True,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "tool_call_completed",
                tool=tool_name,
                correlation_id=correlation_id,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                **_result_summary(result),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_tool"]
