"""Timing and outcome logs around calls to external collaborators."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from stylist_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def instrument_call(call_name: str, slow_ms: float = 5000.0) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Log start, completion and failure of ``call_name``; calls over ``slow_ms`` log at WARNING.

    Exceptions are logged by type only and re-raised unchanged.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            log_event(LOGGER, logging.DEBUG, "call_started", call=call_name)
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "call_failed",
                    call=call_name,
                    duration_ms=_elapsed_ms(started),
                    error_type=type(exc).__name__,
                )
                raise
            duration_ms = _elapsed_ms(started)
            log_event(
                LOGGER,
                logging.WARNING if duration_ms >= slow_ms else logging.INFO,
                "call_completed",
                call=call_name,
                duration_ms=duration_ms,
                slow=duration_ms >= slow_ms,
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
