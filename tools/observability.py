"""Observability helpers for instrumenting backend operations."""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, ParamSpec, TypeVar

from client_app.logging_config import (
    ensure_correlation_id,
    get_logger,
    log_event,
    redact_for_log,
)
from logic.errors import GatewayError

LOGGER = get_logger(__name__)
P = ParamSpec("P")
R = TypeVar("R")


def _preview_kwargs(kwargs: dict, max_keys: int = 6) -> dict:
    preview: dict = {}
    for idx, (key, value) in enumerate(kwargs.items()):
        if idx >= max_keys:
            preview["truncated"] = True
            break
        preview[key] = value
    return redact_for_log(preview)


def _preview_args(args: tuple, max_args: int = 3) -> list:
    # Skip bound ``self``.
    visible = [arg for arg in args if not hasattr(arg, "__dict__")]
    return redact_for_log(visible[:max_args])


def instrument_call(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a callable to emit structured start, completion and failure logs.

    Expected :class:`GatewayError` outcomes log at WARNING without a traceback;
    anything else logs at ERROR with one. Exceptions always propagate.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            correlation_id = ensure_correlation_id()
            start = time.perf_counter()

            log_event(
                LOGGER,
                logging.INFO,
                "backend_call_started",
                operation=operation,
                correlation_id=correlation_id,
                call_args=_preview_args(args),
                kwargs=_preview_kwargs(kwargs),
            )
            try:
                result = func(*args, **kwargs)
            except GatewayError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "backend_call_rejected",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                    error_code=exc.error_code,
                )
                raise
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "backend_call_failed",
                    operation=operation,
                    correlation_id=correlation_id,
                    duration_ms=round((time.perf_counter() - start) * 1000, 2),
                    exc_info=True,
                )
                raise
            log_event(
                LOGGER,
                logging.INFO,
                "backend_call_completed",
                operation=operation,
                correlation_id=correlation_id,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return result

        return wrapper

    return decorator


__all__ = ["instrument_call"]
