"""Logging helpers.

Standard-library logging under the ``portfolio_valuation_engine`` logger plus
small instrumentation decorators used by the orchestration layer. The pure
analytics modules log through ``logging.getLogger(__name__)`` only.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable


portfolio_logger = logging.getLogger("portfolio_valuation_engine")

_SEVERITY_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}


def log_operation(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Emit DEBUG records when ``name`` starts and finishes."""

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            portfolio_logger.debug("operation started: %s", name)
            result = fn(*args, **kwargs)
            portfolio_logger.debug("operation finished: %s", name)
            return result

        return wrapper

    return deco


def log_timing(threshold: float = 0.0) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Warn when the wrapped call takes longer than ``threshold`` seconds."""

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start
                if threshold and elapsed > threshold:
                    portfolio_logger.warning(
                        "slow operation: %s took %.3fs (threshold %.3fs)",
                        fn.__qualname__,
                        elapsed,
                        threshold,
                    )

        return wrapper

    return deco


def log_errors(severity: str = "medium") -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Log exceptions escaping the wrapped call, then re-raise them."""
    level = _SEVERITY_LEVELS.get(severity, logging.WARNING)

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return fn(*args, **kwargs)
            except Exception as exc:
                portfolio_logger.log(
                    level,
                    "%s failed: %s: %s",
                    fn.__qualname__,
                    type(exc).__name__,
                    exc,
                )
                raise

        return wrapper

    return deco


def log_portfolio_operation(
    event: str,
    details: dict[str, Any] | None = None,
    execution_time: float | None = None,
) -> dict[str, Any]:
    if details:
        portfolio_logger.info("[%s] %s", event, details)
    else:
        portfolio_logger.info("[%s]", event)
    return {"event": event, "details": details or {}, "execution_time": execution_time}
