"""Telemetry helpers: call timing, exception logging and scoped log context."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar, overload

from src.commons.telemetry.logger import get_log_context, get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


@overload
def timed(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to measure and log execution time of a call.

    Works on plain and ``async`` functions. Used around the slow
    external calls (object storage, video platform).

    Args:
        func: The function to decorate (when used without parentheses).
        logger: Optional logger instance.
        level: Log level for timing messages.
        threshold_ms: Only log if execution exceeds this threshold in milliseconds.

    Returns:
        Decorated function.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def _report(start: float) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if threshold_ms is None or elapsed_ms >= threshold_ms:
                log.log(
                    level,
                    f"{fn.__qualname__} completed",
                    extra={"duration_ms": round(elapsed_ms, 2)},
                )

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                _report(start)

        @functools.wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()
            try:
                return await fn(*args, **kwargs)  # type: ignore[misc, no-any-return]
            finally:
                _report(start)

        if inspect.iscoroutinefunction(fn):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator


def log_exceptions(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    message: str | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator that logs an escaping exception with traceback, then re-raises.

    Args:
        logger: Optional logger instance.
        level: Log level for exceptions.
        message: Optional custom message.

    Returns:
        Decorator.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)
        msg = message or f"Exception in {fn.__qualname__}"

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                log.log(
                    level,
                    msg,
                    exc_info=True,
                    extra={"exception_type": type(e).__name__},
                )
                raise

        @functools.wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await fn(*args, **kwargs)  # type: ignore[misc, no-any-return]
            except Exception as e:
                log.log(
                    level,
                    msg,
                    exc_info=True,
                    extra={"exception_type": type(e).__name__},
                )
                raise

        if inspect.iscoroutinefunction(fn):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    return decorator


class LogContext:
    """Context manager for adding temporary logging context."""

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to logging context.
        """
        self.context = kwargs
        self._previous_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        """Enter the context, adding values to log context."""
        self._previous_context = get_log_context()
        log_context_var.set({**self._previous_context, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring previous values."""
        log_context_var.set(self._previous_context)
