"""
Timing for network transactions.

``timed_async`` logs how long a coroutine took, at DEBUG normally and at
WARNING once it exceeds ``IIYAMA_PERF_THRESHOLD_MS``. Set
``IIYAMA_PERF_TRACKING=false`` to turn it off.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Coroutine
from typing import Any, ParamSpec, TypeVar

__all__ = [
    "measure_time",
    "timed_async",
]

P = ParamSpec("P")
T = TypeVar("T")


def measure_time(start_time: float) -> float:
    """Milliseconds elapsed since ``start_time`` (a ``time.perf_counter()`` value)."""
    return (time.perf_counter() - start_time) * 1000


def _peer(args: tuple[object, ...]) -> str | None:
    """``host:port`` of a bound transport method's instance, if it has one."""
    if not args:
        return None
    host = getattr(args[0], "host", None)
    port = getattr(args[0], "port", None)
    if isinstance(host, str) and isinstance(port, int):
        return f"{host}:{port}"
    return None


def timed_async(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]]:
    """
    Time a coroutine and log the result.

    Example:
        @timed_async("tcp_transact")
        async def transact(self, request):
            ...
    """

    def decorator(func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, Coroutine[Any, Any, T]]:
        op_name = operation_name or func.__name__

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            # read on every call; --env reloads const after import
            from iiyama_display import const  # noqa: PLC0415
            from iiyama_display.logging_abstraction import get_logger  # noqa: PLC0415

            if not const.IIYAMA_PERF_TRACKING:
                return await func(*args, **kwargs)

            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _log_timing(
                    get_logger(__name__),
                    op_name,
                    measure_time(start_time),
                    const.IIYAMA_PERF_THRESHOLD_MS,
                    _peer(args),
                )

        return wrapper

    return decorator


def _log_timing(logger: Any, operation_name: str, elapsed_ms: float, threshold_ms: int, peer: str | None = None) -> None:
    exceeded = elapsed_ms > threshold_ms
    context: dict[str, object] = {
        "operation": operation_name,
        "duration_ms": round(elapsed_ms, 2),
        "threshold_ms": threshold_ms,
        "exceeded_threshold": exceeded,
    }
    if peer:
        context["peer"] = peer

    if exceeded:
        logger.warning(
            "⏱️ [%s] took %.1fms (threshold: %dms)", operation_name, elapsed_ms, threshold_ms, extra=context
        )
    else:
        logger.debug("⏱️ [%s] took %.1fms", operation_name, elapsed_ms, extra=context)
