"""Correlation IDs for poll and action cycles.

Each poll cycle and each user action runs inside its own correlation
context, so the transactions it performs share one ID in the logs.
"""

from __future__ import annotations

import contextvars
from collections.abc import Generator
from contextlib import contextmanager

from uuid_extensions import uuid7

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("iiyama_correlation_id", default=None)


def generate_correlation_id() -> str:
    """New time-ordered ID (UUIDv7 as 32 hex chars)."""
    return uuid7().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Replace the current ID; None clears it."""
    _ = _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Scope a correlation ID to a block and restore the previous one on exit.

    Example:
        with correlation_context() as corr_id:
            await controller.poll()
    """
    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)
