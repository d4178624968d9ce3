"""Helpers that run a call, expect it to raise, and hand back the exception."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import pytest

P = ParamSpec("P")
E = TypeVar("E", bound=BaseException)


async def expect_async_exception(
    func: Callable[P, Awaitable[object]],
    exception_type: type[E],
    *args: P.args,
    **kwargs: P.kwargs,
) -> E:
    with pytest.raises(exception_type) as excinfo:
        _ = await func(*args, **kwargs)
    return excinfo.value


def expect_exception(
    func: Callable[P, object],
    exception_type: type[E],
    *args: P.args,
    **kwargs: P.kwargs,
) -> E:
    with pytest.raises(exception_type) as excinfo:
        _ = func(*args, **kwargs)
    return excinfo.value
