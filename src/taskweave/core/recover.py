"""Panic recovery helpers.

Caller-supplied callables (function chain items, gate operations) run
under a recovery wrapper: whatever they raise is converted into a
PanicError instead of unwinding through the library.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from taskweave.core.errors import PanicError

T = TypeVar("T")


def to_panic_error(exc: BaseException) -> PanicError:
    """Wrap an exception as a PanicError, keeping the original as cause."""
    if isinstance(exc, PanicError):
        return exc
    error = PanicError(exc)
    error.__cause__ = exc
    return error


def recover_call(fn: Callable[..., T], *args: Any) -> tuple[T | None, PanicError | None]:
    """Call ``fn`` and return ``(result, error)`` instead of raising.

    Example:
        >>> recover_call(int, "12")
        (12, None)
        >>> result, err = recover_call(int, "x")
        >>> str(err).startswith("panic:")
        True
    """
    try:
        return fn(*args), None
    except Exception as e:
        return None, to_panic_error(e)


async def recover_call_async(
    fn: Callable[..., Awaitable[T] | T], *args: Any
) -> tuple[T | None, PanicError | None]:
    """Async variant of recover_call; awaits the result when it is awaitable."""
    try:
        result = fn(*args)
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            result = await result
        return result, None  # type: ignore[return-value]
    except Exception as e:
        return None, to_panic_error(e)
