# Uniform async calling of model and collaborator methods.
# Created: 2026-10-19
#
# A model method may be a plain function, a coroutine function (or any
# callable returning an awaitable), or a callback-style function that takes
# one extra trailing ``callback(error, result)`` argument. ``call_model``
# hides the difference: callers always ``await`` a single result.

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

__all__ = ["call_model", "expects_callback"]

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def expects_callback(fn: Callable[..., Any], num_args: int) -> bool:
    """True if *fn* requires more positional parameters than *num_args*.

    Parameters with defaults are not counted, so a sync method with optional
    trailing arguments is still called directly.
    """
    if inspect.iscoroutinefunction(fn):
        return False
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return False
        if param.kind in _POSITIONAL and param.default is inspect.Parameter.empty:
            positional += 1
    return positional > num_args


async def call_model(fn: Callable[..., Any], *args: Any) -> Any:
    """Call *fn* with *args* and return its eventual result."""
    if expects_callback(fn, len(args)):
        return await _call_with_callback(fn, *args)

    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _call_with_callback(fn: Callable[..., Any], *args: Any) -> Any:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def _settle(error: BaseException | None, result: Any) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def callback(error: BaseException | None = None, result: Any = None) -> None:
        loop.call_soon_threadsafe(_settle, error, result)

    fn(*args, callback)
    return await future
