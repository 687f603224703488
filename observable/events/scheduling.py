"""
Observable Events - Deferred Invocation
=========================================
Runs a listener on a later turn of the running asyncio loop.

Delay is expressed in milliseconds; `True` means the minimal delay of 1.
The returned future resolves to the listener's return value (awaiting it
if the listener itself returned an awaitable). Exceptions raised by the
listener become the future's exception instead of escaping the loop.
"""

from __future__ import annotations

import asyncio
import inspect
from functools import partial
from typing import Any, Callable, Sequence, Union

from observable.events.outcomes import copy_future_state, running_loop, to_future

Delay = Union[bool, int, float]


def normalize_delay(delay: Delay) -> Delay:
    """`True` -> 1 ms. Everything else passes through."""
    if delay is True:
        return 1
    return delay


def defer(callback: Callable[..., Any], args: Sequence[Any], delay: Delay) -> asyncio.Future:
    loop = running_loop("Deferred listener invocation")
    future = loop.create_future()
    loop.call_later(
        normalize_delay(delay) / 1000,
        partial(_run, future, callback, tuple(args)),
    )
    return future


def _run(future: asyncio.Future, callback: Callable[..., Any], args: tuple) -> None:
    if future.cancelled():
        return

    try:
        result = callback(*args)
    except Exception as exc:
        future.set_exception(exc)
        return

    if inspect.isawaitable(result):
        to_future(result).add_done_callback(partial(copy_future_state, future))
    else:
        future.set_result(result)
