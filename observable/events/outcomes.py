"""
Observable Events - Listener Outcomes
=======================================
Every listener invocation produces exactly one Outcome:

    Immediate -> the listener returned a plain value.
    Deferred  -> the listener (or its scheduling) produced an awaitable,
                 held here as an asyncio.Future.

The dispatcher folds results by matching on these two types instead of
probing arbitrary values for awaitability at every step.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Union

from observable.events.errors import NoRunningLoopError


# ══════════════════════════════════════════════════════════════
# OUTCOME TYPES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Immediate:
    """Listener result available synchronously."""

    value: Any

    @property
    def is_deferred(self) -> bool:
        return False

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Deferred:
    """Listener result that settles later."""

    future: asyncio.Future

    @property
    def is_deferred(self) -> bool:
        return True

    def unwrap(self) -> asyncio.Future:
        return self.future


Outcome = Union[Immediate, Deferred]


# ══════════════════════════════════════════════════════════════
# CONSTRUCTION
# ══════════════════════════════════════════════════════════════

def running_loop(action: str) -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        raise NoRunningLoopError(action) from None


def to_future(awaitable: Any) -> asyncio.Future:
    """Schedule an awaitable on the running loop and return its future."""
    if isinstance(awaitable, asyncio.Future):
        return awaitable
    loop = running_loop("Awaiting a listener result")
    if inspect.iscoroutine(awaitable):
        return loop.create_task(awaitable)
    return asyncio.ensure_future(awaitable, loop=loop)


def outcome_of(value: Any) -> Outcome:
    if inspect.isawaitable(value):
        return Deferred(to_future(value))
    return Immediate(value)


def lift(value: Any) -> asyncio.Future:
    """
    Wrap any trigger result in a future.

    Immediate values produce an already-resolved future; awaitables are
    scheduled and returned as-is.
    """
    if inspect.isawaitable(value):
        return to_future(value)
    future = running_loop("Resolving a trigger result").create_future()
    future.set_result(value)
    return future


def copy_future_state(target: asyncio.Future, source: asyncio.Future) -> None:
    """Done-callback that mirrors `source` into `target`."""
    if target.done():
        return
    if source.cancelled():
        target.cancel()
        return
    exc = source.exception()
    if exc is not None:
        target.set_exception(exc)
    else:
        target.set_result(source.result())


# ══════════════════════════════════════════════════════════════
# SETTLING
# ══════════════════════════════════════════════════════════════

async def settle(outcome: Outcome) -> Any:
    if outcome.is_deferred:
        return await outcome.future
    return outcome.value


async def _gather(outcomes: List[Outcome], then: Callable[[list], Any]) -> Any:
    values = await asyncio.gather(*(settle(o) for o in outcomes))
    return then(list(values))


def gather_then(outcomes: Iterable[Outcome], then: Callable[[list], Any]) -> asyncio.Future:
    """
    Wait for every outcome, then apply `then` to the settled values
    (in listener order). Returns a future for the folded value.
    """
    loop = running_loop("Folding deferred listener results")
    return loop.create_task(_gather(list(outcomes), then))


async def _map(outcome: Outcome, then: Callable[[Any], Any]) -> Any:
    return then(await settle(outcome))


def map_outcome(outcome: Outcome, then: Callable[[Any], Any]) -> asyncio.Future:
    loop = running_loop("Folding a deferred listener result")
    return loop.create_task(_map(outcome, then))
