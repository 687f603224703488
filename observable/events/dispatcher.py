"""
Observable Events - Dispatcher
================================
Executes one trigger against one channel.

Dispatch order:
1. Queued channel     -> buffer (args, mode), return None
2. Suspended channel  -> return the mode's empty value, touch nothing
3. Channel limit hit  -> return None, touch nothing
4. Count the trigger, retain args for auto-replay
5. No listeners       -> PIPE returns the first argument, collection
                         modes an empty list/dict, the rest None
6. Walk a snapshot of the listeners:
     prepare args -> channel filter -> listener filter -> tag gate
     -> count attempt -> start gate -> invoke -> count call
     -> auto-unregister at limit -> FIRST / sentinel short-circuits
7. Fold the collected outcomes per mode

Synchronous listener exceptions propagate out of dispatch() untouched,
aborting the remaining listeners. Deferred listener exceptions surface
as exceptions of the returned future.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, FrozenSet, List, Optional, Sequence

from observable.events.arguments import prepare_args
from observable.events.listeners import ListenerRecord
from observable.events.modes import (
    SENTINELS,
    ReturnMode,
    empty_result,
    is_chained,
    matches_sentinel,
)
from observable.events.outcomes import (
    Deferred,
    Immediate,
    Outcome,
    gather_then,
    map_outcome,
    outcome_of,
    running_loop,
    settle,
)
from observable.events.scheduling import defer, normalize_delay

if TYPE_CHECKING:
    from observable.events.channel import EventChannel

logger = logging.getLogger("observable.events")


def dispatch(
    channel: "EventChannel",
    args: Sequence[Any],
    mode: ReturnMode = ReturnMode.NONE,
    tags: FrozenSet[str] = frozenset(),
    only: Optional[ListenerRecord] = None,
) -> Any:
    """
    Trigger `channel` with `args` and fold the results per `mode`.

    Args:
        channel: Channel to dispatch on.
        args:    Original trigger arguments.
        mode:    Return mode for this call.
        tags:    Active tags; when non-empty only listeners sharing a tag run.
        only:    Restrict invocation to this record (auto-replay).

    Returns:
        The folded value, or an asyncio.Future for it when any listener
        result was deferred.
    """
    if channel.queued:
        channel.enqueue(tuple(args), mode, tags)
        return None

    if channel.suspended:
        return empty_result(mode)

    if channel.limit_reached:
        return None

    channel.triggered += 1

    if channel.options.auto_trigger:
        channel.last_trigger_args = tuple(args)

    listeners = channel.registry.snapshot()

    if not listeners:
        if mode == ReturnMode.PIPE:
            return args[0] if args else None
        return empty_result(mode)

    return _Run(channel, tuple(args), mode, tags, only).walk(listeners)


# ══════════════════════════════════════════════════════════════
# SINGLE DISPATCH RUN
# ══════════════════════════════════════════════════════════════

class _Run:
    """State of one dispatch: collected outcomes and the promise flag."""

    def __init__(self, channel, args, mode, tags, only):
        self.channel = channel
        self.args = args
        self.mode = mode
        self.tags = tags
        self.only = only
        self.chained = is_chained(mode)
        self.outcomes: List[Outcome] = []
        self.has_promises = False

    def walk(self, listeners: Sequence[ListenerRecord]) -> Any:
        options = self.channel.options

        for record in listeners:
            args = prepare_args(options, record, self.args)

            if not self._passes_filters(record, args):
                continue

            record.count += 1
            if record.count < record.start:
                continue

            if self.chained and self.outcomes:
                outcome = self._invoke_after(self.outcomes[-1], record, args)
            else:
                outcome = self._invoke(record, args)

            record.called += 1
            if record.limit > 0 and record.called == record.limit:
                self.channel.registry.remove(record)

            if self.mode == ReturnMode.FIRST:
                return outcome.unwrap()

            if self.chained and self._stops_chain(outcome):
                return outcome.value

            if outcome.is_deferred:
                self.has_promises = True

            self.outcomes.append(outcome)

        return self._fold()

    # ── filtering ─────────────────────────────────────────────

    def _passes_filters(self, record: ListenerRecord, args: List[Any]) -> bool:
        if self.only is not None and record is not self.only:
            return False

        options = self.channel.options
        if options.filter is not None:
            if options.filter(options.filter_context, args, record) is False:
                return False

        if record.filter is not None:
            context = _first_set(record.filter_context, options.filter_context, record.context)
            if record.filter(context, args) is False:
                return False

        if not record.accepts_tags(self.tags):
            return False

        return True

    # ── invocation ────────────────────────────────────────────

    def _invoke(self, record: ListenerRecord, args: Sequence[Any]) -> Outcome:
        delay = record.asynchronous
        if delay is False:
            delay = normalize_delay(self.channel.options.asynchronous)

        if delay:
            return Deferred(defer(record.callback, args, delay))
        return outcome_of(record.callback(*args))

    def _call_with_previous(self, record: ListenerRecord, args: Sequence[Any],
                            previous: Any) -> Outcome:
        if self.mode == ReturnMode.PIPE:
            piped = prepare_args(
                self.channel.options, record, (previous,) + self.args[1:]
            )
            return self._invoke(record, piped)

        if matches_sentinel(self.mode, previous):
            return Immediate(previous)

        return self._invoke(record, args)

    def _invoke_after(self, previous: Outcome, record: ListenerRecord,
                      args: Sequence[Any]) -> Outcome:
        if not self.has_promises:
            return self._call_with_previous(record, args, previous.value)

        loop = running_loop("Chaining deferred listener results")
        return Deferred(loop.create_task(self._link(previous, record, args)))

    async def _link(self, previous: Outcome, record: ListenerRecord,
                    args: Sequence[Any]) -> Any:
        value = await settle(previous)
        return await settle(self._call_with_previous(record, args, value))

    def _stops_chain(self, outcome: Outcome) -> bool:
        if outcome.is_deferred:
            return False
        if self.mode in SENTINELS:
            return matches_sentinel(self.mode, outcome.value)
        if self.mode == ReturnMode.FIRST_NON_EMPTY:
            return not self.has_promises and outcome.value is not None
        return False

    # ── folding ───────────────────────────────────────────────

    def _fold(self) -> Any:
        mode = self.mode
        outcomes = self.outcomes

        if mode == ReturnMode.RAW:
            return [o.unwrap() for o in outcomes]

        if mode == ReturnMode.FIRST:
            # every listener was filtered out or not yet started
            return None

        if mode in (ReturnMode.LAST, ReturnMode.PIPE):
            if not outcomes:
                # nothing ran: PIPE passes its input through
                if mode == ReturnMode.PIPE and self.args:
                    return self.args[0]
                return None
            return outcomes[-1].unwrap()

        if mode in SENTINELS:
            if self.has_promises and outcomes:
                sentinel = SENTINELS[mode]
                return map_outcome(
                    outcomes[-1], lambda value: value if value is sentinel else None
                )
            return None

        folders = {
            ReturnMode.NONE: _discard,
            ReturnMode.ALL: list,
            ReturnMode.CONCAT: _concat,
            ReturnMode.MERGE: _merge,
            ReturnMode.FIRST_NON_EMPTY: _first_non_empty,
        }
        fold = folders[mode]

        if self.has_promises:
            return gather_then(outcomes, fold)

        if mode in (ReturnMode.NONE, ReturnMode.FIRST_NON_EMPTY):
            return None
        return fold([o.value for o in outcomes])


# ══════════════════════════════════════════════════════════════
# FOLDERS
# ══════════════════════════════════════════════════════════════

def _discard(values: list) -> None:
    return None


def _concat(values: list) -> list:
    flat: list = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def _merge(values: list) -> dict:
    merged: dict = {}
    for value in values:
        if value is not None:
            merged.update(value)
    return merged


def _first_non_empty(values: list) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _first_set(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
