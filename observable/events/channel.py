"""
Observable Events - Event Channel
===================================
Registry, counters, and suspension state for one event name.

Suspension:
- suspend()                 triggers become no-ops returning the mode's
                            empty value
- suspend(with_queue=True)  triggers are buffered in arrival order
- resume()                  clears both flags, then replays the buffer
                            FIFO and empties it

Auto-replay (`auto_trigger`): the last trigger arguments are retained and
replayed to each newly registered listener, and only to that listener.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Hashable, Iterator, List, Optional, Tuple

from observable.config.options import EventOptions, ListenerOptions, build_options
from observable.events import dispatcher
from observable.events.listeners import ListenerRecord
from observable.events.modes import ReturnMode
from observable.events.registry import ListenerRegistry

logger = logging.getLogger("observable.events")


@dataclass(frozen=True)
class QueuedTrigger:
    """A trigger buffered while its channel was suspended with a queue."""

    args: Tuple[Any, ...]
    mode: ReturnMode
    tags: FrozenSet[str] = frozenset()


class EventChannel:
    """
    One named event.

    Created implicitly by the bus on first use of a name, or explicitly
    to configure it. Destroyed explicitly through the bus.
    """

    def __init__(
        self,
        name: Hashable,
        options: Optional[EventOptions] = None,
        on_drained: Optional[Callable[[Hashable, Optional[str]], None]] = None,
        ids: Optional[Iterator[int]] = None,
    ):
        self.name = name
        self.options = options or EventOptions()
        self.registry = ListenerRegistry(name, on_drained=on_drained, ids=ids)
        self.suspended = False
        self.queued = False
        self.queue: List[QueuedTrigger] = []
        self.triggered = 0
        self.last_trigger_args: Optional[Tuple[Any, ...]] = None

    def __repr__(self) -> str:
        return (
            f"EventChannel(name={self.name!r}, listeners={len(self.registry)}, "
            f"triggered={self.triggered}, suspended={self.suspended})"
        )

    def configure(self, **fields: Any) -> EventOptions:
        self.options = build_options(EventOptions, self.options, **fields)
        return self.options

    @property
    def limit_reached(self) -> bool:
        return self.options.limit > 0 and self.triggered >= self.options.limit

    # ══════════════════════════════════════════════════════════
    # LISTENERS
    # ══════════════════════════════════════════════════════════

    def on(self, callback: Callable[..., Any], options: ListenerOptions) -> ListenerRecord:
        record, created = self.registry.register(callback, options)

        if (
            created
            and self.options.auto_trigger
            and self.last_trigger_args is not None
            and not self.suspended
        ):
            logger.debug(f"Replaying last trigger of {self.name} to listener {record.id}")
            self.trigger(self.last_trigger_args, ReturnMode.NONE, only=record)

        return record

    def un(self, callback: Any, context: Any = None, tag: Optional[str] = None) -> bool:
        return self.registry.unregister(callback, context, tag)

    def has_listener(self, callback: Any = None, context: Any = None,
                     tag: Optional[str] = None) -> bool:
        return self.registry.has(callback, context, tag)

    def remove_all_listeners(self, tag: Optional[str] = None) -> int:
        return self.registry.remove_all(tag)

    # ══════════════════════════════════════════════════════════
    # TRIGGER
    # ══════════════════════════════════════════════════════════

    def trigger(
        self,
        args: Tuple[Any, ...] = (),
        mode: ReturnMode = ReturnMode.NONE,
        tags: FrozenSet[str] = frozenset(),
        only: Optional[ListenerRecord] = None,
    ) -> Any:
        return dispatcher.dispatch(self, args, mode, tags=tags, only=only)

    def enqueue(self, args: Tuple[Any, ...], mode: ReturnMode,
                tags: FrozenSet[str] = frozenset()) -> None:
        self.queue.append(QueuedTrigger(tuple(args), mode, tags))

    # ══════════════════════════════════════════════════════════
    # SUSPENSION
    # ══════════════════════════════════════════════════════════

    def suspend(self, with_queue: bool = False) -> None:
        self.suspended = True
        if with_queue:
            self.queued = True
        logger.debug(f"Channel suspended: {self.name} (queue: {self.queued})")

    def resume(self) -> None:
        self.suspended = False
        self.queued = False
        logger.debug(f"Channel resumed: {self.name} ({len(self.queue)} queued)")

        if self.queue:
            pending, self.queue = self.queue, []
            for item in pending:
                self.trigger(item.args, item.mode, tags=item.tags)

    @property
    def has_queue(self) -> bool:
        return bool(self.queue)

    # ══════════════════════════════════════════════════════════
    # TEARDOWN
    # ══════════════════════════════════════════════════════════

    def destroy(self) -> None:
        self.registry.remove_all()
        self.options = build_options(EventOptions, self.options, filter=None, filter_context=None)
        self.queue = []
        self.last_trigger_args = None
