"""
Observable Events - Listener Registry
=======================================
Ordered collection of ListenerRecords for one channel.

Rules:
- (callback, context) pairs are unique; re-registering is a no-op that
  returns the existing record
- `first` / `always_first` records are inserted at the front, others at
  the back
- once any record carries `always_first` / `always_last` the registry
  switches to sorted mode for good and re-sorts after every insertion
- snapshot() returns an immutable copy for dispatch; mutations during
  dispatch never disturb an in-flight iteration
"""

from __future__ import annotations

import logging
from itertools import count
from typing import Any, Callable, Hashable, Iterator, Optional, Tuple

from observable.config.options import ListenerOptions
from observable.events.listeners import ListenerHandle, ListenerRecord, priority_key

logger = logging.getLogger("observable.events")


class ListenerRegistry:
    """
    Per-channel listener list.

    `on_drained` is called whenever a removal leaves the registry empty.
    `ids` supplies listener ids; a bus shares one counter across all of
    its registries so a handle never matches a listener it did not issue.
    """

    def __init__(
        self,
        name: Hashable,
        on_drained: Optional[Callable[[Hashable, Optional[str]], None]] = None,
        ids: Optional[Iterator[int]] = None,
    ):
        self._name = name
        self._listeners: list[ListenerRecord] = []
        self._ids = ids if ids is not None else count(1)
        self._sorted = False
        self._on_drained = on_drained

    def __len__(self) -> int:
        return len(self._listeners)

    @property
    def sorted_mode(self) -> bool:
        return self._sorted

    # ══════════════════════════════════════════════════════════
    # REGISTRATION
    # ══════════════════════════════════════════════════════════

    def find(self, callback: Any, context: Any = None,
             tag: Optional[str] = None) -> Optional[ListenerRecord]:
        if isinstance(callback, ListenerHandle) and callback.event != self._name:
            return None
        for record in self._listeners:
            if record.matches(callback, context, tag):
                return record
        return None

    def register(
        self,
        callback: Callable[..., Any],
        options: ListenerOptions,
    ) -> Tuple[ListenerRecord, bool]:
        """
        Register a listener.

        Returns:
            (record, created). `created` is False when the (callback,
            context) pair was already present; the existing record is
            returned untouched.
        """
        existing = self.find(callback, options.context)
        if existing is not None:
            return existing, False

        record = ListenerRecord.from_options(next(self._ids), callback, options)

        if record.first or record.always_first:
            self._listeners.insert(0, record)
        else:
            self._listeners.append(record)

        if record.has_priority:
            self._sorted = True

        if self._sorted:
            # list.sort is stable: ties keep their post-insertion order
            self._listeners.sort(key=priority_key)

        logger.debug(
            f"Listener registered: {getattr(callback, '__qualname__', callback)} "
            f"-> {self._name} (id: {record.id})"
        )
        return record, True

    # ══════════════════════════════════════════════════════════
    # REMOVAL
    # ══════════════════════════════════════════════════════════

    def unregister(self, callback: Any, context: Any = None,
                   tag: Optional[str] = None) -> bool:
        """Remove at most one matching record."""
        record = self.find(callback, context, tag)
        if record is None:
            return False
        self.remove(record, tag)
        return True

    def remove(self, record: ListenerRecord, tag: Optional[str] = None) -> bool:
        try:
            self._listeners.remove(record)
        except ValueError:
            return False
        logger.debug(f"Listener removed: {self._name} (id: {record.id})")
        self._notify_if_drained(tag)
        return True

    def remove_all(self, tag: Optional[str] = None) -> int:
        """Drop every record, or only those carrying `tag`. Returns how many."""
        before = len(self._listeners)
        if tag is None:
            self._listeners = []
        else:
            self._listeners = [r for r in self._listeners if tag not in r.tags]
        removed = before - len(self._listeners)
        if removed:
            self._notify_if_drained(tag)
        return removed

    def _notify_if_drained(self, tag: Optional[str] = None) -> None:
        if not self._listeners and self._on_drained is not None:
            self._on_drained(self._name, tag)

    # ══════════════════════════════════════════════════════════
    # INTROSPECTION
    # ══════════════════════════════════════════════════════════

    def has(self, callback: Any = None, context: Any = None,
            tag: Optional[str] = None) -> bool:
        if callback is None:
            if tag is None:
                return bool(self._listeners)
            return any(tag in r.tags for r in self._listeners)
        return self.find(callback, context, tag) is not None

    def snapshot(self) -> Tuple[ListenerRecord, ...]:
        return tuple(self._listeners)
