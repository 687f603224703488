"""
Observable Events - Listener Records
======================================
One ListenerRecord per (callback, context) pair registered on a channel.

Records are mutable: every trigger that reaches a record updates its
`count` (attempts) and `called` (successful invocations).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, FrozenSet, Hashable, Optional

from observable.config.options import ArgumentTransform, AsyncSetting, ListenerOptions
from observable.events.scheduling import normalize_delay


@dataclass(frozen=True)
class ListenerHandle:
    """Opaque registration handle returned by on()/once()."""

    event: Hashable
    id: int


@dataclass(eq=False)
class ListenerRecord:
    """
    Registered listener plus its per-listener state.

    Identity is (callback, context). Callbacks compare with `==` so that
    bound methods obtained twice from the same object still match.
    """

    id: int
    callback: Callable[..., Any]
    context: Any = None
    asynchronous: AsyncSetting = False
    limit: int = 0
    start: int = 1
    count: int = 0
    called: int = 0
    append: Optional[ArgumentTransform] = None
    prepend: Optional[ArgumentTransform] = None
    replace: Optional[ArgumentTransform] = None
    filter: Optional[Callable[..., Any]] = None
    filter_context: Any = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    first: bool = False
    always_first: bool = False
    always_last: bool = False
    index: int = 0
    extra_data: Any = None

    @classmethod
    def from_options(
        cls,
        id: int,
        callback: Callable[..., Any],
        options: ListenerOptions,
    ) -> "ListenerRecord":
        return cls(
            id=id,
            callback=callback,
            context=options.context,
            asynchronous=normalize_delay(options.asynchronous),
            limit=options.limit,
            start=options.start,
            append=options.append,
            prepend=options.prepend,
            replace=options.replace,
            filter=options.filter,
            filter_context=options.filter_context,
            tags=options.tags,
            first=options.first,
            always_first=options.always_first,
            always_last=options.always_last,
            index=id,
            extra_data=options.extra_data,
        )

    @property
    def has_priority(self) -> bool:
        return self.always_first or self.always_last

    def matches(
        self,
        callback: Any,
        context: Any = None,
        tag: Optional[str] = None,
    ) -> bool:
        """Match by handle, or by (callback, context) and optional tag."""
        if isinstance(callback, ListenerHandle):
            if callback.id != self.id:
                return False
        elif self.callback is not callback and self.callback != callback:
            return False
        elif not _same_context(self.context, context):
            return False
        if tag is not None and tag not in self.tags:
            return False
        return True

    def accepts_tags(self, tags: FrozenSet[str]) -> bool:
        """
        Tag gate for a scoped trigger. With no trigger tags every listener
        passes; otherwise the listener must carry at least one of them.
        """
        if not tags:
            return True
        return bool(self.tags & tags)

    def handle(self, event: Hashable) -> ListenerHandle:
        return ListenerHandle(event=event, id=self.id)


def _same_context(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a is b or a == b


def priority_key(record: ListenerRecord) -> int:
    """
    Stable sort key: always_first records lead, always_last records
    trail, everything else keeps its current relative order.
    """
    if record.always_first:
        return 0
    if record.always_last:
        return 2
    return 1
