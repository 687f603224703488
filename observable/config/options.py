"""
Observable Config - Channel and Listener Options
==================================================
Explicit configuration structs for channels and listeners.

Defaults are applied field by field. Numeric fields are validated on
construction; argument transforms (append / prepend / replace) are not,
a malformed transform fails where it is used, during dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, FrozenSet, Iterable, Optional, Sequence, TypeVar, Union

# A transform is either a fixed sequence of arguments or a callable
# (listener_record, args) -> sequence.
ArgumentTransform = Union[Sequence[Any], Callable[..., Sequence[Any]]]

# False | True | delay in milliseconds
AsyncSetting = Union[bool, int, float]


def _validate_async(value: Any) -> None:
    if isinstance(value, bool):
        return
    if not isinstance(value, (int, float)) or value < 0:
        raise ValueError(
            f"asynchronous must be a bool or a non-negative delay in ms, got {value!r}."
        )


def normalize_tags(tags: Union[None, str, Iterable[str]]) -> FrozenSet[str]:
    if not tags:
        return frozenset()
    if isinstance(tags, str):
        return frozenset((tags,))
    return frozenset(tags)


# ══════════════════════════════════════════════════════════════
# EVENT (CHANNEL) OPTIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EventOptions:
    """
    Channel-level configuration.

    Fields:
        limit:          Max number of triggers the channel accepts (0 = unlimited).
        auto_trigger:   Retain the last trigger arguments and replay them to
                        every listener registered afterwards.
        filter:         (filter_context, args, listener) -> bool, applied to
                        every listener; False skips it.
        filter_context: First argument handed to `filter`.
        append/prepend/replace: Default argument transforms for listeners
                        that do not set their own.
        asynchronous:   Default deferral for listeners (False | True | ms).
    """

    limit: int = 0
    auto_trigger: bool = False
    filter: Optional[Callable[..., Any]] = None
    filter_context: Any = None
    append: Optional[ArgumentTransform] = None
    prepend: Optional[ArgumentTransform] = None
    replace: Optional[ArgumentTransform] = None
    asynchronous: AsyncSetting = False

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError(f"Event limit must be >= 0, got {self.limit}.")
        _validate_async(self.asynchronous)


# ══════════════════════════════════════════════════════════════
# LISTENER OPTIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ListenerOptions:
    """
    Per-listener configuration.

    `context` participates in listener identity: the same callback may be
    registered once per distinct context.
    """

    context: Any = None
    limit: int = 0
    start: int = 1
    first: bool = False
    always_first: bool = False
    always_last: bool = False
    asynchronous: AsyncSetting = False
    append: Optional[ArgumentTransform] = None
    prepend: Optional[ArgumentTransform] = None
    replace: Optional[ArgumentTransform] = None
    filter: Optional[Callable[..., Any]] = None
    filter_context: Any = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    extra_data: Any = None

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ValueError(f"Listener limit must be >= 0, got {self.limit}.")
        if self.start < 1:
            raise ValueError(f"Listener start must be >= 1, got {self.start}.")
        _validate_async(self.asynchronous)
        object.__setattr__(self, "tags", normalize_tags(self.tags))


# ══════════════════════════════════════════════════════════════
# BUILDING FROM KEYWORDS
# ══════════════════════════════════════════════════════════════

OptionsT = TypeVar("OptionsT", EventOptions, ListenerOptions)


def build_options(cls: type, base: Optional[OptionsT] = None, **overrides: Any) -> OptionsT:
    """
    Build `cls` from an optional base object overlaid with keyword fields.

    Unknown field names raise TypeError, like the dataclass constructor.
    """
    if base is None:
        return cls(**overrides)
    if not overrides:
        return base
    known = {f.name for f in fields(cls)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(
            f"{cls.__name__} got unexpected field(s): {', '.join(sorted(unknown))}"
        )
    return replace(base, **overrides)
