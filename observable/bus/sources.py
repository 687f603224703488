"""
Observable Bus - External Event Sources
=========================================
Bridges push-style emitters into the bus.

An event source descriptor exposes:
    name        unique name on the bus
    accepts     bool, or callable(event_name) -> bool
    on          on(event_name, proxy_fn, source, options)
    un          un(event_name, proxy_fn, source, tag)
    proxy_type  trigger method the proxy calls (default: trigger)

Once registered, every on() for an accepted name subscribes one proxy
function to the source; when the name's last internal listener goes
away the proxy is unsubscribed again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional, Union

from observable.events.errors import DuplicateEventSourceError, UnknownProxyTypeError

logger = logging.getLogger("observable.bus")


# ══════════════════════════════════════════════════════════════
# PROXY TYPE
# ══════════════════════════════════════════════════════════════

class ProxyType(Enum):
    """Trigger-family methods a proxy or relay may call."""
    TRIGGER = "trigger"
    RAW = "raw"
    ALL = "all"
    CONCAT = "concat"
    MERGE = "merge"
    LAST = "last"
    PIPE = "pipe"
    FIRST = "first"
    UNTIL_TRUE = "until_true"
    UNTIL_FALSE = "until_false"
    FIRST_NON_EMPTY = "first_non_empty"
    RESOLVE = "resolve"
    RESOLVE_RAW = "resolve_raw"
    RESOLVE_ALL = "resolve_all"
    RESOLVE_CONCAT = "resolve_concat"
    RESOLVE_MERGE = "resolve_merge"
    RESOLVE_LAST = "resolve_last"
    RESOLVE_PIPE = "resolve_pipe"
    RESOLVE_FIRST = "resolve_first"
    RESOLVE_UNTIL_TRUE = "resolve_until_true"
    RESOLVE_UNTIL_FALSE = "resolve_until_false"
    RESOLVE_FIRST_NON_EMPTY = "resolve_first_non_empty"


def to_proxy_type(value: Union[str, ProxyType, None]) -> ProxyType:
    if value is None:
        return ProxyType.TRIGGER
    if isinstance(value, ProxyType):
        return value
    try:
        return ProxyType(value)
    except ValueError:
        raise UnknownProxyTypeError(value) from None


# ══════════════════════════════════════════════════════════════
# EVENT SOURCE DESCRIPTOR
# ══════════════════════════════════════════════════════════════

@dataclass
class EventSource:
    """Ready-made descriptor; any object with the same attributes works."""

    name: str
    on: Callable[..., Any]
    un: Callable[..., Any]
    accepts: Union[bool, Callable[[Hashable], bool]] = True
    proxy_type: Union[str, ProxyType] = ProxyType.TRIGGER


def source_accepts(source: Any, event_name: Hashable) -> bool:
    accepts = getattr(source, "accepts", True)
    if callable(accepts):
        return bool(accepts(event_name))
    return bool(accepts)


# ══════════════════════════════════════════════════════════════
# SOURCE BRIDGE
# ══════════════════════════════════════════════════════════════

ProxyFactory = Callable[[Hashable, ProxyType], Callable[..., Any]]


class SourceBridge:
    """
    Registered sources plus the proxies subscribed to each of them.

    `make_proxy(event_name, proxy_type)` builds the function handed to a
    source; it is the bus's proxy().
    """

    def __init__(self, make_proxy: ProxyFactory):
        self._make_proxy = make_proxy
        self._sources: Dict[str, Any] = {}
        self._proxies: Dict[str, Dict[Hashable, Callable[..., Any]]] = {}

    def add(self, source: Any) -> None:
        name = source.name
        if name in self._sources:
            raise DuplicateEventSourceError(name)
        to_proxy_type(getattr(source, "proxy_type", None))
        self._sources[name] = source
        self._proxies[name] = {}
        logger.info(f"Event source registered: {name}")

    def remove(self, source: Any) -> bool:
        name = self._source_name(source)
        if name not in self._sources:
            return False

        source = self._sources.pop(name)
        proxies = self._proxies.pop(name)
        for event_name, proxy in proxies.items():
            source.un(event_name, proxy, source, None)

        logger.info(
            f"Event source removed: {name} "
            f"({len(proxies)} proxies unsubscribed)"
        )
        return True

    def has(self, source: Any = None) -> bool:
        if source is None:
            return bool(self._sources)
        return self._source_name(source) in self._sources

    def subscribe(self, event_name: Hashable, options: Any = None) -> None:
        """Subscribe a proxy for `event_name` to every accepting source."""
        for name, source in self._sources.items():
            proxies = self._proxies[name]
            if event_name in proxies or not source_accepts(source, event_name):
                continue
            proxy_type = to_proxy_type(getattr(source, "proxy_type", None))
            proxy = self._make_proxy(event_name, proxy_type)
            proxies[event_name] = proxy
            source.on(event_name, proxy, source, options)
            logger.debug(f"Proxy subscribed: {name} -> {event_name}")

    def unsubscribe(self, event_name: Hashable, tag: Optional[str] = None) -> None:
        for name, source in self._sources.items():
            proxy = self._proxies[name].pop(event_name, None)
            if proxy is not None:
                source.un(event_name, proxy, source, tag)
                logger.debug(f"Proxy unsubscribed: {name} -> {event_name}")

    def clear(self) -> None:
        for name in list(self._sources):
            self.remove(name)

    @staticmethod
    def _source_name(source: Any) -> str:
        if isinstance(source, str):
            return source
        return source.name
