"""
Observable Bus - Facade
=========================
Owns the name -> EventChannel mapping and exposes the public operations.

Trigger flow:
    1. Interceptor (if any) must return exactly True, otherwise the call
       is vetoed: no channel is touched and the mode's empty value is
       returned
    2. The named channel dispatches with the requested Return Mode
    3. The catch-all channel "*" is triggered with the event name
       prepended, always fire-and-forget; its result is discarded

Every trigger method has a resolve_* counterpart that always returns an
asyncio.Future, lifting synchronous results.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from functools import partial
from itertools import count
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Union

from observable.bus.api import PublicApi
from observable.bus.sources import ProxyType, SourceBridge, to_proxy_type
from observable.config.options import EventOptions, ListenerOptions, build_options, normalize_tags
from observable.events.channel import EventChannel
from observable.events.errors import InvalidListenerError
from observable.events.listeners import ListenerHandle
from observable.events.modes import ReturnMode, empty_result
from observable.events.outcomes import lift, running_loop

logger = logging.getLogger("observable.bus")

CATCH_ALL = "*"

Interceptor = Callable[[Hashable, List[Any], ReturnMode, FrozenSet[str]], Any]


def _prefix_event_name(prefix: str, listener: Any, args: List[Any]) -> List[Any]:
    return [f"{prefix}{args[0]}", *args[1:]]


class Observable:
    """
    In-process event bus.

    Usage:
        bus = Observable()
        bus.on("price", lambda value: value * 2)
        bus.on("price", lambda value: value + 1)

        bus.all("price", 10)     # [20, 11]
        bus.pipe("price", 10)    # 21
    """

    def __init__(self) -> None:
        self._channels: Dict[Hashable, EventChannel] = {}
        self._listener_ids = count(1)
        self._interceptor: Optional[Interceptor] = None
        self._sources = SourceBridge(self.proxy)
        self._active_tags: ContextVar[FrozenSet[str]] = ContextVar(
            "observable_active_tags", default=frozenset()
        )

    # ══════════════════════════════════════════════════════════
    # CHANNELS
    # ══════════════════════════════════════════════════════════

    def _channel(self, name: Hashable) -> EventChannel:
        channel = self._channels.get(name)
        if channel is None:
            channel = EventChannel(name, on_drained=self._on_drained, ids=self._listener_ids)
            self._channels[name] = channel
        return channel

    def _on_drained(self, name: Hashable, tag: Optional[str]) -> None:
        self._sources.unsubscribe(name, tag)

    def create_event(self, name: Hashable, options: Optional[EventOptions] = None,
                     **fields: Any) -> EventChannel:
        """Create a channel, or return the existing one untouched."""
        channel = self._channels.get(name)
        if channel is None:
            channel = EventChannel(
                name,
                options=build_options(EventOptions, options, **fields),
                on_drained=self._on_drained,
                ids=self._listener_ids,
            )
            self._channels[name] = channel
        return channel

    def set_event_options(self, name: Hashable, options: Optional[EventOptions] = None,
                          **fields: Any) -> EventChannel:
        """Create a channel or overlay the given options on the existing one."""
        channel = self._channels.get(name)
        if channel is None:
            return self.create_event(name, options, **fields)
        if options is not None:
            channel.options = options
        if fields:
            channel.configure(**fields)
        return channel

    def get_event(self, name: Hashable) -> Optional[EventChannel]:
        return self._channels.get(name)

    def has_event(self, name: Hashable) -> bool:
        return name in self._channels

    def destroy_event(self, name: Hashable) -> None:
        channel = self._channels.pop(name, None)
        if channel is not None:
            channel.destroy()
            logger.info(f"Event destroyed: {name}")

    # ══════════════════════════════════════════════════════════
    # LISTENERS
    # ══════════════════════════════════════════════════════════

    def on(self, name: Hashable, callback: Callable[..., Any],
           options: Optional[ListenerOptions] = None, **fields: Any) -> ListenerHandle:
        """
        Subscribe `callback` to `name` ("*" receives every event, with the
        event name as first argument).

        Returns:
            ListenerHandle usable with un() and has(). Registering the same
            (callback, context) pair again returns the existing handle.
        """
        if not callable(callback):
            raise InvalidListenerError(name, callback)

        listener_options = build_options(ListenerOptions, options, **fields)
        channel = self._channel(name)

        if name != CATCH_ALL and self._sources.has():
            self._sources.subscribe(name, listener_options)

        record = channel.on(callback, listener_options)
        return record.handle(name)

    def once(self, name: Hashable, callback: Callable[..., Any],
             options: Optional[ListenerOptions] = None, **fields: Any) -> ListenerHandle:
        fields["limit"] = 1
        return self.on(name, callback, options, **fields)

    def promise(self, name: Hashable, options: Optional[ListenerOptions] = None,
                **fields: Any):
        """Future resolved with the argument list of the next matching trigger."""
        future = running_loop("Waiting for an event").create_future()

        def resolve(*args: Any) -> None:
            if not future.done():
                future.set_result(list(args))

        self.once(name, resolve, options, **fields)
        return future

    def un(self, name: Hashable, callback: Any, context: Any = None,
           tag: Optional[str] = None) -> bool:
        channel = self._channels.get(name)
        if channel is None:
            return False
        return channel.un(callback, context, tag)

    def has(self, name: Optional[Hashable] = None, callback: Any = None,
            context: Any = None, tag: Optional[str] = None) -> bool:
        """
        Without a name, report whether any channel has a listener (carrying
        `tag`, if given). A callback or context needs a name, except for a
        handle, which already carries its event.
        """
        if name is None and isinstance(callback, ListenerHandle):
            name = callback.event
        if name is None:
            if callback is not None or context is not None:
                raise TypeError("has() needs an event name to look up a callback or context.")
            return any(
                channel.has_listener(None, None, tag)
                for channel in self._channels.values()
            )
        channel = self._channels.get(name)
        if channel is None:
            return False
        return channel.has_listener(callback, context, tag)

    has_listener = has

    def remove_all_listeners(self, name: Optional[Hashable] = None,
                             tag: Optional[str] = None) -> None:
        if name is None:
            channels = list(self._channels.values())
        else:
            channel = self._channels.get(name)
            channels = [channel] if channel is not None else []

        for channel in channels:
            channel.remove_all_listeners(tag)

    # ══════════════════════════════════════════════════════════
    # TRIGGER FAMILY
    # ══════════════════════════════════════════════════════════

    def _trigger(self, mode: ReturnMode, name: Hashable, args: tuple) -> Any:
        tags = self._active_tags.get()

        if self._interceptor is not None:
            if self._interceptor(name, list(args), mode, tags) is not True:
                logger.debug(f"Trigger vetoed by interceptor: {name} ({mode.value})")
                return empty_result(mode)

        result = self._channel(name).trigger(args, mode, tags)

        if name != CATCH_ALL:
            catch_all = self._channels.get(CATCH_ALL)
            if catch_all is not None and catch_all.has_listener():
                catch_all.trigger((name, *args), ReturnMode.NONE, tags)

        return result

    def trigger(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.NONE, name, args)

    def raw(self, name: Hashable, *args: Any) -> List[Any]:
        return self._trigger(ReturnMode.RAW, name, args)

    def all(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.ALL, name, args)

    def concat(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.CONCAT, name, args)

    def merge(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.MERGE, name, args)

    def last(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.LAST, name, args)

    def pipe(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.PIPE, name, args)

    def first(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.FIRST, name, args)

    def until_true(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.UNTIL_TRUE, name, args)

    def until_false(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.UNTIL_FALSE, name, args)

    def first_non_empty(self, name: Hashable, *args: Any) -> Any:
        return self._trigger(ReturnMode.FIRST_NON_EMPTY, name, args)

    # ── resolve_* ─────────────────────────────────────────────

    def _resolve(self, mode: ReturnMode, name: Hashable, args: tuple):
        # the loop is checked first so a missing loop never half-dispatches
        running_loop("resolve_*")
        return lift(self._trigger(mode, name, args))

    def resolve(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.NONE, name, args)

    def resolve_raw(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.RAW, name, args)

    def resolve_all(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.ALL, name, args)

    def resolve_concat(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.CONCAT, name, args)

    def resolve_merge(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.MERGE, name, args)

    def resolve_last(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.LAST, name, args)

    def resolve_pipe(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.PIPE, name, args)

    def resolve_first(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.FIRST, name, args)

    def resolve_until_true(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.UNTIL_TRUE, name, args)

    def resolve_until_false(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.UNTIL_FALSE, name, args)

    def resolve_first_non_empty(self, name: Hashable, *args: Any):
        return self._resolve(ReturnMode.FIRST_NON_EMPTY, name, args)

    # ══════════════════════════════════════════════════════════
    # SUSPENSION
    # ══════════════════════════════════════════════════════════

    def suspend_event(self, name: Hashable, with_queue: bool = False) -> None:
        self._channel(name).suspend(with_queue)

    def resume_event(self, name: Hashable) -> None:
        channel = self._channels.get(name)
        if channel is not None:
            channel.resume()

    def is_suspended(self, name: Hashable) -> bool:
        channel = self._channels.get(name)
        return channel is not None and channel.suspended

    def is_queued(self, name: Hashable) -> bool:
        channel = self._channels.get(name)
        return channel is not None and channel.queued

    def has_queue(self, name: Optional[Hashable] = None) -> bool:
        if name is None:
            return any(channel.has_queue for channel in self._channels.values())
        channel = self._channels.get(name)
        return channel is not None and channel.has_queue

    def suspend_all_events(self, with_queue: bool = False) -> None:
        for channel in list(self._channels.values()):
            channel.suspend(with_queue)

    def resume_all_events(self) -> None:
        for channel in list(self._channels.values()):
            channel.resume()

    # ══════════════════════════════════════════════════════════
    # INTERCEPTOR AND TAG SCOPE
    # ══════════════════════════════════════════════════════════

    def intercept(self, interceptor: Interceptor) -> None:
        """
        Install the global interceptor:
        interceptor(name, args, mode, active_tags) -> bool.
        Anything other than True vetoes the trigger.
        """
        self._interceptor = interceptor

    def stop_intercepting(self) -> None:
        self._interceptor = None

    def with_tags(self, tags: Union[str, Iterable[str]], callback: Callable[[], Any]) -> Any:
        """
        Run `callback` with `tags` active. Triggers issued inside only reach
        listeners sharing at least one of the tags.
        """
        token = self._active_tags.set(normalize_tags(tags))
        try:
            return callback()
        finally:
            self._active_tags.reset(token)

    # ══════════════════════════════════════════════════════════
    # RELAY AND PROXY
    # ══════════════════════════════════════════════════════════

    def _trigger_method(self, proxy_type: Union[str, ProxyType, None]) -> Callable[..., Any]:
        return getattr(self, to_proxy_type(proxy_type).value)

    def relay(
        self,
        source: "Observable",
        event_name: Hashable,
        trigger_name: Optional[Hashable] = None,
        name_prefix: Optional[str] = None,
        mode: Union[str, ProxyType] = ProxyType.TRIGGER,
    ) -> ListenerHandle:
        """
        Re-trigger `source`'s `event_name` on this bus.

        For "*" every event of `source` is relayed under its own name,
        optionally prefixed with `name_prefix`. Otherwise the event is
        relayed as `trigger_name` (default: same name).
        """
        method = self._trigger_method(mode)

        if event_name == CATCH_ALL:
            replace = partial(_prefix_event_name, name_prefix) if name_prefix else None
            return source.on(event_name, method, context=self, replace=replace)

        return source.on(
            event_name,
            method,
            context=self,
            prepend=[trigger_name if trigger_name is not None else event_name],
        )

    def unrelay(self, source: "Observable", event_name: Hashable,
                mode: Union[str, ProxyType] = ProxyType.TRIGGER) -> bool:
        return source.un(event_name, self._trigger_method(mode), self)

    def proxy(self, name: Hashable,
              mode: Union[str, ProxyType] = ProxyType.TRIGGER) -> Callable[..., Any]:
        """Plain callable that triggers `name` on this bus with its arguments."""
        method = self._trigger_method(mode)

        def proxy_listener(*args: Any) -> Any:
            return method(name, *args)

        return proxy_listener

    # ══════════════════════════════════════════════════════════
    # EXTERNAL EVENT SOURCES
    # ══════════════════════════════════════════════════════════

    def add_event_source(self, source: Any) -> None:
        self._sources.add(source)

    def remove_event_source(self, source: Any) -> bool:
        return self._sources.remove(source)

    def has_event_source(self, source: Any = None) -> bool:
        return self._sources.has(source)

    # ══════════════════════════════════════════════════════════
    # PUBLIC API AND TEARDOWN
    # ══════════════════════════════════════════════════════════

    def get_public_api(self) -> PublicApi:
        return PublicApi(on=self.on, un=self.un, once=self.once, has=self.has)

    def destroy(self) -> None:
        for name in list(self._channels):
            self.destroy_event(name)
        self._sources.clear()
        self._interceptor = None
        logger.info("Observable destroyed")
