"""
Tests for observable.bus.observable - The Observable facade.

Covers:
1. on / once / un / has / remove_all_listeners, handles
2. Trigger family and resolve_* counterparts
3. Interceptor veto and catch-all "*"
4. Tag scope
5. Suspension across events
6. Event options, public API, teardown
"""

import asyncio
import dataclasses

import pytest

from observable import (
    EventOptions,
    InvalidListenerError,
    ListenerHandle,
    ListenerOptions,
    NoRunningLoopError,
    Observable,
    ReturnMode,
)


class Counter:
    total = 0

    def handle(self):
        Counter.total += 1


# ══════════════════════════════════════════════════════════════
# SUBSCRIPTION
# ══════════════════════════════════════════════════════════════

class TestSubscription:
    def test_on_and_trigger(self):
        bus = Observable()
        received = []
        bus.on("event", lambda a, b: received.append((a, b)))
        bus.trigger("event", 1, 2)
        assert received == [(1, 2)]

    def test_non_callable_rejected(self):
        bus = Observable()
        with pytest.raises(InvalidListenerError):
            bus.on("event", "not callable")
        with pytest.raises(TypeError):
            bus.on("event", None)

    def test_on_returns_handle(self):
        bus = Observable()
        listener = lambda: None  # noqa: E731
        handle = bus.on("event", listener)
        assert isinstance(handle, ListenerHandle)
        assert handle.event == "event"
        assert bus.on("event", listener) == handle

    def test_un_by_handle(self):
        bus = Observable()
        handle = bus.on("event", lambda: None)
        assert bus.has("event", handle)
        assert bus.un("event", handle) is True
        assert not bus.has("event")

    def test_handle_from_other_event_rejected(self):
        bus = Observable()
        log = []
        handle = bus.on("a", lambda: log.append("a"))
        bus.on("b", lambda: log.append("b"))
        assert not bus.has("b", handle)
        assert bus.un("b", handle) is False
        bus.trigger("b")
        assert log == ["b"]
        assert bus.has("a", handle)

    def test_stale_handle_after_destroy_event(self):
        bus = Observable()
        log = []
        stale = bus.on("a", lambda: log.append(1))
        bus.destroy_event("a")
        fresh = bus.on("a", lambda: log.append(2))
        assert fresh != stale
        assert not bus.has("a", stale)
        assert bus.un("a", stale) is False
        bus.trigger("a")
        assert log == [2]

    def test_handle_ids_unique_across_events(self):
        bus = Observable()
        first = bus.on("a", lambda: None)
        second = bus.on("b", lambda: None)
        assert first.id != second.id

    def test_un_unknown_event(self):
        assert Observable().un("missing", lambda: None) is False

    def test_options_object_and_keywords(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append(1), ListenerOptions(limit=5), limit=1)
        bus.trigger("event")
        bus.trigger("event")
        assert log == [1]

    def test_once(self):
        bus = Observable()
        log = []
        bus.once("event", lambda: log.append(1))
        bus.trigger("event")
        bus.trigger("event")
        assert log == [1]
        assert not bus.has("event")

    def test_dedup_with_context(self):
        bus = Observable()
        counter = Counter()
        Counter.total = 0
        bus.on("event", counter.handle, context=counter)
        bus.on("event", counter.handle, context=counter)
        bus.trigger("event")
        assert Counter.total == 1

    def test_unsubscribe_one_of_many_instances(self):
        bus = Observable()
        Counter.total = 0
        handlers = [Counter(), Counter(), Counter()]
        for handler in handlers:
            bus.on("event", handler.handle, context=handler)
        bus.trigger("event")
        bus.un("event", handlers[2].handle, handlers[2])
        bus.trigger("event")
        assert Counter.total == 5

    def test_has_without_name(self):
        bus = Observable()
        assert not bus.has()
        bus.on("a", lambda: None, tags=["ui"])
        assert bus.has()
        assert bus.has(tag="ui")
        assert not bus.has(tag="db")
        assert bus.has_listener("a")

    def test_has_callback_without_name(self):
        bus = Observable()
        listener = lambda: None  # noqa: E731
        handle = bus.on("a", listener)
        assert bus.has(callback=handle)
        with pytest.raises(TypeError, match="needs an event name"):
            bus.has(callback=listener)
        with pytest.raises(TypeError):
            bus.has(context=object())

    def test_remove_all_listeners_by_tag(self):
        bus = Observable()
        bus.on("a", lambda: None, tags=["ui"])
        bus.on("b", lambda: None, tags=["ui"])
        bus.on("b", lambda: None)
        bus.remove_all_listeners(tag="ui")
        assert not bus.has("a")
        assert bus.has("b")

    def test_remove_all_listeners_for_event(self):
        bus = Observable()
        bus.on("a", lambda: None)
        bus.on("b", lambda: None)
        bus.remove_all_listeners("a")
        assert not bus.has("a")
        assert bus.has("b")


# ══════════════════════════════════════════════════════════════
# TRIGGER FAMILY
# ══════════════════════════════════════════════════════════════

class TestTriggerFamily:
    def make_bus(self):
        bus = Observable()
        bus.on("event", lambda value: value * 2)
        bus.on("event", lambda value: value + 1)
        return bus

    def test_collection_modes(self):
        bus = self.make_bus()
        assert bus.trigger("event", 10) is None
        assert bus.raw("event", 10) == [20, 11]
        assert bus.all("event", 10) == [20, 11]
        assert bus.concat("event", 10) == [20, 11]
        assert bus.last("event", 10) == 11
        assert bus.first("event", 10) == 20
        assert bus.pipe("event", 10) == 21

    def test_merge(self):
        bus = Observable()
        bus.on("event", lambda: {"a": 1})
        bus.on("event", lambda: {"b": 2})
        assert bus.merge("event") == {"a": 1, "b": 2}

    def test_sentinel_modes(self):
        bus = Observable()
        bus.on("event", lambda: None)
        bus.on("event", lambda: True)
        bus.on("event", lambda: False)
        assert bus.until_true("event") is True
        assert bus.until_false("event") is False
        assert bus.first_non_empty("event") is True

    def test_trigger_creates_channel(self):
        bus = Observable()
        assert bus.all("fresh") == []
        assert bus.has_event("fresh")

    def test_resolve_lifts_sync_result(self):
        async def scenario():
            bus = self.make_bus()
            future = bus.resolve_all("event", 1)
            assert isinstance(future, asyncio.Future)
            return await future

        assert asyncio.run(scenario()) == [2, 2]

    def test_resolve_family(self):
        async def scenario():
            bus = self.make_bus()
            return [
                await bus.resolve("event", 1),
                await bus.resolve_raw("event", 1),
                await bus.resolve_concat("event", 1),
                await bus.resolve_last("event", 1),
                await bus.resolve_pipe("event", 1),
                await bus.resolve_first("event", 1),
                await bus.resolve_merge("missing"),
                await bus.resolve_until_true("event", 1),
                await bus.resolve_until_false("event", 1),
                await bus.resolve_first_non_empty("event", 1),
            ]

        assert asyncio.run(scenario()) == [
            None, [2, 2], [2, 2], 2, 3, 2, {}, None, None, 2,
        ]

    def test_resolve_passes_awaitable_through(self):
        async def later(value):
            return value

        async def scenario():
            bus = Observable()
            bus.on("event", later)
            return await bus.resolve_first("event", "done")

        assert asyncio.run(scenario()) == "done"

    def test_resolve_without_loop(self):
        bus = self.make_bus()
        with pytest.raises(NoRunningLoopError):
            bus.resolve_all("event", 1)

    def test_promise_resolves_with_args(self):
        async def scenario():
            bus = Observable()
            waiter = bus.promise("event")
            bus.trigger("event", 1, 2)
            bus.trigger("event", 3)
            return await waiter, bus.has("event")

        assert asyncio.run(scenario()) == ([1, 2], False)


# ══════════════════════════════════════════════════════════════
# INTERCEPTOR AND CATCH-ALL
# ══════════════════════════════════════════════════════════════

class TestInterceptor:
    def test_veto(self):
        bus = Observable()
        log = []
        calls = []
        bus.on("event", lambda value: log.append(value))

        def interceptor(name, args, mode, tags):
            calls.append((name, args, mode, tags))
            return False

        bus.intercept(interceptor)
        assert bus.all("event", 1) == []
        bus.trigger("event", 2)
        assert log == []
        assert calls == [
            ("event", [1], ReturnMode.ALL, frozenset()),
            ("event", [2], ReturnMode.NONE, frozenset()),
        ]

    def test_only_exact_true_allows(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append(1))
        bus.intercept(lambda *a: 1)
        bus.trigger("event")
        bus.intercept(lambda *a: True)
        bus.trigger("event")
        assert log == [1]

    def test_veto_does_not_create_channel(self):
        bus = Observable()
        bus.intercept(lambda *a: False)
        bus.trigger("ghost")
        assert not bus.has_event("ghost")

    def test_stop_intercepting(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append(1))
        bus.intercept(lambda *a: False)
        bus.stop_intercepting()
        bus.trigger("event")
        assert log == [1]

    def test_interceptor_sees_active_tags(self):
        bus = Observable()
        seen = []
        bus.intercept(lambda name, args, mode, tags: seen.append(tags) or True)
        bus.with_tags(["a"], lambda: bus.trigger("event"))
        assert seen == [frozenset({"a"})]


class TestCatchAll:
    def test_receives_name_and_args(self):
        bus = Observable()
        seen = []
        bus.on("*", lambda name, *args: seen.append((name, args)))
        bus.trigger("one", 1, 2)
        bus.all("two")
        assert seen == [("one", (1, 2)), ("two", ())]

    def test_result_is_discarded(self):
        bus = Observable()
        bus.on("*", lambda name, *args: "catch-all")
        bus.on("event", lambda: "listener")
        assert bus.first("event") == "listener"
        assert bus.all("missing") == []

    def test_catch_all_not_triggered_by_itself(self):
        bus = Observable()
        seen = []
        bus.on("*", lambda *args: seen.append(args))
        bus.trigger("*", "direct")
        assert seen == [("direct",)]

    def test_vetoed_trigger_skips_catch_all(self):
        bus = Observable()
        seen = []
        bus.on("*", lambda *args: seen.append(args))
        bus.intercept(lambda *a: False)
        bus.trigger("event")
        assert seen == []


# ══════════════════════════════════════════════════════════════
# TAG SCOPE
# ══════════════════════════════════════════════════════════════

class TestTags:
    def test_with_tags_filters_listeners(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append("a"), tags=["a"])
        bus.on("event", lambda: log.append("ab"), tags=["a", "b"])
        bus.on("event", lambda: log.append("b"), tags=["b"])
        bus.on("event", lambda: log.append("none"))
        bus.with_tags(["a"], lambda: bus.trigger("event"))
        assert log == ["a", "ab"]
        log.clear()
        bus.trigger("event")
        assert log == ["a", "ab", "b", "none"]

    def test_with_tags_returns_callback_result(self):
        bus = Observable()
        bus.on("event", lambda: 1, tags="x")
        assert bus.with_tags("x", lambda: bus.all("event")) == [1]

    def test_scope_restored_after_exception(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append("untagged"))

        def failing():
            raise RuntimeError("inside scope")

        with pytest.raises(RuntimeError):
            bus.with_tags(["a"], failing)
        bus.trigger("event")
        assert log == ["untagged"]

    def test_queued_trigger_keeps_tags(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append("a"), tags=["a"])
        bus.on("event", lambda: log.append("b"), tags=["b"])
        bus.suspend_event("event", with_queue=True)
        bus.with_tags("a", lambda: bus.trigger("event"))
        bus.resume_event("event")
        assert log == ["a"]


# ══════════════════════════════════════════════════════════════
# SUSPENSION
# ══════════════════════════════════════════════════════════════

class TestSuspension:
    def test_suspend_event(self):
        bus = Observable()
        log = []
        bus.on("event", lambda: log.append(1))
        bus.suspend_event("event")
        assert bus.is_suspended("event")
        assert not bus.is_queued("event")
        bus.trigger("event")
        bus.resume_event("event")
        bus.trigger("event")
        assert log == [1]

    def test_suspend_unknown_event_creates_it(self):
        bus = Observable()
        bus.suspend_event("later", with_queue=True)
        bus.trigger("later", 1)
        assert bus.has_queue("later")
        assert bus.has_queue()
        log = []
        bus.on("later", lambda value: log.append(value))
        bus.resume_event("later")
        assert log == [1]
        assert not bus.has_queue()

    def test_suspend_all_and_resume_all(self):
        bus = Observable()
        log = []
        bus.on("a", lambda: log.append("a"))
        bus.on("b", lambda: log.append("b"))
        bus.suspend_all_events(with_queue=True)
        bus.trigger("b")
        bus.trigger("a")
        assert log == []
        bus.resume_all_events()
        assert sorted(log) == ["a", "b"]

    def test_status_of_unknown_event(self):
        bus = Observable()
        assert not bus.is_suspended("x")
        assert not bus.is_queued("x")
        assert not bus.has_queue("x")


# ══════════════════════════════════════════════════════════════
# EVENT OPTIONS, PUBLIC API, TEARDOWN
# ══════════════════════════════════════════════════════════════

class TestEventsAndTeardown:
    def test_create_event_keeps_existing(self):
        bus = Observable()
        first = bus.create_event("event", limit=2)
        again = bus.create_event("event", limit=5)
        assert again is first
        assert again.options.limit == 2

    def test_set_event_options_overlays(self):
        bus = Observable()
        bus.set_event_options("event", EventOptions(limit=2))
        channel = bus.set_event_options("event", auto_trigger=True)
        assert channel.options.limit == 2
        assert channel.options.auto_trigger is True

    def test_auto_trigger_through_bus(self):
        bus = Observable()
        received = []
        bus.set_event_options("event", auto_trigger=True)
        bus.trigger("event", "payload")
        bus.on("event", lambda value: received.append(value))
        assert received == ["payload"]

    def test_get_event(self):
        bus = Observable()
        assert bus.get_event("event") is None
        bus.on("event", lambda: None)
        assert bus.get_event("event").name == "event"

    def test_destroy_event(self):
        bus = Observable()
        bus.on("event", lambda: None)
        bus.destroy_event("event")
        assert not bus.has_event("event")
        assert not bus.has("event")

    def test_destroy(self):
        bus = Observable()
        log = []
        bus.on("a", lambda: log.append(1))
        bus.intercept(lambda *a: False)
        bus.destroy()
        assert not bus.has()
        assert not bus.has_event("a")
        bus.on("a", lambda: log.append(2))
        bus.trigger("a")
        assert log == [2]

    def test_public_api_is_subscription_only(self):
        bus = Observable()
        api = bus.get_public_api()
        log = []
        listener = lambda: log.append(1)  # noqa: E731
        api.on("event", listener)
        assert api.has("event", listener)
        bus.trigger("event")
        api.un("event", listener)
        bus.trigger("event")
        assert log == [1]
        assert not hasattr(api, "trigger")
        assert not hasattr(api, "destroy")
        with pytest.raises(dataclasses.FrozenInstanceError):
            api.trigger = bus.trigger

    def test_public_api_once(self):
        bus = Observable()
        log = []
        bus.get_public_api().once("event", lambda: log.append(1))
        bus.trigger("event")
        bus.trigger("event")
        assert log == [1]
