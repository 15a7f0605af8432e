"""Tests for the publish/subscribe event bus."""

import logging

from config.settings import Settings
from src.core.environment import Environment
from src.core.event_bus import Event, EventBus, EventType


class TestSubscription:

    def test_emit_and_receive(self, event_bus):
        received = []
        event_bus.on("test", lambda event: received.append(event.data))

        event_bus.emit("test", "hello")
        event_bus.emit("test", "world")

        assert received == ["hello", "world"]

    def test_unsubscribe(self, event_bus):
        received = []
        unsubscribe = event_bus.on("test", lambda event: received.append(event.data))

        event_bus.emit("test", 1)
        unsubscribe()
        event_bus.emit("test", 2)

        assert received == [1]
        assert not event_bus.has_handlers("test")

    def test_once(self, event_bus):
        received = []
        event_bus.once("test", lambda event: received.append(event.data))

        for i in range(3):
            event_bus.emit("test", i)

        assert received == [0]
        assert event_bus.handler_count("test") == 0

    def test_once_can_be_cancelled(self, event_bus):
        received = []
        cancel = event_bus.once("test", lambda event: received.append(event.data))

        cancel()
        event_bus.emit("test", 1)

        assert received == []

    def test_delivery_follows_subscription_order(self, event_bus):
        received = []
        for name in ["a", "b", "c"]:
            event_bus.on("test", lambda event, name=name: received.append(name))

        event_bus.emit("test")

        assert received == ["a", "b", "c"]

    def test_off_and_clear(self, event_bus):
        event_bus.on("a", lambda event: None)
        event_bus.on("a", lambda event: None)
        event_bus.on("b", lambda event: None)

        assert event_bus.handler_count("a") == 2
        event_bus.off("a")
        assert not event_bus.has_handlers("a")
        assert event_bus.has_handlers("b")

        event_bus.clear()
        assert event_bus.handler_count("b") == 0

    def test_same_handler_registered_once(self, event_bus):
        received = []

        def handler(event):
            received.append(event.data)

        event_bus.on("test", handler)
        event_bus.on("test", handler)
        event_bus.emit("test", 1)

        assert received == [1]


class TestDispatch:

    def test_stop_propagation_only_affects_current_emit(self, event_bus):
        received = []

        def first(event):
            received.append("first")
            if event.data == "stop":
                event.stop_propagation()

        event_bus.on("test", first)
        event_bus.on("test", lambda event: received.append("second"))

        event_bus.emit("test", "stop")
        assert received == ["first"]

        event_bus.emit("test", "go")
        assert received == ["first", "first", "second"]

    def test_handler_error_is_logged_and_isolated(self, event_bus, caplog):
        received = []

        def broken(event):
            raise ValueError("boom")

        event_bus.on("test", broken)
        event_bus.on("test", lambda event: received.append(event.data))

        with caplog.at_level(logging.ERROR, logger="src.core.event_bus"):
            event_bus.emit("test", "still delivered")

        assert received == ["still delivered"]
        assert any("test" in record.getMessage() for record in caplog.records)

    def test_subscribers_added_during_emit_wait_for_next_emit(self, event_bus):
        received = []

        def late(event):
            received.append(("late", event.data))

        def subscriber(event):
            received.append(("early", event.data))
            event_bus.on("test", late)

        event_bus.on("test", subscriber)

        event_bus.emit("test", 1)
        assert received == [("early", 1)]

        event_bus.emit("test", 2)
        assert received == [("early", 1), ("early", 2), ("late", 2)]

    def test_unsubscribing_during_emit_does_not_affect_delivery(self, event_bus):
        received = []
        unsubscribers = {}

        def first(event):
            received.append("first")
            unsubscribers["second"]()

        event_bus.on("test", first)
        unsubscribers["second"] = event_bus.on("test", lambda event: received.append("second"))

        event_bus.emit("test")
        event_bus.emit("test")

        assert received == ["first", "second", "first"]

    def test_nested_emit(self, event_bus):
        received = []
        event_bus.on("outer", lambda event: event_bus.emit("inner", event.data * 2))
        event_bus.on("inner", lambda event: received.append(event.data))

        event_bus.emit("outer", 21)

        assert received == [42]

    def test_each_emit_builds_a_fresh_event(self, event_bus):
        events = []
        event_bus.on("test", events.append)

        first = event_bus.emit("test", 1)
        second = event_bus.emit("test", 2)

        assert events == [first, second]
        assert first is not second


class TestEventMetadata:

    def test_event_metadata(self):
        bus = EventBus()
        env = Environment(event_bus=bus, settings=Settings())
        env.time = 42

        received = []
        bus.on("test", received.append)
        bus.emit("test", {"foo": "bar"}, env)

        event = received[0]
        assert isinstance(event, Event)
        assert event.type == "test"
        assert event.data == {"foo": "bar"}
        assert event.source is env
        assert event.time == 42
        assert event.propagation_stopped is False

    def test_unbound_bus_stamps_time_zero(self, event_bus):
        event = event_bus.emit("test")
        assert event.time == 0
        assert event.source is None

    def test_event_type_matches_plain_string(self, event_bus):
        received = []
        event_bus.on("tick:start", received.append)

        event_bus.emit(EventType.TICK_START, {"time": 0})

        assert len(received) == 1
        assert received[0].type == "tick:start"
        assert event_bus.has_handlers(EventType.TICK_START)

    def test_history(self):
        bus = EventBus(history_limit=3)
        for i in range(5):
            bus.emit("a" if i % 2 == 0 else "b", i)

        assert [e.data for e in bus.get_history()] == [2, 3, 4]
        assert [e.data for e in bus.get_history("a")] == [2, 4]
        assert [e.data for e in bus.get_history(limit=1)] == [4]

        bus.clear_history()
        assert bus.get_history() == []

    def test_zero_history_limit_records_nothing(self):
        bus = EventBus(history_limit=0)
        for i in range(20):
            bus.emit("a", i)

        assert bus.get_history() == []
