"""Tests for the event bus system."""

import logging
from unittest.mock import Mock

import pytest

from aviary.ai.actions import ActionKind
from aviary.events import (
    BirdEvent,
    CacheStoredEvent,
    EventBus,
    TargetLostEvent,
    publish_event,
    publish_events,
    subscribe_to_event,
    unsubscribe_from_event,
)
from aviary.types import AgentId, ObjectId


def _lost(agent_id: int = 1) -> TargetLostEvent:
    return TargetLostEvent(AgentId(agent_id), ObjectId(3), ActionKind.EAT)


class TestEventBus:
    def test_handler_exception_does_not_crash_event_bus(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        bus = EventBus()
        handler_calls: list[str] = []

        def failing_handler(event: BirdEvent) -> None:
            handler_calls.append("failing")
            raise ValueError("Handler failed!")

        def succeeding_handler(event: BirdEvent) -> None:
            handler_calls.append("succeeding")

        bus.subscribe(TargetLostEvent, failing_handler)
        bus.subscribe(TargetLostEvent, succeeding_handler)

        with caplog.at_level(logging.ERROR):
            bus.publish(_lost())

        assert handler_calls == ["failing", "succeeding"]
        assert "Error handling event TargetLostEvent" in caplog.text

    def test_base_class_subscribers_receive_every_event(self) -> None:
        bus = EventBus()
        everything: list[BirdEvent] = []
        lost: list[BirdEvent] = []
        bus.subscribe(BirdEvent, everything.append)
        bus.subscribe(TargetLostEvent, lost.append)

        stored = CacheStoredEvent(AgentId(2), ObjectId(5), 0.5)
        bus.publish(_lost())
        bus.publish(stored)

        assert everything == [_lost(), stored]
        assert lost == [_lost()]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        received: list[BirdEvent] = []
        bus.subscribe(TargetLostEvent, received.append)
        bus.unsubscribe(TargetLostEvent, received.append)
        # Unknown handlers and types are ignored.
        bus.unsubscribe(TargetLostEvent, received.append)
        bus.unsubscribe(CacheStoredEvent, received.append)

        bus.publish(_lost())

        assert received == []

    def test_handler_may_unsubscribe_during_dispatch(self) -> None:
        bus = EventBus()
        calls: list[str] = []

        def once(event: BirdEvent) -> None:
            calls.append("once")
            bus.unsubscribe(TargetLostEvent, once)

        bus.subscribe(TargetLostEvent, once)
        bus.publish(_lost())
        bus.publish(_lost())

        assert calls == ["once"]


def test_global_bus_publishes_batches_in_order() -> None:
    received: list[BirdEvent] = []
    subscribe_to_event(TargetLostEvent, received.append)

    publish_events([_lost(3), _lost(1), _lost(2)])
    unsubscribe_from_event(TargetLostEvent, received.append)
    publish_event(_lost(4))

    assert [e.agent_id for e in received] == [3, 1, 2]


def test_subscriber_receives_the_published_instance() -> None:
    handler = Mock()
    subscribe_to_event(CacheStoredEvent, handler)
    event = CacheStoredEvent(AgentId(1), ObjectId(2), 0.5)

    publish_event(event)
    publish_event(_lost())

    handler.assert_called_once_with(event)
