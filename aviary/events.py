"""Global event stream for telemetry, scoring and notification consumers.

The decision core never needs a reply from these consumers: a journal,
photo scorer or achievement tracker subscribes to the transitions it cares
about (entering a hunting, fleeing or caching state, a completed feed, a
lost target) without coupling to arbitration internals.

USE FOR:
- Notable state transitions and rule firings
- Interaction start/completion, target loss, rejected claims
- Social signals and cache bookkeeping that outside systems display

DO NOT USE FOR:
- Driving the core itself (phases talk to each other through agent state)
- Anything needing a return value or synchronous confirmation

The bus is fire-and-forget and synchronous. Passes never publish from inside
a phase: they return their events and the scheduler publishes them, in agent
order, after the phase barrier. That keeps the stream deterministic even when
a phase runs on a worker pool.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aviary.types import AgentId, ObjectId, WorldPos

if TYPE_CHECKING:
    from aviary.ai.actions import ActionKind, BirdState

logger = logging.getLogger(__name__)


@dataclass
class BirdEvent:
    """Base class for all decision-core events."""

    agent_id: AgentId


@dataclass
class AgentSpawnedEvent(BirdEvent):
    species: str
    position: WorldPos


@dataclass
class AgentDespawnedEvent(BirdEvent):
    species: str


@dataclass
class StateChangedEvent(BirdEvent):
    """Committed state changed.

    Attributes:
        reason: "override", "generic", "default", "arrived", "completed",
            "target_lost", "claim_rejected" or "despawn".
    """

    species: str
    previous_state: BirdState
    new_state: BirdState
    action: ActionKind | None = None
    target_id: ObjectId | None = None
    reason: str = ""


@dataclass
class OverrideRuleFiredEvent(BirdEvent):
    species: str
    rule_name: str
    action: ActionKind


@dataclass
class InteractionStartedEvent(BirdEvent):
    object_id: ObjectId
    action: ActionKind
    duration: float


@dataclass
class InteractionCompletedEvent(BirdEvent):
    """An interaction ended normally.

    Attributes:
        reason: "duration", "satisfied" or "exhausted".
    """

    action: ActionKind
    object_id: ObjectId | None
    reason: str


@dataclass
class TargetLostEvent(BirdEvent):
    object_id: ObjectId
    action: ActionKind | None


@dataclass
class ClaimRejectedEvent(BirdEvent):
    object_id: ObjectId
    action: ActionKind


@dataclass
class SocialSignalEvent(BirdEvent):
    """A bird broadcast a social signal ("intimidate", "mobbing_call")."""

    signal: str
    position: WorldPos


@dataclass
class HuntResolvedEvent(BirdEvent):
    success: bool


@dataclass
class CacheStoredEvent(BirdEvent):
    object_id: ObjectId
    food_amount: float


@dataclass
class CacheRetrievedEvent(BirdEvent):
    object_id: ObjectId
    food_amount: float


@dataclass
class CacheExpiredEvent(BirdEvent):
    object_id: ObjectId


class EventBus:
    """Simple event bus for publish/subscribe pattern."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable]] = {}

    def subscribe(self, event_type: type, handler: Callable) -> None:
        """Subscribe a handler to an event type."""
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers:
            with suppress(ValueError):
                self._handlers[event_type].remove(handler)

    def publish(self, event: BirdEvent) -> None:
        """Publish an event to handlers of its type and of ``BirdEvent``.

        Subscribing to ``BirdEvent`` receives the whole stream.
        """
        event_type = type(event)
        handler_types = [event_type]
        if event_type is not BirdEvent:
            handler_types.append(BirdEvent)
        for handler_type in handler_types:
            # Copy the handler list to allow safe subscribe/unsubscribe during dispatch
            for handler in list(self._handlers.get(handler_type, ())):
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Error handling event {event_type.__name__}")


# Global event bus instance
_global_event_bus = EventBus()


def subscribe_to_event(event_type: type, handler: Callable) -> None:
    """Subscribe to an event type globally."""
    _global_event_bus.subscribe(event_type, handler)


def unsubscribe_from_event(event_type: type, handler: Callable) -> None:
    """Unsubscribe from an event type globally."""
    _global_event_bus.unsubscribe(event_type, handler)


def publish_event(event: BirdEvent) -> None:
    """Publish an event globally."""
    _global_event_bus.publish(event)


def publish_events(events: list[BirdEvent]) -> None:
    """Publish a batch in order."""
    for event in events:
        _global_event_bus.publish(event)


def reset_event_bus_for_testing() -> None:
    """Reset the global event bus. Use only in tests."""
    global _global_event_bus
    _global_event_bus = EventBus()
