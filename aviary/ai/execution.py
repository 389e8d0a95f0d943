"""State Execution.

Runs every tick for every agent. Drives the committed state: moves toward
the target, claims a slot on arrival, applies the interaction's need effects
and stock consumption, and resolves completion. Also ages needs and cache
entries.

Nothing here raises for world changes. A vanished or out-of-range target,
a full object or an empty feeder are ordinary transitions back to the
default state, reported as events.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from aviary import config
from aviary.ai.actions import DEFAULT_STATE, ActionKind
from aviary.ai.blackboard import Agent, CacheEntry
from aviary.ai.commitment import Commitment, CommitmentPhase, CommitmentStatus
from aviary.events import (
    BirdEvent,
    CacheExpiredEvent,
    CacheRetrievedEvent,
    CacheStoredEvent,
    ClaimRejectedEvent,
    HuntResolvedEvent,
    InteractionCompletedEvent,
    InteractionStartedEvent,
    StateChangedEvent,
    TargetLostEvent,
)
from aviary.util import rng

if TYPE_CHECKING:
    from aviary.types import DeltaTime, SimTime
    from aviary.world.registry import ObjectRegistry
    from aviary.world.smart_objects import SmartObject

logger = logging.getLogger(__name__)

# Per-second need drift while alive.
NEED_DRIFT: dict[str, float] = {
    "hunger": config.HUNGER_GROWTH_RATE,
    "thirst": config.THIRST_GROWTH_RATE,
    "energy": -config.ENERGY_DRAIN_RATE,
    "social_need": config.SOCIAL_NEED_GROWTH_RATE,
    "territorial_stress": -config.TERRITORIAL_STRESS_RELAX_RATE,
}

# Hunger removed by a successful hunt.
HUNT_MEAL = 0.6


def _stream(domain: str, agent: Agent) -> rng.RNGStream:
    # One stream per agent keeps draws independent of worker scheduling.
    return rng.get(f"{domain}.{agent.agent_id}")


def decay_needs(agent: Agent, delta_time: DeltaTime) -> None:
    needs = agent.needs
    for name, rate in NEED_DRIFT.items():
        needs.adjust(name, rate * delta_time)
    needs.set("fear", needs.fear * max(0.0, 1.0 - config.FEAR_RELAX_RATE * delta_time))


def age_cache(agent: Agent, delta_time: DeltaTime) -> list[BirdEvent]:
    """Lose freshness on every cache entry and drop the spoiled ones."""
    events: list[BirdEvent] = []
    board = agent.blackboard
    for entry in list(board.cache_entries):
        if entry.decay(delta_time):
            board.cache_entries.remove(entry)
            events.append(CacheExpiredEvent(agent.agent_id, entry.site_id))
    return events


def _speed(agent: Agent, base: float, delta_time: DeltaTime) -> float:
    return base * agent.species.speed_multiplier * delta_time


def wander(agent: Agent, delta_time: DeltaTime) -> None:
    """Drift along a slowly rotating heading."""
    stream = _stream("ai.wander", agent)
    angle = math.atan2(agent.heading[1], agent.heading[0])
    angle += stream.uniform(-1.0, 1.0) * config.WANDER_TURN_RATE * delta_time
    agent.heading = (math.cos(angle), math.sin(angle))
    agent.move_along_heading(_speed(agent, config.WANDER_SPEED, delta_time))


class StateExecutor:
    """Advances every agent's committed state by one tick."""

    def __init__(self, registry: ObjectRegistry) -> None:
        self.registry = registry

    def execute(
        self, agent: Agent, delta_time: DeltaTime, now: SimTime
    ) -> list[BirdEvent]:
        events: list[BirdEvent] = []
        decay_needs(agent, delta_time)
        events.extend(age_cache(agent, delta_time))

        board = agent.blackboard
        self._release_stale_slot(agent)

        commitment = board.commitment
        if commitment is None or commitment.is_complete:
            board.commitment = None
            board.state = DEFAULT_STATE
            wander(agent, delta_time)
            return events

        if commitment.is_self_directed:
            self._run_self_directed(agent, commitment, delta_time, now, events)
        else:
            self._run_targeted(agent, commitment, delta_time, now, events)
        return events

    # -- Slot bookkeeping ---------------------------------------------------

    def _release_stale_slot(self, agent: Agent) -> None:
        """Release a slot the current commitment no longer uses."""
        board = agent.blackboard
        if board.held is None:
            return
        commitment = board.commitment
        if (
            commitment is None
            or commitment.target != board.held
            or commitment.phase is not CommitmentPhase.INTERACTING
        ):
            self.registry.release(board.held, agent.agent_id)
            board.held = None

    def _revert(
        self,
        agent: Agent,
        commitment: Commitment,
        status: CommitmentStatus,
        reason: str,
        events: list[BirdEvent],
    ) -> None:
        board = agent.blackboard
        if board.held is not None:
            self.registry.release(board.held, agent.agent_id)
            board.held = None
        commitment.status = status
        previous = board.state
        board.commitment = None
        board.state = DEFAULT_STATE
        events.append(
            StateChangedEvent(
                agent.agent_id,
                agent.species.id,
                previous,
                DEFAULT_STATE,
                action=commitment.action,
                target_id=commitment.target,
                reason=reason,
            )
        )

    # -- Target-directed ----------------------------------------------------

    def _run_targeted(
        self,
        agent: Agent,
        commitment: Commitment,
        delta_time: DeltaTime,
        now: SimTime,
        events: list[BirdEvent],
    ) -> None:
        assert commitment.target is not None
        obj = self.registry.resolve(commitment.target)
        if obj is None or not self.registry.in_range(obj.object_id, agent.position):
            logger.debug(
                f"Agent {agent.agent_id} lost target {commitment.target} "
                f"({commitment.action.value})"
            )
            events.append(
                TargetLostEvent(agent.agent_id, commitment.target, commitment.action)
            )
            self._revert(
                agent, commitment, CommitmentStatus.FAILED, "target_lost", events
            )
            return

        if commitment.phase is CommitmentPhase.APPROACHING:
            self._approach(agent, commitment, obj, delta_time, events)
        else:
            self._interact(agent, commitment, obj, delta_time, now, events)

    def _approach(
        self,
        agent: Agent,
        commitment: Commitment,
        obj: SmartObject,
        delta_time: DeltaTime,
        events: list[BirdEvent],
    ) -> None:
        board = agent.blackboard
        target_pos = (obj.x, obj.y)
        if agent.distance_to(target_pos) > config.INTERACTION_RANGE:
            agent.move_toward(
                target_pos, _speed(agent, config.MOVE_TO_TARGET_SPEED, delta_time)
            )
            if agent.distance_to(target_pos) > config.INTERACTION_RANGE:
                return

        if not self.registry.claim(obj.object_id, agent.agent_id):
            events.append(
                ClaimRejectedEvent(agent.agent_id, obj.object_id, commitment.action)
            )
            self._revert(
                agent, commitment, CommitmentStatus.FAILED, "claim_rejected", events
            )
            return

        board.held = obj.object_id
        low, high = commitment.policy.duration_range
        duration = _stream("ai.execution", agent).uniform(low, high)
        commitment.begin_interaction(duration)
        previous = board.state
        board.state = commitment.interaction_state
        events.append(
            StateChangedEvent(
                agent.agent_id,
                agent.species.id,
                previous,
                board.state,
                action=commitment.action,
                target_id=obj.object_id,
                reason="arrived",
            )
        )
        events.append(
            InteractionStartedEvent(
                agent.agent_id, obj.object_id, commitment.action, duration
            )
        )

    def _interact(
        self,
        agent: Agent,
        commitment: Commitment,
        obj: SmartObject,
        delta_time: DeltaTime,
        now: SimTime,
        events: list[BirdEvent],
    ) -> None:
        policy = commitment.policy
        effect_scale = 1.0
        exhausted = False
        if policy.consumption > 0.0:
            wanted = policy.consumption * delta_time
            taken = self.registry.consume(obj.object_id, wanted)
            effect_scale = taken / wanted if wanted > 0.0 else 0.0
            exhausted = obj.is_exhausted

        for name, rate in policy.need_effects.items():
            agent.needs.adjust(name, rate * delta_time * effect_scale)
        commitment.elapsed += delta_time

        reason = self._completion_reason(agent, commitment)
        if reason is None and exhausted:
            reason = "exhausted"
        if reason is None:
            return

        self._complete_targeted(agent, commitment, obj, now, reason, events)

    def _complete_targeted(
        self,
        agent: Agent,
        commitment: Commitment,
        obj: SmartObject,
        now: SimTime,
        reason: str,
        events: list[BirdEvent],
    ) -> None:
        board = agent.blackboard
        policy = commitment.policy
        board.habituate(obj.object_id, commitment.action, policy.utility_decay)
        self.registry.start_cooldown(obj.object_id)

        if commitment.action is ActionKind.CACHE:
            entry = CacheEntry(
                site_id=obj.object_id,
                position=(obj.x, obj.y),
                food_amount=config.CACHE_FOOD_AMOUNT,
                created_at=now,
                accessibility=obj.definition.weather_resistance,
            )
            if board.store_cache(entry):
                events.append(
                    CacheStoredEvent(agent.agent_id, obj.object_id, entry.food_amount)
                )
        elif commitment.action is ActionKind.RETRIEVE:
            entry = board.take_cache(obj.object_id)
            if entry is not None:
                agent.needs.adjust(
                    "hunger", -config.RETRIEVE_HUNGER_RELIEF * entry.freshness
                )
                events.append(
                    CacheRetrievedEvent(
                        agent.agent_id, obj.object_id, entry.food_amount
                    )
                )

        events.append(
            InteractionCompletedEvent(
                agent.agent_id, commitment.action, obj.object_id, reason
            )
        )
        self._revert(agent, commitment, CommitmentStatus.COMPLETED, "completed", events)

    @staticmethod
    def _completion_reason(agent: Agent, commitment: Commitment) -> str | None:
        policy = commitment.policy
        if policy.completion_input is not None:
            value = agent.needs.get(policy.completion_input)
            if policy.completion_below and value < policy.completion_threshold:
                return "satisfied"
            if not policy.completion_below and value > policy.completion_threshold:
                return "satisfied"
        if commitment.elapsed >= commitment.duration:
            return "duration"
        return None

    # -- Self-directed ------------------------------------------------------

    def _run_self_directed(
        self,
        agent: Agent,
        commitment: Commitment,
        delta_time: DeltaTime,
        now: SimTime,
        events: list[BirdEvent],
    ) -> None:
        board = agent.blackboard
        if commitment.phase is CommitmentPhase.APPROACHING:
            low, high = commitment.policy.duration_range
            commitment.begin_interaction(
                _stream("ai.execution", agent).uniform(low, high)
            )
            board.state = commitment.interaction_state

        self._move_self_directed(agent, commitment, delta_time)
        for name, rate in commitment.policy.need_effects.items():
            agent.needs.adjust(name, rate * delta_time)
        commitment.elapsed += delta_time

        reason = self._completion_reason(agent, commitment)
        if reason is None:
            return

        if commitment.action is ActionKind.HUNT:
            success = (
                _stream("ai.hunt", agent).random() < agent.traits.hunting_success_rate
            )
            if success:
                agent.needs.adjust("hunger", -HUNT_MEAL)
            agent.traits.experience = min(1.0, agent.traits.experience + 0.05)
            events.append(HuntResolvedEvent(agent.agent_id, success))

        events.append(
            InteractionCompletedEvent(agent.agent_id, commitment.action, None, reason)
        )
        self._revert(agent, commitment, CommitmentStatus.COMPLETED, "completed", events)

    def _move_self_directed(
        self, agent: Agent, commitment: Commitment, delta_time: DeltaTime
    ) -> None:
        anchor = commitment.anchor
        match commitment.action:
            case ActionKind.FLEE:
                if anchor is not None and agent.distance_to(anchor) > 0.0:
                    dx = agent.x - anchor[0]
                    dy = agent.y - anchor[1]
                    length = math.hypot(dx, dy)
                    agent.heading = (dx / length, dy / length)
                agent.move_along_heading(_speed(agent, config.FLEE_SPEED, delta_time))
            case ActionKind.SOAR | ActionKind.PATROL:
                speed = (
                    config.SOAR_SPEED
                    if commitment.action is ActionKind.SOAR
                    else config.PATROL_SPEED
                )
                # Wide circles over the territory.
                angle = math.atan2(agent.heading[1], agent.heading[0])
                angle += config.WANDER_TURN_RATE * delta_time
                agent.heading = (math.cos(angle), math.sin(angle))
                agent.move_along_heading(_speed(agent, speed, delta_time))
            case (
                ActionKind.HUNT
                | ActionKind.FLOCK
                | ActionKind.FOLLOW
                | ActionKind.CHALLENGE
            ):
                if (
                    anchor is not None
                    and agent.distance_to(anchor) > config.INTERACTION_RANGE
                ):
                    agent.move_toward(
                        anchor, _speed(agent, config.MOVE_TO_TARGET_SPEED, delta_time)
                    )
            case ActionKind.FORAGE:
                wander(agent, delta_time * 0.3)
            case _:
                pass  # Resting or roosting in place.
