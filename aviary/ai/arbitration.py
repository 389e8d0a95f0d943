"""Behavior Arbitration Pass.

Every arbitration period each agent picks what to do next:

1. The species override rule set gets the first say. The first rule whose
   conditions hold and whose action can actually be carried out commits.
2. If every rule declines, generic scoring ranks the cached candidates:
   ``candidate score x need factor x environmental modifier``. The current
   commitment competes with a persistence bonus so birds do not thrash
   between near-equal options.
3. If nothing clears the score floor the bird goes back to wandering.

Arbitration only writes the agent's own commitment and state. It never
claims or consumes objects (Execution does) and never touches other agents:
social signals are returned and applied by the scheduler after the barrier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from aviary import config
from aviary.ai.actions import DEFAULT_STATE, ActionKind, BirdState, policy_for
from aviary.ai.commitment import Commitment, CommitmentStatus
from aviary.ai.rules import RuleDecision, RuleSet
from aviary.ai.utility import (
    Consideration,
    DecisionContext,
    ResponseCurve,
    ResponseCurveType,
)
from aviary.events import BirdEvent, OverrideRuleFiredEvent, StateChangedEvent

if TYPE_CHECKING:
    from aviary.ai.blackboard import Agent
    from aviary.types import AgentId, ObjectId, SimTime, WorldPos

logger = logging.getLogger(__name__)

_LINEAR = ResponseCurve(ResponseCurveType.LINEAR)
_INVERSE = ResponseCurve(ResponseCurveType.INVERSE)
_ON = ResponseCurve(ResponseCurveType.STEP, threshold=0.5)

# What each kind satisfies. Kinds without an entry score on base utility.
NEED_CONSIDERATIONS: dict[ActionKind, list[Consideration]] = {
    ActionKind.EAT: [Consideration("hunger", _LINEAR)],
    ActionKind.HOVER_FEED: [Consideration("hunger", _LINEAR)],
    ActionKind.RETRIEVE: [Consideration("hunger", _LINEAR)],
    ActionKind.DRINK: [Consideration("thirst", _LINEAR)],
    ActionKind.REST: [Consideration("fatigue", _LINEAR)],
    ActionKind.BATHE: [Consideration("fatigue", _LINEAR)],
    ActionKind.ROOST: [Consideration("dusk_proximity", _LINEAR)],
    ActionKind.SHELTER: [Consideration("shelter_urgency", _LINEAR)],
    ActionKind.PERCH: [Consideration("fatigue", _LINEAR, weight=0.5)],
    ActionKind.CACHE: [
        Consideration("hunger", _INVERSE),
        Consideration("cache_space", _LINEAR),
    ],
    ActionKind.NEST: [
        Consideration("breeding_season", _ON),
        Consideration("energy", _LINEAR),
    ],
    ActionKind.COURT: [
        Consideration("breeding_season", _ON),
        Consideration("social_need", _LINEAR),
    ],
    ActionKind.PLAY: [
        Consideration("social_need", _LINEAR, weight=0.5),
        Consideration("energy", _LINEAR),
    ],
    ActionKind.EXPLORE: [Consideration("energy", _LINEAR, weight=2.0)],
    ActionKind.FORAGE: [Consideration("hunger", _LINEAR)],
    ActionKind.FLOCK: [Consideration("social_need", _LINEAR)],
    ActionKind.FOLLOW: [Consideration("social_need", _LINEAR)],
    ActionKind.CHALLENGE: [Consideration("territorial_stress", _LINEAR)],
}

# Kinds done out in the open, damped by bad weather.
EXPOSED_KINDS = frozenset(
    {
        ActionKind.EAT,
        ActionKind.DRINK,
        ActionKind.BATHE,
        ActionKind.PLAY,
        ActionKind.EXPLORE,
        ActionKind.PERCH,
        ActionKind.COURT,
        ActionKind.CACHE,
        ActionKind.RETRIEVE,
        ActionKind.HOVER_FEED,
    }
)

# Kinds a bird does whatever the light, so activity period does not damp them.
_RESTFUL_KINDS = frozenset(
    {ActionKind.ROOST, ActionKind.SHELTER, ActionKind.REST, ActionKind.FLEE}
)


def need_factor(kind: ActionKind, context: DecisionContext) -> float:
    factor = 1.0
    for consideration in NEED_CONSIDERATIONS.get(kind, ()):
        factor *= consideration.evaluate(context)
    return factor


def activity_factor(context: DecisionContext) -> float:
    """How active the species is at this time of day.

    Diurnal birds use the daylight factor directly; nocturnal birds invert
    it (fully active at night, barely active at noon).
    """
    daylight = context.time.daylight_factor()
    if not context.agent.species.is_nocturnal:
        return daylight
    if daylight >= 1.0:
        return config.OFF_PERIOD_ACTIVITY
    if daylight > config.OFF_PERIOD_ACTIVITY:
        return config.TWILIGHT_ACTIVITY
    return 1.0


def environmental_modifier(kind: ActionKind, context: DecisionContext) -> float:
    modifier = 1.0
    if kind not in _RESTFUL_KINDS:
        modifier *= activity_factor(context)
    if kind in EXPOSED_KINDS:
        modifier *= 1.0 - 0.5 * context.weather.weather_fear
    return modifier


@dataclass(slots=True)
class ScoredCandidate:
    """Debug snapshot of one candidate's scoring result."""

    action: ActionKind
    target: ObjectId | None
    final_score: float
    base_score: float = 0.0
    need_factor: float = 1.0
    environment: float = 1.0
    distance: float = 0.0
    persistence_bonus: float = 0.0

    @property
    def priority(self) -> int:
        return policy_for(self.action).priority

    def sort_key(self) -> tuple[float, int, float]:
        """Higher is better: score, then priority, then nearness."""
        return (self.final_score, self.priority, -self.distance)


def score_candidates(context: DecisionContext) -> list[ScoredCandidate]:
    """Score every cached candidate plus the current commitment's continuation."""
    board = context.agent.blackboard
    scored: list[ScoredCandidate] = []
    for kind, candidate in board.candidates.items():
        needs = need_factor(kind, context)
        env = environmental_modifier(kind, context)
        scored.append(
            ScoredCandidate(
                action=kind,
                target=candidate.object_id,
                final_score=candidate.score * needs * env,
                base_score=candidate.score,
                need_factor=needs,
                environment=env,
                distance=candidate.distance,
            )
        )

    commitment = board.commitment
    if commitment is not None and not commitment.is_complete:
        # Score the commitment against its live candidate where one exists.
        candidate = board.candidates.get(commitment.action)
        base = commitment.score
        distance = 0.0
        if candidate is not None and candidate.object_id == commitment.target:
            base = candidate.score
            distance = candidate.distance
        needs = need_factor(commitment.action, context)
        env = environmental_modifier(commitment.action, context)
        bonus = commitment.persistence_bonus
        scored.append(
            ScoredCandidate(
                action=commitment.action,
                target=commitment.target,
                final_score=base * needs * env + bonus,
                base_score=base,
                need_factor=needs,
                environment=env,
                distance=distance,
                persistence_bonus=bonus,
            )
        )
    return scored


def select_best(scored: list[ScoredCandidate]) -> ScoredCandidate | None:
    """Highest score, ties by action priority then proximity.

    Returns None when nothing clears ``ARBITRATION_SCORE_FLOOR``.
    """
    best: ScoredCandidate | None = None
    for entry in scored:
        if best is None or entry.sort_key() > best.sort_key():
            best = entry
    if best is None or best.final_score <= config.ARBITRATION_SCORE_FLOOR:
        return None
    return best


@dataclass(slots=True)
class SocialSignal:
    """A signal broadcast during arbitration, applied after the barrier."""

    agent_id: AgentId
    signal: str
    position: WorldPos
    dominance: float


@dataclass(slots=True)
class ArbitrationResult:
    agent_id: AgentId
    events: list[BirdEvent] = field(default_factory=list)
    signal: SocialSignal | None = None
    scored: list[ScoredCandidate] = field(default_factory=list)


class BehaviorArbiter:
    """Override-first arbitration for one agent at a time."""

    def __init__(self, rule_sets: dict[str, RuleSet]) -> None:
        # Species id -> composed rule set. Species missing here only use
        # generic scoring.
        self.rule_sets = rule_sets

    def arbitrate(self, context: DecisionContext, now: SimTime) -> ArbitrationResult:
        agent = context.agent
        result = ArbitrationResult(agent.agent_id)

        rule_set = self.rule_sets.get(agent.species.id)
        decision = rule_set.evaluate(context) if rule_set is not None else None
        if decision is not None:
            self._commit_override(agent, decision, now, result)
            return result

        result.scored = score_candidates(context)
        best = select_best(result.scored)
        if best is None:
            self._fall_back(agent, result)
            return result

        board = agent.blackboard
        if board.commitment is not None and board.commitment.same_decision(
            best.action, best.target
        ):
            return result  # Keep going.

        commitment = Commitment(
            action=best.action,
            target=best.target,
            source="generic",
            score=best.base_score,
            started_at=now,
        )
        self._replace(agent, commitment, "generic", result)
        return result

    def _commit_override(
        self,
        agent: Agent,
        decision: RuleDecision,
        now: SimTime,
        result: ArbitrationResult,
    ) -> None:
        board = agent.blackboard
        result.events.append(
            OverrideRuleFiredEvent(
                agent.agent_id, agent.species.id, decision.rule.name, decision.action
            )
        )
        if decision.signal is not None:
            result.signal = SocialSignal(
                agent.agent_id, decision.signal, agent.position, agent.traits.dominance
            )

        current = board.commitment
        if current is not None and current.same_decision(
            decision.action, decision.target
        ):
            current.rule_name = decision.rule.name
            current.anchor = decision.anchor
            return

        commitment = Commitment(
            action=decision.action,
            target=decision.target,
            source="override",
            score=decision.score,
            started_at=now,
            rule_name=decision.rule.name,
            anchor=decision.anchor,
            state_override=decision.state,
        )
        logger.debug(
            f"Agent {agent.agent_id} ({agent.species.id}): rule "
            f"'{decision.rule.name}' -> {decision.action.value}"
        )
        self._replace(agent, commitment, "override", result)

    def _replace(
        self,
        agent: Agent,
        commitment: Commitment,
        reason: str,
        result: ArbitrationResult,
    ) -> None:
        board = agent.blackboard
        if board.commitment is not None:
            board.commitment.status = CommitmentStatus.ABANDONED
        previous = board.state
        board.commitment = commitment
        board.state = commitment.current_state
        result.events.append(
            StateChangedEvent(
                agent.agent_id,
                agent.species.id,
                previous,
                board.state,
                action=commitment.action,
                target_id=commitment.target,
                reason=reason,
            )
        )

    def _fall_back(self, agent: Agent, result: ArbitrationResult) -> None:
        board = agent.blackboard
        if board.commitment is None and board.state is DEFAULT_STATE:
            return
        if board.commitment is not None:
            board.commitment.status = CommitmentStatus.ABANDONED
        previous = board.state
        board.commitment = None
        board.state = DEFAULT_STATE
        if previous is not BirdState.WANDERING:
            result.events.append(
                StateChangedEvent(
                    agent.agent_id,
                    agent.species.id,
                    previous,
                    DEFAULT_STATE,
                    reason="default",
                )
            )
