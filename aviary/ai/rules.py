"""
Species override rules.

An `OverrideRule` is a guarded transition: a list of conditions over the
agent's needs, traits and surroundings, and the action to commit if they all
hold. A `RuleSet` evaluates its rules top to bottom and the first rule that
both passes its conditions and can actually be carried out wins.

"Can be carried out" matters: a rule that demands a target-directed action
only commits if Discovery cached a non-zero candidate for that action. If it
did not, the rule falls through to the next one exactly as if its conditions
had failed. When every rule falls through, the set declines and generic
arbitration decides.

Conditions are small frozen dataclasses so rule tables are plain data. They
can be written in Python (see species_rules.py) or loaded from dicts/JSON
with `rule_from_dict` / `load_rules`, where each condition is tagged with a
``"type"`` key:

    {
        "name": "cache_when_sated",
        "action": "cache",
        "conditions": [
            {"type": "InputAbove", "input": "intelligence", "threshold": 0.6},
            {"type": "InternalStateBelow", "need": "hunger", "threshold": 0.3},
            {"type": "SeasonIs", "seasons": ["Fall"]}
        ]
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from aviary.ai.actions import ActionKind, BirdState, parse_action, parse_state
from aviary.ai.blackboard import Needs
from aviary.environment import Season
from aviary.types import ObjectId, WorldPos

if TYPE_CHECKING:
    from aviary.ai.utility import DecisionContext, Precondition

logger = logging.getLogger(__name__)

# Social signals a rule may broadcast when it fires.
SIGNALS = frozenset({"intimidate", "mobbing_call"})

# Where a self-directed state moves relative to.
ANCHORS = frozenset({"threat", "prey", "flock", "rival"})


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InternalStateAbove:
    need: str
    threshold: float

    def __call__(self, context: DecisionContext) -> bool:
        return context.agent.needs.get(self.need) > self.threshold


@dataclass(frozen=True, slots=True)
class InternalStateBelow:
    need: str
    threshold: float

    def __call__(self, context: DecisionContext) -> bool:
        return context.agent.needs.get(self.need) < self.threshold


@dataclass(frozen=True, slots=True)
class InputAbove:
    """Any named decision input (trait, weather, derived value) above a threshold."""

    input: str
    threshold: float

    def __call__(self, context: DecisionContext) -> bool:
        value = context.get_input(self.input)
        return value is not None and value > self.threshold


@dataclass(frozen=True, slots=True)
class InputBelow:
    input: str
    threshold: float

    def __call__(self, context: DecisionContext) -> bool:
        value = context.get_input(self.input)
        return value is not None and value < self.threshold


@dataclass(frozen=True, slots=True)
class TimeRange:
    """Hour of day in [start, end). Wraps past midnight when start > end."""

    start: float
    end: float

    def __call__(self, context: DecisionContext) -> bool:
        hour = context.time.hour
        if self.start <= self.end:
            return self.start <= hour < self.end
        return hour >= self.start or hour < self.end


@dataclass(frozen=True, slots=True)
class SeasonIs:
    seasons: frozenset[Season]

    def __call__(self, context: DecisionContext) -> bool:
        return context.season in self.seasons


@dataclass(frozen=True, slots=True)
class Flag:
    name: str
    expected: bool = True

    def __call__(self, context: DecisionContext) -> bool:
        return context.flag(self.name) == self.expected


@dataclass(frozen=True, slots=True)
class ActionAvailable:
    action: ActionKind

    def __call__(self, context: DecisionContext) -> bool:
        return context.agent.blackboard.has_candidate(self.action)


@dataclass(frozen=True, slots=True)
class ActionNotAvailable:
    action: ActionKind

    def __call__(self, context: DecisionContext) -> bool:
        return not context.agent.blackboard.has_candidate(self.action)


@dataclass(frozen=True, slots=True)
class CandidateTagged:
    """The cached source for ``action`` carries ``tag`` (e.g. "suet")."""

    action: ActionKind
    tag: str

    def __call__(self, context: DecisionContext) -> bool:
        return context.candidate_tagged(self.action, self.tag)


@dataclass(frozen=True, slots=True)
class PreferredFoodAvailable:
    """The cached Eat or HoverFeed source carries the species' preferred food."""

    def __call__(self, context: DecisionContext) -> bool:
        food = context.agent.species.preferred_food
        if food is None:
            return False
        return context.candidate_tagged(
            ActionKind.EAT, food
        ) or context.candidate_tagged(ActionKind.HOVER_FEED, food)


@dataclass(frozen=True, slots=True)
class FlockBelowPreferred:
    def __call__(self, context: DecisionContext) -> bool:
        return context.flock_size < context.agent.species.preferred_flock_size


@dataclass(frozen=True, slots=True)
class AnyOf:
    conditions: tuple[Precondition, ...]

    def __call__(self, context: DecisionContext) -> bool:
        return any(condition(context) for condition in self.conditions)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OverrideRule:
    """A guarded transition.

    Attributes:
        needs_target: The action must be present with a non-zero score in
            the candidate cache; its cached object becomes the target. When
            False the action is self-directed and commits without a target.
        state: Explicit state to enter instead of the action's own state.
        signal: Social signal broadcast when the rule fires.
        anchor: What a self-directed state moves relative to.
    """

    name: str
    conditions: tuple[Precondition, ...]
    action: ActionKind
    needs_target: bool = True
    state: BirdState | None = None
    signal: str | None = None
    anchor: str | None = None

    def __post_init__(self) -> None:
        if self.signal is not None and self.signal not in SIGNALS:
            raise ValueError(f"Unknown social signal: {self.signal!r}")
        if self.anchor is not None and self.anchor not in ANCHORS:
            raise ValueError(f"Unknown anchor: {self.anchor!r}")

    def conditions_hold(self, context: DecisionContext) -> bool:
        return all(condition(context) for condition in self.conditions)


@dataclass(frozen=True, slots=True)
class RuleDecision:
    rule: OverrideRule
    action: ActionKind
    target: ObjectId | None
    score: float
    state: BirdState | None = None
    signal: str | None = None
    anchor: WorldPos | None = None


def _anchor_position(anchor: str | None, context: DecisionContext) -> WorldPos | None:
    match anchor:
        case "threat":
            return context.threat_position
        case "prey":
            return context.prey_position
        case "flock":
            return context.flock_center
        case "rival":
            return context.rival_position
    return None


@dataclass
class RuleSet:
    """Ordered override rules for one species."""

    rules: list[OverrideRule] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    @property
    def names(self) -> list[str]:
        return [rule.name for rule in self.rules]

    def evaluate(self, context: DecisionContext) -> RuleDecision | None:
        """Return the first rule that passes and can commit, or None to decline."""
        board = context.agent.blackboard
        for rule in self.rules:
            if not rule.conditions_hold(context):
                continue
            target: ObjectId | None = None
            score = 1.0
            if rule.needs_target:
                candidate = board.candidates.get(rule.action)
                if candidate is None or candidate.score <= 0.0:
                    logger.debug(
                        f"Agent {context.agent.agent_id}: rule '{rule.name}' matched "
                        f"but {rule.action.value} is unavailable, falling through"
                    )
                    continue
                target = candidate.object_id
                score = candidate.score
            return RuleDecision(
                rule=rule,
                action=rule.action,
                target=target,
                score=score,
                state=rule.state,
                signal=rule.signal,
                anchor=_anchor_position(rule.anchor, context),
            )
        return None


def compose_rules(
    families: Mapping[str, Sequence[OverrideRule]], tags: Sequence[str]
) -> RuleSet:
    """Compose rule families in tag order.

    A later family replaces an earlier rule with the same name in its
    original position, so a species family can retune a shared rule
    without reordering the table.

    Raises:
        ValueError: On an unknown tag.
    """
    rule_by_name: dict[str, OverrideRule] = {}
    for tag in tags:
        family = families.get(tag)
        if family is None:
            raise ValueError(f"Unknown rule family: {tag}")
        for rule in family:
            rule_by_name[rule.name] = rule
    return RuleSet(list(rule_by_name.values()))


# ---------------------------------------------------------------------------
# Loading from plain data
# ---------------------------------------------------------------------------


def _check_need(name: str) -> str:
    if name != "fatigue" and name not in Needs.NAMES:
        raise ValueError(f"Unknown need: {name!r}")
    return name


def condition_from_dict(data: Mapping[str, Any]) -> Precondition:
    """Build one condition from its ``"type"``-tagged dict.

    Raises:
        ValueError: On an unknown condition type, need, action or season.
    """
    kind = data.get("type")
    match kind:
        case "InternalStateAbove":
            return InternalStateAbove(
                _check_need(data["need"]), float(data["threshold"])
            )
        case "InternalStateBelow":
            return InternalStateBelow(
                _check_need(data["need"]), float(data["threshold"])
            )
        case "InputAbove":
            return InputAbove(data["input"], float(data["threshold"]))
        case "InputBelow":
            return InputBelow(data["input"], float(data["threshold"]))
        case "TimeRange":
            return TimeRange(float(data["start"]), float(data["end"]))
        case "SeasonIs":
            try:
                seasons = frozenset(Season(s.title()) for s in data["seasons"])
            except ValueError:
                raise ValueError(f"Unknown season in {data['seasons']!r}") from None
            return SeasonIs(seasons)
        case "Flag":
            return Flag(data["name"], bool(data.get("expected", True)))
        case "ActionAvailable":
            return ActionAvailable(parse_action(data["action"]))
        case "ActionNotAvailable":
            return ActionNotAvailable(parse_action(data["action"]))
        case "CandidateTagged":
            return CandidateTagged(parse_action(data["action"]), data["tag"])
        case "PreferredFoodAvailable":
            return PreferredFoodAvailable()
        case "FlockBelowPreferred":
            return FlockBelowPreferred()
        case "AnyOf":
            return AnyOf(tuple(condition_from_dict(c) for c in data["conditions"]))
    raise ValueError(f"Unknown condition type: {kind!r}")


def rule_from_dict(data: Mapping[str, Any]) -> OverrideRule:
    state = data.get("state")
    return OverrideRule(
        name=data["name"],
        conditions=tuple(condition_from_dict(c) for c in data.get("conditions", ())),
        action=parse_action(data["action"]),
        needs_target=bool(data.get("needs_target", True)),
        state=parse_state(state) if state is not None else None,
        signal=data.get("signal"),
        anchor=data.get("anchor"),
    )


def load_rules(source: str | Iterable[Mapping[str, Any]]) -> RuleSet:
    """Build a rule set from a JSON array string or an iterable of dicts."""
    items = json.loads(source) if isinstance(source, str) else source
    return RuleSet([rule_from_dict(item) for item in items])
