"""Action kinds, behaviour states and the fixed policy data of each kind.

An `ActionKind` is what a bird wants to do ("eat"); a `BirdState` is what it
is observably doing right now ("moving to target", "eating"). Every kind maps
to one interaction state through its `ActionPolicy`, which also carries the
tuning Execution and Arbitration need: priority rank for tie-breaks,
habituation penalty, how long the interaction is held, which needs change
while it runs and when it counts as satisfied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from aviary.types import FloatRange


class ActionKind(Enum):
    EAT = "eat"
    DRINK = "drink"
    BATHE = "bathe"
    PERCH = "perch"
    PLAY = "play"
    EXPLORE = "explore"
    NEST = "nest"
    ROOST = "roost"
    SHELTER = "shelter"
    COURT = "court"
    FOLLOW = "follow"
    CHALLENGE = "challenge"
    FLOCK = "flock"
    FORAGE = "forage"
    CACHE = "cache"
    RETRIEVE = "retrieve"
    HOVER_FEED = "hover_feed"
    HUNT = "hunt"
    PATROL = "patrol"
    SOAR = "soar"
    REST = "rest"
    FLEE = "flee"


class BirdState(Enum):
    WANDERING = "wandering"
    MOVING_TO_TARGET = "moving_to_target"
    EATING = "eating"
    DRINKING = "drinking"
    BATHING = "bathing"
    PERCHING = "perching"
    PLAYING = "playing"
    EXPLORING = "exploring"
    NESTING = "nesting"
    ROOSTING = "roosting"
    SHELTERING = "sheltering"
    COURTING = "courting"
    FOLLOWING = "following"
    TERRITORIAL = "territorial"
    FLOCKING = "flocking"
    FORAGING = "foraging"
    CACHING = "caching"
    RETRIEVING = "retrieving"
    HOVER_FEEDING = "hover_feeding"
    HUNTING = "hunting"
    PATROLLING = "patrolling"
    SOARING = "soaring"
    RESTING = "resting"
    FLEEING = "fleeing"


DEFAULT_STATE = BirdState.WANDERING


@dataclass(frozen=True, slots=True)
class ActionPolicy:
    """Fixed tuning for one action kind.

    Attributes:
        priority: Tie-break rank; higher wins. Survival kinds rank above
            social and exploratory ones.
        utility_decay: Habituation penalty recorded against the source after
            a completed interaction.
        duration_range: Min/max seconds the interaction is held.
        need_effects: Per-second change applied to named needs while the
            interaction runs.
        completion_input: Need that ends the interaction early once it
            crosses ``completion_threshold``.
        completion_below: True if the need must fall below the threshold,
            False if it must rise above it.
        consumption: Stock taken from the object per second.
        self_directed: Never targets a smart object.
    """

    kind: ActionKind
    state: BirdState
    priority: int
    utility_decay: float
    duration_range: FloatRange
    need_effects: dict[str, float] = field(default_factory=dict)
    completion_input: str | None = None
    completion_threshold: float = 0.0
    completion_below: bool = True
    consumption: float = 0.0
    self_directed: bool = False


_POLICIES: tuple[ActionPolicy, ...] = (
    # Survival
    ActionPolicy(
        ActionKind.FLEE, BirdState.FLEEING, 100, 0.0, (2.0, 4.0),
        {"energy": -0.05}, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.SHELTER, BirdState.SHELTERING, 90, 0.1, (10.0, 25.0),
        {"fear": -0.3, "energy": 0.1},
    ),
    ActionPolicy(
        ActionKind.EAT, BirdState.EATING, 80, 0.5, (3.0, 8.0),
        {"hunger": -0.5}, "hunger", 0.1, consumption=0.05,
    ),
    ActionPolicy(
        ActionKind.DRINK, BirdState.DRINKING, 78, 0.5, (2.0, 5.0),
        {"thirst": -0.6}, "thirst", 0.1, consumption=0.02,
    ),
    ActionPolicy(
        ActionKind.HOVER_FEED, BirdState.HOVER_FEEDING, 76, 0.5, (2.0, 5.0),
        {"hunger": -0.6, "energy": 0.2}, "hunger", 0.1, consumption=0.05,
    ),
    ActionPolicy(
        ActionKind.HUNT, BirdState.HUNTING, 74, 0.0, (4.0, 8.0),
        {"energy": -0.08}, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.RETRIEVE, BirdState.RETRIEVING, 72, 0.3, (2.0, 4.0),
        {"energy": -0.02},
    ),
    ActionPolicy(
        ActionKind.REST, BirdState.RESTING, 70, 0.0, (8.0, 16.0),
        {"energy": 0.4}, "energy", 0.7, completion_below=False, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.ROOST, BirdState.ROOSTING, 68, 0.1, (20.0, 40.0),
        {"energy": 0.3, "fear": -0.1}, "energy", 0.95, completion_below=False,
    ),
    # Maintenance
    ActionPolicy(
        ActionKind.FORAGE, BirdState.FORAGING, 60, 0.0, (5.0, 12.0),
        {"hunger": -0.2, "energy": -0.03}, "hunger", 0.2, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.CACHE, BirdState.CACHING, 55, 0.4, (3.0, 6.0),
        {"energy": -0.05},
    ),
    ActionPolicy(
        ActionKind.BATHE, BirdState.BATHING, 50, 0.6, (4.0, 10.0),
        {"energy": 0.3, "thirst": -0.1},
    ),
    ActionPolicy(
        ActionKind.NEST, BirdState.NESTING, 45, 0.2, (10.0, 20.0),
        {"energy": -0.05, "territorial_stress": -0.1},
    ),
    # Social
    ActionPolicy(
        ActionKind.CHALLENGE, BirdState.TERRITORIAL, 42, 0.0, (3.0, 6.0),
        {"territorial_stress": -0.4, "energy": -0.05}, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.COURT, BirdState.COURTING, 40, 0.4, (6.0, 12.0),
        {"social_need": -0.3, "energy": -0.05},
    ),
    ActionPolicy(
        ActionKind.FLOCK, BirdState.FLOCKING, 35, 0.0, (8.0, 16.0),
        {"social_need": -0.25, "fear": -0.1}, "social_need", 0.05,
        self_directed=True,
    ),
    ActionPolicy(
        ActionKind.FOLLOW, BirdState.FOLLOWING, 32, 0.0, (5.0, 12.0),
        {"social_need": -0.2}, "social_need", 0.05, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.PATROL, BirdState.PATROLLING, 30, 0.0, (10.0, 20.0),
        {"energy": -0.03, "territorial_stress": -0.1}, self_directed=True,
    ),
    ActionPolicy(
        ActionKind.SOAR, BirdState.SOARING, 28, 0.0, (10.0, 20.0),
        {"energy": -0.01}, self_directed=True,
    ),
    # Exploratory
    ActionPolicy(
        ActionKind.PERCH, BirdState.PERCHING, 25, 0.4, (5.0, 15.0),
        {"energy": 0.1, "fear": -0.05},
    ),
    ActionPolicy(
        ActionKind.PLAY, BirdState.PLAYING, 15, 0.6, (4.0, 10.0),
        {"social_need": -0.2, "energy": -0.05},
    ),
    ActionPolicy(
        ActionKind.EXPLORE, BirdState.EXPLORING, 10, 0.7, (5.0, 12.0),
        {"energy": -0.02},
    ),
)

ACTION_POLICIES: dict[ActionKind, ActionPolicy] = {p.kind: p for p in _POLICIES}

# Kinds a smart object may offer.
OBJECT_ACTIONS: frozenset[ActionKind] = frozenset(
    p.kind for p in _POLICIES if not p.self_directed
)


def policy_for(kind: ActionKind) -> ActionPolicy:
    return ACTION_POLICIES[kind]


def parse_action(name: str) -> ActionKind:
    """Look up an action kind by value or member name ("hover_feed", "HoverFeed").

    Raises:
        ValueError: If the name matches no kind.
    """
    normalized = name.strip().replace("-", "_")
    # Accept CamelCase names as written in species data files.
    if (
        normalized
        and not normalized.islower()
        and not normalized.isupper()
        and "_" not in normalized
    ):
        normalized = "".join(
            f"_{ch.lower()}" if ch.isupper() and i else ch.lower()
            for i, ch in enumerate(normalized)
        )
    try:
        return ActionKind(normalized.lower())
    except ValueError:
        raise ValueError(f"Unknown action kind: {name!r}") from None


def parse_state(name: str) -> BirdState:
    try:
        return BirdState(name.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown bird state: {name!r}") from None
