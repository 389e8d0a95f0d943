"""Per-agent state record shared by the three decision passes.

Each `Agent` exclusively owns one `Blackboard`. Discovery writes the
candidate map, Arbitration writes the commitment, Execution writes needs,
cache entries and habituation. No pass keeps a reference to another
agent's blackboard, and world objects are only ever referenced by
`ObjectId` and resolved through the registry on each use.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from aviary import config
from aviary.ai.actions import DEFAULT_STATE, ActionKind, BirdState
from aviary.types import AgentId, Heading, ObjectId, SimTime, WorldPos

if TYPE_CHECKING:
    from aviary.ai.commitment import Commitment
    from aviary.ai.species import SpeciesProfile


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(slots=True)
class Needs:
    """Internal drives, each clamped to [0, 1].

    Higher is more urgent for every need except ``energy``, where higher is
    better. ``fatigue`` is exposed as the derived ``1 - energy``.
    """

    NAMES: ClassVar[tuple[str, ...]] = (
        "hunger",
        "thirst",
        "energy",
        "fear",
        "social_need",
        "territorial_stress",
    )

    hunger: float = 0.3
    thirst: float = 0.3
    energy: float = 0.8
    fear: float = 0.0
    social_need: float = 0.3
    territorial_stress: float = 0.0

    def get(self, name: str) -> float:
        if name == "fatigue":
            return 1.0 - self.energy
        if name not in self.NAMES:
            raise KeyError(f"Unknown need: {name!r}")
        return getattr(self, name)

    def set(self, name: str, value: float) -> None:
        if name not in self.NAMES:
            raise KeyError(f"Unknown need: {name!r}")
        setattr(self, name, _clamp01(value))

    def adjust(self, name: str, delta: float) -> float:
        """Add ``delta`` to a need, clamp it and return the new value."""
        self.set(name, self.get(name) + delta)
        return self.get(name)

    def urgency(self, name: str) -> float:
        """How pressing a need is, 0.0 to 1.0 (energy is inverted)."""
        if name == "energy":
            return 1.0 - self.energy
        return self.get(name)


@dataclass(slots=True)
class Traits:
    intelligence: float = 0.5
    dominance: float = 0.5
    sociability: float = 0.5
    size: int = 2  # 1 (hummingbird) to 5 (hawk/owl)
    max_cache_capacity: int = 0
    hunting_success_rate: float = 0.0
    ground_preference: float = 0.3
    experience: float = 0.0


@dataclass(slots=True)
class CandidateAction:
    """Best discovered source for one action kind.

    ``order`` is the discovery order within the pass that produced it; it
    breaks ties after distance.
    """

    object_id: ObjectId
    score: float
    distance: float
    last_seen: SimTime
    order: int = 0


@dataclass(slots=True)
class CacheEntry:
    """Food a caching bird stored at a site object."""

    site_id: ObjectId
    position: WorldPos
    food_amount: float
    created_at: SimTime
    freshness: float = 1.0
    accessibility: float = 1.0
    decay_rate: float = config.CACHE_FRESHNESS_DECAY_RATE

    @property
    def quality(self) -> float:
        return self.food_amount * self.freshness

    def decay(self, delta_time: float) -> bool:
        """Lose freshness. Returns True once the entry has spoiled."""
        self.freshness = max(0.0, self.freshness - self.decay_rate * delta_time)
        return self.freshness <= 0.0

    def retrieval_score(self, distance: float) -> float:
        """Weighted appeal of going back for this entry, clamped to [0, 1]."""
        distance_factor = min(1.0, distance / config.CACHE_DISTANCE_SCALE)
        score = (
            self.food_amount * 0.4
            + self.freshness * 0.3
            + self.accessibility * 0.2
            - distance_factor * 0.1
        )
        return _clamp01(score)


@dataclass(slots=True)
class HabituationEntry:
    penalty: float
    cycles_left: int


@dataclass
class Blackboard:
    needs: Needs = field(default_factory=Needs)
    traits: Traits = field(default_factory=Traits)
    candidates: dict[ActionKind, CandidateAction] = field(default_factory=dict)
    cache_entries: list[CacheEntry] = field(default_factory=list)
    habituation: dict[tuple[ObjectId, ActionKind], HabituationEntry] = field(
        default_factory=dict
    )
    commitment: Commitment | None = None
    state: BirdState = DEFAULT_STATE
    # Object ids seen in the most recent discovery pass.
    observed: set[ObjectId] = field(default_factory=set)
    # Object this agent holds a slot on. Only Execution claims and releases.
    held: ObjectId | None = None

    @property
    def target(self) -> ObjectId | None:
        return self.commitment.target if self.commitment is not None else None

    @property
    def action(self) -> ActionKind | None:
        return self.commitment.action if self.commitment is not None else None

    def candidate_score(self, kind: ActionKind) -> float:
        candidate = self.candidates.get(kind)
        return candidate.score if candidate is not None else 0.0

    def has_candidate(self, kind: ActionKind) -> bool:
        return self.candidate_score(kind) > 0.0

    # -- Habituation --------------------------------------------------------

    def habituation_factor(self, object_id: ObjectId, kind: ActionKind) -> float:
        entry = self.habituation.get((object_id, kind))
        if entry is None:
            return 1.0
        remaining = entry.cycles_left / config.HABITUATION_CYCLES
        return max(0.0, 1.0 - entry.penalty * remaining)

    def habituate(self, object_id: ObjectId, kind: ActionKind, penalty: float) -> None:
        if penalty <= 0.0:
            return
        self.habituation[(object_id, kind)] = HabituationEntry(
            penalty, config.HABITUATION_CYCLES
        )

    def age_habituation(self) -> None:
        """Count down every habituation entry once; drop the expired ones."""
        for key in list(self.habituation):
            entry = self.habituation[key]
            entry.cycles_left -= 1
            if entry.cycles_left <= 0:
                del self.habituation[key]

    # -- Cache --------------------------------------------------------------

    @property
    def cache_free(self) -> int:
        return max(0, self.traits.max_cache_capacity - len(self.cache_entries))

    def best_retrieval_score(self, position: WorldPos) -> float:
        """Retrieval score of the most appealing entry from ``position``."""
        best = 0.0
        for entry in self.cache_entries:
            distance = math.hypot(
                entry.position[0] - position[0], entry.position[1] - position[1]
            )
            best = max(best, entry.retrieval_score(distance))
        return best

    def store_cache(self, entry: CacheEntry) -> bool:
        """Store an entry if capacity allows. Returns whether it was stored."""
        if self.cache_free <= 0:
            return False
        self.cache_entries.append(entry)
        return True

    def take_cache(self, site_id: ObjectId) -> CacheEntry | None:
        """Remove and return the best entry stored at ``site_id``."""
        at_site = [e for e in self.cache_entries if e.site_id == site_id]
        if not at_site:
            return None
        best = max(at_site, key=lambda e: e.quality)
        self.cache_entries.remove(best)
        return best


@dataclass(eq=False)
class Agent:
    """One simulated bird.

    Hashed by identity so it can live in a `SpatialHashGrid`.
    """

    agent_id: AgentId
    species: SpeciesProfile
    x: float
    y: float
    heading: Heading = (1.0, 0.0)
    blackboard: Blackboard = field(default_factory=Blackboard)

    @property
    def position(self) -> WorldPos:
        return (self.x, self.y)

    @property
    def needs(self) -> Needs:
        return self.blackboard.needs

    @property
    def traits(self) -> Traits:
        return self.blackboard.traits

    @property
    def state(self) -> BirdState:
        return self.blackboard.state

    def distance_to(self, position: WorldPos) -> float:
        return math.hypot(position[0] - self.x, position[1] - self.y)

    def move_toward(self, position: WorldPos, step: float) -> bool:
        """Step straight toward ``position``. Returns True if it was reached."""
        dx = position[0] - self.x
        dy = position[1] - self.y
        distance = math.hypot(dx, dy)
        if distance <= step or distance == 0.0:
            self.x, self.y = position
            return True
        self.heading = (dx / distance, dy / distance)
        self.x += self.heading[0] * step
        self.y += self.heading[1] * step
        return False

    def move_along_heading(self, step: float) -> None:
        self.x += self.heading[0] * step
        self.y += self.heading[1] * step

    def __repr__(self) -> str:
        return (
            f"Agent(id={self.agent_id}, species={self.species.name}, "
            f"state={self.state.value}, pos=({self.x:.1f}, {self.y:.1f}))"
        )
