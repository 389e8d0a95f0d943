"""Read-only population snapshots for social and predator queries.

Arbitration needs to know about other birds (is a hawk nearby? how big is
my flock?) but must never read another agent's state while a pass is
writing it. The scheduler takes a `PopulationSnapshot` at the start of a
phase; every agent's pass queries that frozen copy instead of live agents.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aviary import config
from aviary.ai.actions import BirdState
from aviary.types import AgentId, WorldPos
from aviary.util.spatial import SpatialHashGrid

if TYPE_CHECKING:
    from aviary.ai.blackboard import Agent


@dataclass(frozen=True, slots=True)
class BirdSnapshot:
    agent_id: AgentId
    species_id: str
    x: float
    y: float
    size: int
    dominance: float
    is_predator: bool
    state: BirdState

    @property
    def position(self) -> WorldPos:
        return (self.x, self.y)

    @classmethod
    def of(cls, agent: Agent) -> BirdSnapshot:
        return cls(
            agent_id=agent.agent_id,
            species_id=agent.species.id,
            x=agent.x,
            y=agent.y,
            size=agent.traits.size,
            dominance=agent.traits.dominance,
            is_predator=agent.species.is_predator,
            state=agent.state,
        )


@dataclass(frozen=True, slots=True)
class PerceivedBird:
    """Another bird within range of the querying agent.

    Attributes:
        distance: Euclidean distance from the querying agent.
    """

    bird: BirdSnapshot
    distance: float


class PopulationSnapshot:
    """Frozen positions and key traits of every agent at phase start."""

    def __init__(self, snapshots: Iterable[BirdSnapshot]) -> None:
        self._birds: dict[AgentId, BirdSnapshot] = {}
        self._grid: SpatialHashGrid[BirdSnapshot] = SpatialHashGrid(
            config.SPATIAL_CELL_SIZE
        )
        for bird in snapshots:
            self._birds[bird.agent_id] = bird
            self._grid.add(bird)

    @classmethod
    def from_agents(cls, agents: Iterable[Agent]) -> PopulationSnapshot:
        return cls(BirdSnapshot.of(agent) for agent in agents)

    def __len__(self) -> int:
        return len(self._birds)

    def get(self, agent_id: AgentId) -> BirdSnapshot | None:
        return self._birds.get(agent_id)

    def nearby(
        self, agent_id: AgentId, position: WorldPos, radius: float
    ) -> list[PerceivedBird]:
        """Other birds within ``radius``, closest first (ties by id)."""
        x, y = position
        found = [
            PerceivedBird(bird, math.hypot(bird.x - x, bird.y - y))
            for bird in self._grid.get_in_radius(x, y, radius)
            if bird.agent_id != agent_id
        ]
        found.sort(key=lambda p: (p.distance, p.bird.agent_id))
        return found

    def smaller(
        self, agent_id: AgentId, position: WorldPos, size: int, radius: float
    ) -> list[PerceivedBird]:
        nearby = self.nearby(agent_id, position, radius)
        return [p for p in nearby if p.bird.size < size]

    def larger(
        self, agent_id: AgentId, position: WorldPos, size: int, radius: float
    ) -> list[PerceivedBird]:
        nearby = self.nearby(agent_id, position, radius)
        return [p for p in nearby if p.bird.size > size]

    def predators(
        self, agent_id: AgentId, position: WorldPos, radius: float
    ) -> list[PerceivedBird]:
        nearby = self.nearby(agent_id, position, radius)
        return [p for p in nearby if p.bird.is_predator]

    def rivals(
        self, agent_id: AgentId, species_id: str, position: WorldPos, radius: float
    ) -> list[PerceivedBird]:
        """Same-species birds in range. For predators these are territorial rivals."""
        return [
            p
            for p in self.nearby(agent_id, position, radius)
            if p.bird.species_id == species_id
        ]

    def prey(
        self, agent_id: AgentId, position: WorldPos, size: int, radius: float
    ) -> list[PerceivedBird]:
        """Smaller non-predators, the birds a raptor can hunt."""
        return [
            p
            for p in self.smaller(agent_id, position, size, radius)
            if not p.bird.is_predator
        ]

    def flock(
        self, agent_id: AgentId, species_id: str, position: WorldPos
    ) -> list[PerceivedBird]:
        return self.rivals(agent_id, species_id, position, config.FLOCK_RADIUS)

    def flock_center(
        self, agent_id: AgentId, species_id: str, position: WorldPos, radius: float
    ) -> WorldPos | None:
        """Centroid of same-species birds in ``radius``, or None if alone."""
        mates = self.rivals(agent_id, species_id, position, radius)
        if not mates:
            return None
        return (
            sum(p.bird.x for p in mates) / len(mates),
            sum(p.bird.y for p in mates) / len(mates),
        )
