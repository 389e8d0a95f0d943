from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from aviary.ai.blackboard import Agent, Blackboard, Needs, Traits
from aviary.ai.species import SpeciesProfile, get_species
from aviary.ai.utility import DecisionContext
from aviary.environment import Season, TimeState, WeatherState
from aviary.events import BirdEvent, subscribe_to_event
from aviary.types import AgentId, ObjectId
from aviary.world.population import PopulationSnapshot
from aviary.world.registry import ObjectRegistry
from aviary.world.smart_objects import (
    SmartObject,
    SmartObjectDefinition,
    get_definition,
)

# A representative day of year inside each season.
_SEASON_DAYS = {
    Season.SPRING: 120,
    Season.SUMMER: 200,
    Season.FALL: 300,
    Season.WINTER: 10,
}


def time_at(hour: float = 12.0, season: Season = Season.SPRING) -> TimeState:
    return TimeState(hour=hour, day_of_year=_SEASON_DAYS[season])


def make_agent(
    species: SpeciesProfile | str = "cardinal",
    x: float = 0.0,
    y: float = 0.0,
    agent_id: int = 1,
    *,
    traits: dict[str, Any] | None = None,
    **needs: float,
) -> Agent:
    """Build an agent with fixed (not sampled) needs and traits.

    Traits default to the species' size and cache capacity with neutral
    personality values; keyword arguments set individual needs.
    """
    profile = get_species(species) if isinstance(species, str) else species
    trait_values: dict[str, Any] = {
        "size": profile.size,
        "max_cache_capacity": profile.max_cache_capacity,
    }
    trait_values.update(traits or {})
    blackboard = Blackboard(needs=Needs(**needs), traits=Traits(**trait_values))
    return Agent(
        agent_id=AgentId(agent_id), species=profile, x=x, y=y, blackboard=blackboard
    )


def make_registry(
    placements: Iterable[tuple[SmartObjectDefinition | str, float, float]] = (),
    weather: WeatherState | None = None,
    season: Season = Season.SPRING,
) -> ObjectRegistry:
    """Registry with objects placed in order, ids starting at 1."""
    registry = ObjectRegistry(weather=weather or WeatherState(), season=season)
    for index, (definition, x, y) in enumerate(placements, start=1):
        if isinstance(definition, str):
            definition = get_definition(definition)
        registry.add(definition.create(ObjectId(index), x, y))
    return registry


def place(
    registry: ObjectRegistry,
    definition: SmartObjectDefinition | str,
    x: float,
    y: float,
    object_id: int,
) -> SmartObject:
    if isinstance(definition, str):
        definition = get_definition(definition)
    return registry.add(definition.create(ObjectId(object_id), x, y))


def make_context(
    agent: Agent,
    registry: ObjectRegistry | None = None,
    *,
    time: TimeState | None = None,
    weather: WeatherState | None = None,
    others: Sequence[Agent] = (),
) -> DecisionContext:
    weather = weather or WeatherState()
    registry = registry or make_registry(weather=weather)
    population = PopulationSnapshot.from_agents([agent, *others])
    return DecisionContext.build(
        agent, time or time_at(), weather, registry, population
    )


class EventRecorder:
    """Collects every event published on the global bus."""

    def __init__(self) -> None:
        self.events: list[BirdEvent] = []
        subscribe_to_event(BirdEvent, self.events.append)

    def of_type(self, event_type: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]
