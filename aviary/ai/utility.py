"""Utility scoring primitives and the per-agent decision context."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

from aviary import config
from aviary.ai.actions import ActionKind
from aviary.environment import Season
from aviary.types import WorldPos

if TYPE_CHECKING:
    from aviary.ai.blackboard import Agent
    from aviary.environment import TimeSource, WeatherProvider
    from aviary.world.population import PopulationSnapshot
    from aviary.world.registry import ObjectRegistry

# Callable signature shared by rule conditions and generic preconditions.
Precondition: TypeAlias = "Callable[[DecisionContext], bool]"


def _clamp(value: float, min_value: float = 0.0, max_value: float = 1.0) -> float:
    return max(min_value, min(max_value, value))


class ResponseCurveType(Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    INVERSE = "inverse"
    STEP = "step"
    BELL = "bell"


@dataclass(slots=True)
class ResponseCurve:
    curve_type: ResponseCurveType
    exponent: float = 2.0
    threshold: float = 0.5
    peak: float = 0.5
    width: float = 0.5

    def evaluate(self, value: float) -> float:
        value = _clamp(value)
        match self.curve_type:
            case ResponseCurveType.LINEAR:
                return value
            case ResponseCurveType.EXPONENTIAL:
                return value**self.exponent
            case ResponseCurveType.INVERSE:
                return 1.0 - value
            case ResponseCurveType.STEP:
                return 1.0 if value >= self.threshold else 0.0
            case ResponseCurveType.BELL:
                if self.width <= 0:
                    return 0.0
                return _clamp(1.0 - abs(value - self.peak) / self.width)
        return 0.0


@dataclass(slots=True)
class Consideration:
    input_key: str
    curve: ResponseCurve
    weight: float = 1.0

    def evaluate(self, context: DecisionContext) -> float:
        value = context.get_input(self.input_key)
        if value is None:
            return 0.0
        return self.curve.evaluate(value) ** self.weight


# Food abundance is read through the season: lean winters, rich summers.
_SEASONAL_FOOD_FACTOR = {
    Season.SPRING: 1.2,
    Season.SUMMER: 1.2,
    Season.FALL: 1.0,
    Season.WINTER: 0.7,
}


@dataclass(slots=True)
class DecisionContext:
    """Everything rules and scoring may read for one agent in one pass.

    Built once per agent per arbitration pass from the agent's own
    blackboard plus read-only world views. Social facts come from the
    population snapshot taken at phase start.
    """

    agent: Agent
    time: TimeSource
    weather: WeatherProvider
    registry: ObjectRegistry
    nearby_agents: int = 0
    flock_size: int = 0
    flock_center: WorldPos | None = None
    threat_position: WorldPos | None = None
    prey_position: WorldPos | None = None
    rival_position: WorldPos | None = None
    less_dominant_nearby: int = 0
    flags: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        agent: Agent,
        time: TimeSource,
        weather: WeatherProvider,
        registry: ObjectRegistry,
        population: PopulationSnapshot,
    ) -> DecisionContext:
        species = agent.species
        position = agent.position
        perception = species.perception_range
        nearby = population.nearby(agent.agent_id, position, config.SIGNAL_RADIUS)
        flock = population.flock(agent.agent_id, species.id, position)
        predators = [
            p
            for p in population.predators(agent.agent_id, position, perception)
            if p.bird.size > agent.traits.size
        ]
        prey = (
            population.prey(agent.agent_id, position, agent.traits.size, perception)
            if species.is_predator
            else []
        )
        rivals = population.rivals(agent.agent_id, species.id, position, perception)
        context = cls(
            agent=agent,
            time=time,
            weather=weather,
            registry=registry,
            nearby_agents=len(nearby),
            flock_size=len(flock),
            flock_center=population.flock_center(
                agent.agent_id, species.id, position, perception
            ),
            threat_position=predators[0].bird.position if predators else None,
            prey_position=prey[0].bird.position if prey else None,
            rival_position=rivals[0].bird.position if rivals else None,
            less_dominant_nearby=sum(
                1 for p in nearby if p.bird.dominance < agent.traits.dominance
            ),
        )
        context.flags = {
            "breeding_season": time.is_breeding_season,
            "migration_period": time.is_migration_period,
            "predator_nearby": bool(predators),
            "rival_nearby": bool(rivals),
            "prey_nearby": bool(prey),
            "good_soaring": (
                weather.wind_strength > 0.3 or weather.thermal_strength > 0.4
            ),
            "flockmates_nearby": context.flock_center is not None,
            "abundant_feeder": context.is_abundant(ActionKind.EAT),
        }
        return context

    def flag(self, name: str) -> bool:
        return self.flags.get(name, False)

    @property
    def season(self) -> Season:
        return self.time.season

    def is_abundant(self, kind: ActionKind) -> bool:
        """Whether the cached source for ``kind`` is well stocked and quiet."""
        candidate = self.agent.blackboard.candidates.get(kind)
        if candidate is None:
            return False
        obj = self.registry.resolve(candidate.object_id)
        if obj is None:
            return False
        return obj.stock_fraction > 0.8 and obj.occupancy_fraction < 0.3

    def candidate_tagged(self, kind: ActionKind, tag: str) -> bool:
        candidate = self.agent.blackboard.candidates.get(kind)
        if candidate is None or candidate.score <= 0.0:
            return False
        obj = self.registry.resolve(candidate.object_id)
        return obj is not None and tag in obj.tags

    def food_abundance(self) -> float:
        board = self.agent.blackboard
        best = max(
            board.candidate_score(ActionKind.EAT),
            board.candidate_score(ActionKind.HOVER_FEED),
        )
        return _clamp(best * _SEASONAL_FOOD_FACTOR[self.season])

    def wind_fear(self) -> float:
        """Small birds get blown about; the smaller, the more it scares them."""
        size = self.agent.traits.size
        wind = self.weather.wind_strength
        if wind <= 0.5 or size >= 3:
            return 0.0
        return wind * (4 - size) * 0.2

    def get_input(self, key: str) -> float | None:
        needs = self.agent.needs
        traits = self.agent.traits
        board = self.agent.blackboard
        match key:
            case "hunger" | "thirst" | "energy" | "fear" | "fatigue":
                return needs.get(key)
            case "social_need" | "territorial_stress":
                return needs.get(key)
            case "intelligence":
                return traits.intelligence
            case "dominance":
                return traits.dominance
            case "sociability":
                return traits.sociability
            case "ground_preference":
                return traits.ground_preference
            case "size":
                return float(traits.size)
            case "weather_fear":
                return self.weather.weather_fear
            case "shelter_urgency":
                return self.weather.shelter_urgency
            case "wind_strength":
                return self.weather.wind_strength
            case "thermal_strength":
                return self.weather.thermal_strength
            case "temperature":
                return self.weather.temperature
            case "wind_fear":
                return self.wind_fear()
            case "combined_fear":
                return needs.fear + self.weather.weather_fear
            case "breeding_season":
                return 1.0 if self.time.is_breeding_season else 0.0
            case "hour":
                return self.time.hour
            case "daylight":
                return self.time.daylight_factor()
            case "dusk_proximity":
                offset = abs(self.time.hour - config.DUSK_HOUR)
                return _clamp(1.0 - offset / config.ROOST_WINDOW_HOURS)
            case "food_abundance":
                return self.food_abundance()
            case "cache_count":
                return float(len(board.cache_entries))
            case "cache_free":
                return float(board.cache_free)
            case "cache_space":
                # Free fraction of capacity; 0 for birds that cannot cache.
                capacity = traits.max_cache_capacity
                return board.cache_free / capacity if capacity else 0.0
            case "best_cache_quality":
                return board.best_retrieval_score(self.agent.position)
            case "nearby_agents":
                return float(self.nearby_agents)
            case "flock_size":
                return float(self.flock_size)
        return None
