"""Smart objects: world entities that advertise action utility to birds.

A `SmartObjectDefinition` is catalog data (what a "suet feeder" offers, how
many birds fit on it, how it reacts to seasons and weather). A `SmartObject`
is one placed instance with live occupancy, stock and cooldown. Effective
utility is always computed on demand from the live values; nothing here is
cached between queries.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from aviary import config
from aviary.ai.actions import OBJECT_ACTIONS, ActionKind, parse_action
from aviary.environment import Season
from aviary.types import AgentId, ObjectId


@dataclass(frozen=True)
class SmartObjectDefinition:
    """Catalog entry for a kind of smart object.

    Attributes:
        capacity: Max simultaneous users, ``None`` for unlimited.
        max_stock: Finite food/water stock, ``None`` for inexhaustible.
        cooldown: Seconds the object is unavailable after each use.
        weather_resistance: 0.0 (fully exposed) to 1.0 (unaffected by weather).
    """

    id: str
    actions: frozenset[ActionKind]
    base_utility: float
    detection_range: float = 200.0
    species_multipliers: Mapping[str, float] = field(default_factory=dict)
    seasonal_multipliers: Mapping[Season, float] = field(default_factory=dict)
    capacity: int | None = None
    max_stock: float | None = None
    regeneration_rate: float = 0.0
    cooldown: float = 0.0
    weather_resistance: float = 0.5
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        for action in self.actions:
            if action not in OBJECT_ACTIONS:
                raise ValueError(
                    f"Object {self.id!r} cannot offer self-directed action "
                    f"{action.value!r}"
                )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SmartObjectDefinition:
        """Build a definition from plain data (e.g. a parsed JSON catalog).

        Raises:
            ValueError: On unknown action or season names.
        """
        seasons = {
            Season(name.title()): float(mult)
            for name, mult in data.get("seasonal_multipliers", {}).items()
        }
        return cls(
            id=data["id"],
            actions=frozenset(parse_action(a) for a in data["actions"]),
            base_utility=float(data["base_utility"]),
            detection_range=float(data.get("detection_range", 200.0)),
            species_multipliers=dict(data.get("species_multipliers", {})),
            seasonal_multipliers=seasons,
            capacity=data.get("capacity"),
            max_stock=data.get("max_stock"),
            regeneration_rate=float(data.get("regeneration_rate", 0.0)),
            cooldown=float(data.get("cooldown", 0.0)),
            weather_resistance=float(data.get("weather_resistance", 0.5)),
            tags=frozenset(data.get("tags", ())),
        )

    def create(self, object_id: ObjectId, x: float, y: float) -> SmartObject:
        return SmartObject(
            object_id=object_id,
            definition=self,
            x=x,
            y=y,
            stock=self.max_stock,
        )


@dataclass(eq=False)
class SmartObject:
    """A placed smart object with live usage state.

    Hashed by identity so it can live in a `SpatialHashGrid`. ``lock``
    serializes claim, release and consume on this one object.
    """

    object_id: ObjectId
    definition: SmartObjectDefinition
    x: float
    y: float
    stock: float | None = None
    cooldown_remaining: float = 0.0
    occupants: set[AgentId] = field(default_factory=set)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def actions(self) -> frozenset[ActionKind]:
        return self.definition.actions

    @property
    def detection_range(self) -> float:
        return self.definition.detection_range

    @property
    def tags(self) -> frozenset[str]:
        return self.definition.tags

    @property
    def capacity(self) -> int | None:
        return self.definition.capacity

    @property
    def is_full(self) -> bool:
        capacity = self.definition.capacity
        return capacity is not None and len(self.occupants) >= capacity

    @property
    def is_exhausted(self) -> bool:
        return self.stock is not None and self.stock <= 0.0

    @property
    def on_cooldown(self) -> bool:
        return self.cooldown_remaining > 0.0

    @property
    def stock_fraction(self) -> float:
        if self.stock is None or not self.definition.max_stock:
            return 1.0
        return self.stock / self.definition.max_stock

    @property
    def occupancy_fraction(self) -> float:
        capacity = self.definition.capacity
        if not capacity:
            return 0.0
        return len(self.occupants) / capacity

    def availability(self, agent_id: AgentId | None = None) -> float:
        """0.0 if unusable, otherwise the crowding factor.

        An agent already holding a slot is never locked out by the capacity
        it is itself part of, and does not count toward its own crowding.
        """
        if self.is_exhausted or self.on_cooldown:
            return 0.0
        others = len(self.occupants - {agent_id})
        capacity = self.definition.capacity
        if capacity is not None and others >= capacity:
            return 0.0
        return max(
            config.CROWDING_MIN_FACTOR, 1.0 - config.CROWDING_PENALTY_PER_USER * others
        )

    def environmental_modifier(self, season: Season, weather_fear: float) -> float:
        seasonal = self.definition.seasonal_multipliers.get(season, 1.0)
        exposure = 1.0 - self.definition.weather_resistance
        return seasonal * (1.0 - exposure * weather_fear)

    def effective_utility(
        self,
        action: ActionKind,
        species_id: str,
        season: Season,
        weather_fear: float,
        agent_id: AgentId | None = None,
    ) -> float:
        """base x species multiplier x environmental modifier x availability."""
        if action not in self.definition.actions:
            return 0.0
        species_mult = self.definition.species_multipliers.get(species_id, 1.0)
        utility = (
            self.definition.base_utility
            * species_mult
            * self.environmental_modifier(season, weather_fear)
            * self.availability(agent_id)
        )
        return max(0.0, min(1.0, utility))

    def regenerate(self, delta_time: float) -> None:
        if self.cooldown_remaining > 0.0:
            self.cooldown_remaining = max(0.0, self.cooldown_remaining - delta_time)
        max_stock = self.definition.max_stock
        if self.stock is not None and max_stock is not None:
            self.stock = min(
                max_stock, self.stock + self.definition.regeneration_rate * delta_time
            )


# Garden catalog. Stock and regeneration rates are per simulated second.
_DEFINITIONS: tuple[SmartObjectDefinition, ...] = (
    SmartObjectDefinition(
        id="seed_feeder",
        actions=frozenset({ActionKind.EAT, ActionKind.PERCH}),
        base_utility=0.8,
        detection_range=250.0,
        species_multipliers={"cardinal": 1.2, "sparrow": 1.1},
        seasonal_multipliers={Season.WINTER: 1.3, Season.SUMMER: 0.9},
        capacity=4,
        max_stock=10.0,
        regeneration_rate=0.01,
        weather_resistance=0.3,
        tags=frozenset({"feeder", "seed"}),
    ),
    SmartObjectDefinition(
        id="suet_feeder",
        actions=frozenset({ActionKind.EAT}),
        base_utility=0.75,
        detection_range=220.0,
        species_multipliers={"chickadee": 1.3, "blue_jay": 1.1},
        seasonal_multipliers={Season.WINTER: 1.4, Season.SUMMER: 0.6},
        capacity=2,
        max_stock=6.0,
        regeneration_rate=0.005,
        weather_resistance=0.4,
        tags=frozenset({"feeder", "suet"}),
    ),
    SmartObjectDefinition(
        id="nectar_feeder",
        actions=frozenset({ActionKind.HOVER_FEED}),
        base_utility=0.85,
        detection_range=260.0,
        species_multipliers={"ruby_throated_hummingbird": 1.5},
        seasonal_multipliers={Season.WINTER: 0.2, Season.SUMMER: 1.2},
        capacity=3,
        max_stock=5.0,
        regeneration_rate=0.01,
        weather_resistance=0.3,
        tags=frozenset({"feeder", "nectar"}),
    ),
    SmartObjectDefinition(
        id="bird_bath",
        actions=frozenset({ActionKind.DRINK, ActionKind.BATHE, ActionKind.PLAY}),
        base_utility=0.7,
        detection_range=240.0,
        seasonal_multipliers={Season.SUMMER: 1.3, Season.WINTER: 0.5},
        capacity=3,
        cooldown=2.0,
        weather_resistance=0.2,
        tags=frozenset({"water"}),
    ),
    SmartObjectDefinition(
        id="oak_tree",
        actions=frozenset(
            {
                ActionKind.PERCH,
                ActionKind.ROOST,
                ActionKind.SHELTER,
                ActionKind.NEST,
                ActionKind.CACHE,
                ActionKind.EXPLORE,
            }
        ),
        base_utility=0.6,
        detection_range=300.0,
        capacity=8,
        weather_resistance=0.8,
        tags=frozenset({"tree", "covered", "nut"}),
    ),
    SmartObjectDefinition(
        id="shrub",
        actions=frozenset({ActionKind.SHELTER, ActionKind.PERCH, ActionKind.COURT}),
        base_utility=0.55,
        detection_range=180.0,
        capacity=5,
        weather_resistance=0.7,
        tags=frozenset({"covered"}),
    ),
    SmartObjectDefinition(
        id="lawn",
        actions=frozenset({ActionKind.EAT, ActionKind.EXPLORE, ActionKind.PLAY}),
        base_utility=0.45,
        detection_range=200.0,
        species_multipliers={"robin": 1.6, "sparrow": 1.1},
        seasonal_multipliers={Season.WINTER: 0.3, Season.SPRING: 1.3},
        max_stock=20.0,
        regeneration_rate=0.02,
        weather_resistance=0.1,
        tags=frozenset({"ground", "worm"}),
    ),
)

OBJECT_DEFINITIONS: dict[str, SmartObjectDefinition] = {d.id: d for d in _DEFINITIONS}


def get_definition(definition_id: str) -> SmartObjectDefinition:
    definition = OBJECT_DEFINITIONS.get(definition_id)
    if definition is None:
        raise ValueError(f"Unknown smart object definition: {definition_id!r}")
    return definition
