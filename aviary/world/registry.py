"""Object Utility Registry: the world-side catalog birds query for utility.

Discovery only reads (`query`, `resolve`). Execution is the only writer of
usage state (`claim`, `release`, `consume`, `start_cooldown`), and each of
those is serialized on the object's own lock so two birds racing for the last
slot resolve to at most the object's capacity. Structural changes (`add`,
`remove`) and `regenerate` take the registry lock.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from aviary import config
from aviary.ai.actions import ActionKind
from aviary.environment import Season, WeatherProvider
from aviary.types import AgentId, DeltaTime, ObjectId, WorldPos
from aviary.util.spatial import SpatialHashGrid
from aviary.world.smart_objects import SmartObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UtilityOffer:
    object_id: ObjectId
    action: ActionKind
    effective_utility: float
    distance: float


class ObjectRegistry:
    def __init__(
        self,
        weather: WeatherProvider | None = None,
        season: Season = Season.SPRING,
        cell_size: float = config.SPATIAL_CELL_SIZE,
    ) -> None:
        self._objects: dict[ObjectId, SmartObject] = {}
        # Registration order, for deterministic query results.
        self._order: dict[ObjectId, int] = {}
        self._next_order = 0
        self._grid: SpatialHashGrid[SmartObject] = SpatialHashGrid(cell_size)
        self._lock = threading.RLock()
        self._max_detection_range = 0.0
        self.weather = weather
        self.season = season

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __iter__(self) -> Iterator[SmartObject]:
        with self._lock:
            return iter(sorted(self._objects.values(), key=self._sort_key))

    def _sort_key(self, obj: SmartObject) -> int:
        return self._order[obj.object_id]

    # -- Structure ----------------------------------------------------------

    def add(self, obj: SmartObject) -> SmartObject:
        """Register an object.

        Raises:
            ValueError: If an object with the same id is already registered.
        """
        with self._lock:
            if obj.object_id in self._objects:
                raise ValueError(f"Object {obj.object_id} already registered")
            self._objects[obj.object_id] = obj
            self._order[obj.object_id] = self._next_order
            self._next_order += 1
            self._grid.add(obj)
            self._max_detection_range = max(
                self._max_detection_range, obj.detection_range
            )
        logger.debug(f"Registered object {obj.object_id} ({obj.definition.id})")
        return obj

    def remove(self, object_id: ObjectId) -> SmartObject | None:
        """Unregister an object. Holders discover this as target loss."""
        with self._lock:
            obj = self._objects.pop(object_id, None)
            if obj is None:
                return None
            del self._order[object_id]
            self._grid.remove(obj)
        logger.debug(f"Removed object {object_id} ({obj.definition.id})")
        return obj

    def resolve(self, object_id: ObjectId | None) -> SmartObject | None:
        if object_id is None:
            return None
        return self._objects.get(object_id)

    # -- Queries ------------------------------------------------------------

    def query(
        self,
        agent_position: WorldPos,
        agent_species: str,
        radius: float,
        actions: Iterable[ActionKind] | None = None,
        agent_id: AgentId | None = None,
    ) -> list[UtilityOffer]:
        """Return every non-zero offer within range, in registration order.

        An object is in range when it is within both ``radius`` and its own
        detection range. Utilities are computed fresh on every call.
        """
        wanted = frozenset(actions) if actions is not None else None
        x, y = agent_position
        weather_fear = self.weather.weather_fear if self.weather is not None else 0.0
        search_radius = min(radius, self._max_detection_range)
        with self._lock:
            nearby = sorted(
                self._grid.get_in_radius(x, y, search_radius), key=self._sort_key
            )

        offers: list[UtilityOffer] = []
        for obj in nearby:
            distance = math.hypot(obj.x - x, obj.y - y)
            if distance > min(radius, obj.detection_range):
                continue
            # Definition order is a frozenset; sort by enum declaration.
            for action in sorted(obj.actions, key=_ACTION_ORDER.__getitem__):
                if wanted is not None and action not in wanted:
                    continue
                utility = obj.effective_utility(
                    action, agent_species, self.season, weather_fear, agent_id
                )
                if utility > 0.0:
                    offers.append(
                        UtilityOffer(obj.object_id, action, utility, distance)
                    )
        return offers

    def in_range(self, object_id: ObjectId, position: WorldPos) -> bool:
        """Whether ``position`` is inside the object's detection range."""
        obj = self.resolve(object_id)
        if obj is None:
            return False
        distance = math.hypot(obj.x - position[0], obj.y - position[1])
        return distance <= obj.detection_range

    # -- Usage (Execution only) ---------------------------------------------

    def claim(self, object_id: ObjectId, agent_id: AgentId) -> bool:
        """Take a slot on an object. Returns False if it is gone, unusable or full.

        A bird that already holds a slot succeeds again without taking a
        second one.
        """
        obj = self.resolve(object_id)
        if obj is None:
            return False
        with obj.lock:
            if agent_id in obj.occupants:
                return True
            if obj.is_full or obj.is_exhausted or obj.on_cooldown:
                return False
            obj.occupants.add(agent_id)
            return True

    def release(self, object_id: ObjectId | None, agent_id: AgentId) -> None:
        obj = self.resolve(object_id)
        if obj is None:
            return
        with obj.lock:
            obj.occupants.discard(agent_id)

    def consume(self, object_id: ObjectId, amount: float) -> float:
        """Take up to ``amount`` of stock. Returns the amount actually taken.

        Objects without finite stock give the full amount.
        """
        obj = self.resolve(object_id)
        if obj is None or amount <= 0.0:
            return 0.0
        with obj.lock:
            if obj.stock is None:
                return amount
            taken = min(amount, obj.stock)
            obj.stock -= taken
            return taken

    def start_cooldown(self, object_id: ObjectId) -> None:
        obj = self.resolve(object_id)
        if obj is None or obj.definition.cooldown <= 0.0:
            return
        with obj.lock:
            obj.cooldown_remaining = obj.definition.cooldown

    def regenerate(self, delta_time: DeltaTime) -> None:
        """Refill stock and count down cooldowns on every object."""
        with self._lock:
            objects = list(self._objects.values())
        for obj in objects:
            with obj.lock:
                obj.regenerate(delta_time)

    def release_all(self, agent_id: AgentId) -> None:
        """Drop every slot ``agent_id`` holds (used at despawn)."""
        with self._lock:
            objects = list(self._objects.values())
        for obj in objects:
            with obj.lock:
                obj.occupants.discard(agent_id)


_ACTION_ORDER: dict[ActionKind, int] = {kind: i for i, kind in enumerate(ActionKind)}
