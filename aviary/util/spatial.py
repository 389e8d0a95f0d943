"""
A spatial hash grid for radius queries over continuous 2D positions.

The registry and population snapshots use `SpatialHashGrid` to turn
"everything within N units of this bird" from an O(n) scan into a lookup
over the handful of cells the query circle overlaps.
"""

import math
from collections import defaultdict
from typing import Generic, Protocol, TypeAlias, TypeVar

# Integer cell coordinates.
Cell: TypeAlias = tuple[int, int]


class HasPosition(Protocol):
    """Anything with float x and y attributes."""

    x: float
    y: float


T = TypeVar("T", bound=HasPosition)


class SpatialHashGrid(Generic[T]):
    """
    Buckets objects into square cells of ``cell_size`` world units.

    Objects must be hashable. Positions are read when the object is added or
    updated, so a moved object must be passed to `update()` before the next
    query to be found at its new location.
    """

    def __init__(self, cell_size: float = 64) -> None:
        if cell_size <= 0:
            raise ValueError("Cell size must be positive.")
        self.cell_size = cell_size
        self.grid: dict[Cell, set[T]] = defaultdict(set)
        self._obj_to_cell: dict[T, Cell] = {}

    def __len__(self) -> int:
        return len(self._obj_to_cell)

    def __contains__(self, obj: object) -> bool:
        return obj in self._obj_to_cell

    def _hash(self, x: float, y: float) -> Cell:
        return math.floor(x / self.cell_size), math.floor(y / self.cell_size)

    def add(self, obj: T) -> None:
        cell_xy = self._hash(obj.x, obj.y)
        self.grid[cell_xy].add(obj)
        self._obj_to_cell[obj] = cell_xy

    def remove(self, obj: T) -> None:
        cell_xy = self._obj_to_cell.pop(obj, None)
        if cell_xy is None:
            return  # Not tracked.
        cell = self.grid.get(cell_xy)
        if cell is not None:
            cell.discard(obj)
            if not cell:
                del self.grid[cell_xy]

    def update(self, obj: T) -> None:
        """Re-bucket an object after it has moved."""
        old_cell_xy = self._obj_to_cell.get(obj)
        new_cell_xy = self._hash(obj.x, obj.y)
        if old_cell_xy == new_cell_xy:
            return  # Fast path: same cell.
        if old_cell_xy is not None:
            self.remove(obj)
        self.grid[new_cell_xy].add(obj)
        self._obj_to_cell[obj] = new_cell_xy

    def get_in_radius(self, x: float, y: float, radius: float) -> list[T]:
        """Return all objects within Euclidean ``radius`` of (x, y).

        Result order is unspecified; callers that need determinism sort it.
        """
        cx1, cy1 = self._hash(x - radius, y - radius)
        cx2, cy2 = self._hash(x + radius, y + radius)
        radius_sq = radius * radius
        return [
            obj
            for cx in range(cx1, cx2 + 1)
            for cy in range(cy1, cy2 + 1)
            for obj in self.grid.get((cx, cy), ())
            if (obj.x - x) ** 2 + (obj.y - y) ** 2 <= radius_sq
        ]

    def clear(self) -> None:
        self.grid.clear()
        self._obj_to_cell.clear()
