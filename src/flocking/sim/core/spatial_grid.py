from __future__ import annotations

import math
from typing import Dict, Generic, Iterable, List, Protocol, Tuple, TypeVar

from pygame.math import Vector2


class _Positioned(Protocol):
    position: Vector2


T = TypeVar("T", bound=_Positioned)


class SpatialGrid(Generic[T]):
    """Uniform grid of buckets keyed by ``cell_size``.

    Queries return every inserted item whose position lies within ``radius`` of
    the query point (inclusive), in insertion order within each bucket. Callers
    still apply their own strict range checks, so the grid only narrows the
    candidate set of a full scan and never changes which pairs interact.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[T]] = {}
        self._active_keys: List[Tuple[int, int]] = []
        self._neighbor_scratch: List[T] = []

    def __len__(self) -> int:
        return sum(len(self._cells[key]) for key in self._active_keys)

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()

    def insert(self, item: T) -> None:
        key = self._cell_key(item.position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared at the start of this step; mark it active again.
            self._active_keys.append(key)
        bucket.append(item)

    def rebuild(self, items: Iterable[T]) -> None:
        self.clear()
        for item in items:
            self.insert(item)

    def get_neighbors(self, position: Vector2, radius: float) -> List[T]:
        """Return a scratch list that is overwritten by the next query."""
        self._neighbor_scratch.clear()
        base_key = self._cell_key(position)
        cell_range = int(math.ceil(radius / self._cell_size))
        radius_sq = radius * radius
        pos_x = position.x
        pos_y = position.y

        for dx in range(-cell_range, cell_range + 1):
            for dy in range(-cell_range, cell_range + 1):
                bucket = self._cells.get((base_key[0] + dx, base_key[1] + dy))
                if not bucket:
                    continue
                for item in bucket:
                    pos = item.position
                    offset_x = pos.x - pos_x
                    offset_y = pos.y - pos_y
                    if offset_x * offset_x + offset_y * offset_y <= radius_sq:
                        self._neighbor_scratch.append(item)
        return self._neighbor_scratch

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))
