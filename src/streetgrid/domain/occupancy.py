"""Occupancy index: which marker sits in which cell.

Built from the render view, i.e. the authoritative positions with pending
optimistic positions laid over them. When an authoritative marker and a
pending one share a cell the pending marker wins, since it reflects the
move the operator just made.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from streetgrid.domain.grid import GridPosition, MarkerEntity

logger = logging.getLogger(__name__)


@dataclass
class OccupancyIndex:
    """Bidirectional cell <-> entity lookup with O(1) queries."""

    _cells: dict[GridPosition, str] = field(default_factory=dict)
    _positions: dict[str, GridPosition] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        entities: Iterable[MarkerEntity],
        pending: Mapping[str, GridPosition] | None = None,
    ) -> OccupancyIndex:
        """Index *entities*, overriding their positions with *pending* entries."""
        pending = pending or {}
        index = cls()
        for entity in entities:
            if entity.id in pending or entity.position is None:
                continue
            index._place(entity.id, entity.position)
        for entity_id, position in pending.items():
            index._place(entity_id, position)
        return index

    def _place(self, entity_id: str, position: GridPosition) -> None:
        previous = self._cells.get(position)
        if previous is not None and previous != entity_id:
            logger.debug("Cell %s: %s displaces %s", position, entity_id, previous)
            del self._positions[previous]
        self._cells[position] = entity_id
        self._positions[entity_id] = position

    def occupant_at(self, zone: str, row: int, col: int) -> str | None:
        return self._cells.get(GridPosition(zone, row, col))

    def position_of(self, entity_id: str) -> GridPosition | None:
        return self._positions.get(entity_id)

    def occupied(self, zone: str) -> dict[GridPosition, str]:
        """All occupied cells of *zone*."""
        return {pos: eid for pos, eid in self._cells.items() if pos.zone == zone}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._positions
