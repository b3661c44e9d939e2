"""Optimistic position store.

Holds positions the operator has just committed but the authoritative entity
list does not reflect yet. The render view lays these pending positions over
the authoritative ones so the map never snaps back while a commit is in
flight or while the entity source is catching up.

INVARIANT: At most one pending position per entity; a new apply replaces.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from streetgrid.domain.grid import GridPosition, MarkerEntity
from streetgrid.domain.types import CategoryKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedMarker:
    """A marker as it should currently appear on the map.

    ``pending`` marks positions that come from the overlay; ``transient``
    marks markers synthesized for an entity the zone's authoritative list
    does not place in this zone yet.
    """

    entity_id: str
    display_name: str
    category: CategoryKind
    position: GridPosition
    vip: bool = False
    pending: bool = False
    transient: bool = False


class OptimisticStore:
    def __init__(self) -> None:
        self._pending: dict[str, GridPosition] = {}

    def apply(self, entity_id: str, position: GridPosition) -> None:
        self._pending[entity_id] = position

    def rollback(self, entity_id: str) -> bool:
        """Drop the pending entry for *entity_id*; False if there was none."""
        return self._pending.pop(entity_id, None) is not None

    def get(self, entity_id: str) -> GridPosition | None:
        return self._pending.get(entity_id)

    @property
    def pending(self) -> dict[str, GridPosition]:
        return dict(self._pending)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def reconcile(self, authoritative: Iterable[MarkerEntity]) -> list[str]:
        """Drop entries the authoritative list now agrees with.

        Returns the ids whose entries were removed.
        """
        settled = [
            entity.id
            for entity in authoritative
            if entity.id in self._pending and entity.position == self._pending[entity.id]
        ]
        for entity_id in settled:
            del self._pending[entity_id]
        if settled:
            logger.debug("Overlay settled for %s", ", ".join(settled))
        return settled

    def render_view(self, entities: Iterable[MarkerEntity], zone: str) -> list[RenderedMarker]:
        """Markers of *zone* with pending positions applied.

        *entities* is the full entity list (every zone, placed or not), so an
        entity moved into *zone* from elsewhere can still be drawn.
        """
        view: list[RenderedMarker] = []
        seen: set[str] = set()
        for entity in entities:
            seen.add(entity.id)
            pending = self._pending.get(entity.id)
            position = pending or entity.position
            if position is None or position.zone != zone:
                continue
            transient = pending is not None and (
                entity.position is None or entity.position.zone != zone
            )
            view.append(
                RenderedMarker(
                    entity_id=entity.id,
                    display_name=entity.display_name,
                    category=entity.category,
                    position=position,
                    vip=entity.vip,
                    pending=pending is not None,
                    transient=transient,
                )
            )
        for entity_id, position in self._pending.items():
            if entity_id not in seen and position.zone == zone:
                logger.debug("Overlay entry %s has no entity record; not rendered", entity_id)
        return view
