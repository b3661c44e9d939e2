"""Commit endpoint: persists grid moves and swaps.

The drag controller talks to any object satisfying :class:`CommitEndpoint`.
:class:`LocalCommitEndpoint` applies the server's move semantics directly
against a :class:`~streetgrid.infrastructure.store.MarkerStore`:

- bounds are validated against the zone topology (400)
- unknown establishments are rejected (404)
- an explicit ``swap_with`` exchanges the two positions
- a move onto an occupied cell is converted into a swap
- all changes are saved together or not at all
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from streetgrid.domain.grid import GridBoundsError, GridPosition, MarkerEntity, validate_position
from streetgrid.domain.topology import UnknownZoneError, ZoneTopology, get_topology
from streetgrid.infrastructure.store import MarkerStore

logger = logging.getLogger(__name__)


class CommitError(Exception):
    """Transport-level failure: the commit never reached the endpoint."""


@dataclass(frozen=True)
class CommitRequest:
    """A single move, or a swap when ``swap_with`` is set."""

    entity_id: str
    position: GridPosition
    swap_with: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Wire payload sent to the HTTP endpoint."""
        payload: dict[str, Any] = {
            "establishmentId": self.entity_id,
            "grid_row": self.position.row,
            "grid_col": self.position.col,
            "zone": self.position.zone,
        }
        if self.swap_with is not None:
            payload["swap_with_id"] = self.swap_with
        return payload


@dataclass(frozen=True)
class CommitResponse:
    ok: bool
    status: int = 200
    message: str = ""
    positions: dict[str, GridPosition | None] = field(default_factory=dict)


class CommitEndpoint(Protocol):
    async def commit(self, request: CommitRequest) -> CommitResponse: ...


class LocalCommitEndpoint:
    """Commit endpoint backed by a marker store.

    Args:
        store: Authoritative marker storage.
        topologies: Zone lookup; defaults to the built-in zones.
        delay: Simulated round-trip latency in seconds.
    """

    def __init__(
        self,
        store: MarkerStore,
        *,
        topologies: Callable[[str], ZoneTopology] = get_topology,
        delay: float = 0.0,
    ) -> None:
        self._store = store
        self._topologies = topologies
        self._delay = delay

    async def commit(self, request: CommitRequest) -> CommitResponse:
        if self._delay:
            await asyncio.sleep(self._delay)

        target = request.position
        try:
            validate_position(self._topologies(target.zone), target.row, target.col)
        except UnknownZoneError:
            return CommitResponse(ok=False, status=400, message=f"Unknown zone: {target.zone}")
        except GridBoundsError as exc:
            return CommitResponse(ok=False, status=400, message=str(exc))

        markers = self._store.load()
        by_id = {m.id: m for m in markers}
        source = by_id.get(request.entity_id)
        if source is None:
            return CommitResponse(ok=False, status=404, message="Establishment not found")

        partner_id = request.swap_with
        if partner_id is None:
            partner_id = next(
                (m.id for m in markers if m.position == target and m.id != source.id),
                None,
            )
            if partner_id is not None:
                logger.debug("Move onto occupied %s converted to swap with %s", target, partner_id)
        elif partner_id not in by_id:
            return CommitResponse(ok=False, status=404, message="Swap target not found")

        updates: dict[str, GridPosition | None] = {source.id: target}
        if partner_id is not None and partner_id != source.id:
            updates[partner_id] = source.position

        self._store.save(_apply(markers, updates))
        if len(updates) == 2:
            message = "Swap operation completed successfully"
        else:
            message = "Position updated successfully"
        return CommitResponse(ok=True, status=200, message=message, positions=updates)


def _apply(
    markers: list[MarkerEntity], updates: dict[str, GridPosition | None]
) -> list[MarkerEntity]:
    return [m.at(updates[m.id]) if m.id in updates else m for m in markers]
