"""Arrow-key focus navigation between placed markers.

Left/right move along the current row; up/down jump to the nearest row
above or below, preferring the marker whose column is closest.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from streetgrid.domain.grid import GridPosition


class ArrowKey(StrEnum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


def next_marker(
    cells: Iterable[tuple[str, GridPosition | None]],
    current_id: str | None,
    key: ArrowKey,
) -> str | None:
    """Return the id of the marker focus should move to.

    *cells* are ``(entity_id, position)`` pairs in display order. With no
    current focus (or a focus that is no longer placed) the first placed
    marker is returned. Returns None when nothing lies in *key*'s direction,
    leaving focus where it is.
    """
    placed = [(eid, pos) for eid, pos in cells if pos is not None]
    if not placed:
        return None
    origin = next((pos for eid, pos in placed if eid == current_id), None)
    if origin is None:
        return placed[0][0]

    others = [(eid, pos) for eid, pos in placed if eid != current_id]
    if key is ArrowKey.RIGHT:
        candidates = [c for c in others if c[1].row == origin.row and c[1].col > origin.col]
        best = min(candidates, key=lambda c: c[1].col, default=None)
    elif key is ArrowKey.LEFT:
        candidates = [c for c in others if c[1].row == origin.row and c[1].col < origin.col]
        best = max(candidates, key=lambda c: c[1].col, default=None)
    elif key is ArrowKey.UP:
        candidates = [c for c in others if c[1].row < origin.row]
        best = min(
            candidates,
            key=lambda c: (-c[1].row, abs(c[1].col - origin.col)),
            default=None,
        )
    else:
        candidates = [c for c in others if c[1].row > origin.row]
        best = min(
            candidates,
            key=lambda c: (c[1].row, abs(c[1].col - origin.col)),
            default=None,
        )
    return best[0] if best is not None else None
