"""Inverse mapping: viewport pixels -> grid cell.

``is_blocked`` is the cheap check run on every pointer move; ``from_pixel``
does the full slot resolution and is throttled by the drag controller.
Both read the geometry from the layout strategies so a pixel produced by
:func:`streetgrid.domain.layout.to_pixel` always maps back to its cell.
"""

from __future__ import annotations

from streetgrid.domain.grid import GridPosition, Viewport
from streetgrid.domain.layout import LayoutStrategy, strategy_for
from streetgrid.domain.topology import STREET_COLS, PerpendicularStreet, ZoneTopology
from streetgrid.domain.types import StreetSide, ThoroughfareSide


def _in_segment(
    strategy: LayoutStrategy,
    topology: ZoneTopology,
    street: PerpendicularStreet,
    across: float,
    viewport: Viewport,
) -> bool:
    if strategy.thoroughfare_side(across, viewport) is not street.thoroughfare_side:
        return False
    depth = strategy.depth(across, street.thoroughfare_side, viewport)
    return 0 <= depth <= strategy.segment_end(topology, viewport)


def is_blocked(
    topology: ZoneTopology,
    x: float,
    y: float,
    viewport: Viewport,
    *,
    mobile: bool,
) -> bool:
    """Whether ``(x, y)`` lies on a road surface where nothing may be dropped."""
    strategy = strategy_for(mobile)
    along, across = strategy.from_xy(x, y)

    band = min(
        topology.thoroughfare_tolerance / 100 * strategy.across_extent(viewport),
        strategy.metrics.thoroughfare_half_width,
    )
    if abs(across - strategy.centerline(viewport)) <= band:
        return True

    for street in topology.streets:
        if not _in_segment(strategy, topology, street, across, viewport):
            continue
        road = strategy.street_road(street, topology, viewport)
        if abs(along - strategy.street_axis(street, viewport)) <= road:
            return True
    return False


def from_pixel(
    topology: ZoneTopology,
    x: float,
    y: float,
    viewport: Viewport,
    *,
    mobile: bool,
) -> GridPosition | None:
    """Resolve ``(x, y)`` to the grid cell under it, or None.

    Returns None for blocked points, for the thoroughfare road itself, for
    street sides without slots, and for points in the gaps between slots.
    """
    if is_blocked(topology, x, y, viewport, mobile=mobile):
        return None

    strategy = strategy_for(mobile)
    along, across = strategy.from_xy(x, y)
    if abs(across - strategy.centerline(viewport)) <= strategy.metrics.thoroughfare_half_width:
        return None
    side = strategy.thoroughfare_side(across, viewport)

    for street in topology.streets:
        if not _in_segment(strategy, topology, street, across, viewport):
            continue
        axis = strategy.street_axis(street, viewport)
        street_side = StreetSide.WEST if along < axis else StreetSide.EAST
        if abs(along - axis) > strategy.street_catchment(street, street_side, topology, viewport):
            continue
        if street_side not in street.sides:
            return None
        depth = strategy.depth(across, side, viewport)
        index = strategy.street_slots(street, topology, viewport).nearest(depth)
        if index is None:
            return None
        row = street.row_at(index, street_side)
        if row is None:
            return None
        return GridPosition(topology.zone, row, STREET_COLS)

    index = strategy.main_slots(topology, viewport).nearest(along)
    if index is None:
        return None
    row = 1 if side is ThoroughfareSide.NORTH else 2
    return GridPosition(topology.zone, row, index + 1)
