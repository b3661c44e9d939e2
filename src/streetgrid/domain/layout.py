"""Forward position calculator: grid cell -> viewport pixels.

Geometry is computed in *along* / *across* coordinates (parallel and
perpendicular to the thoroughfare). A :class:`LayoutStrategy` decides how
those map onto screen axes: the desktop layout runs the thoroughfare
horizontally, the mobile layout runs it vertically. North is the low
across coordinate in both.

The inverse mapper in :mod:`streetgrid.domain.hit_test` reuses the same
strategy objects, so both directions read identical slot geometry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from streetgrid.domain.grid import PixelPosition, Viewport, validate_position
from streetgrid.domain.topology import (
    MainStreet,
    PerpendicularStreet,
    ZoneTopology,
    resolve,
)
from streetgrid.domain.types import StreetSide, ThoroughfareSide

# Fraction of the slot pitch within which a street point snaps to a slot.
STREET_SNAP_FRACTION = 0.45


# ---------------------------------------------------------------------------
# Slot runs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SlotRun:
    """Evenly spaced slot centers along one axis.

    Attributes:
        start: Coordinate of slot 0.
        pitch: Distance between neighbouring slot centers.
        count: Number of slots.
        half_extent: Maximum distance from a center that still hits the slot.
    """

    start: float
    pitch: float
    count: int
    half_extent: float

    def center(self, index: int) -> float:
        return self.start + index * self.pitch

    def nearest(self, coord: float) -> int | None:
        """Index of the slot hit by *coord*, or None outside every slot."""
        if self.count < 1 or self.pitch <= 0:
            return None
        index = math.floor((coord - self.start) / self.pitch + 0.5)
        if not 0 <= index < self.count:
            return None
        if abs(coord - self.center(index)) > self.half_extent:
            return None
        return index


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LayoutMetrics:
    """Fixed pixel measurements of one layout."""

    thoroughfare_half_width: float
    main_lane_offset: float
    street_side_gap: float
    street_outer_margin: float
    street_marker_size: int


class LayoutStrategy:
    """Shared slot geometry; subclasses pick the screen axes and main-lane slots."""

    name: str = ""
    metrics: LayoutMetrics

    # -- axis mapping (overridden) --

    def along_extent(self, viewport: Viewport) -> float:
        raise NotImplementedError

    def across_extent(self, viewport: Viewport) -> float:
        raise NotImplementedError

    def to_xy(self, along: float, across: float) -> tuple[float, float]:
        raise NotImplementedError

    def from_xy(self, x: float, y: float) -> tuple[float, float]:
        raise NotImplementedError

    def main_slots(self, topology: ZoneTopology, viewport: Viewport) -> SlotRun:
        raise NotImplementedError

    def main_marker_size(self, topology: ZoneTopology, viewport: Viewport) -> int:
        raise NotImplementedError

    # -- thoroughfare --

    def centerline(self, viewport: Viewport) -> float:
        return self.across_extent(viewport) / 2

    def main_lane(self, side: ThoroughfareSide, viewport: Viewport) -> float:
        """Across coordinate of the marker lane on *side* of the thoroughfare."""
        offset = self.metrics.main_lane_offset
        center = self.centerline(viewport)
        return center - offset if side is ThoroughfareSide.NORTH else center + offset

    def thoroughfare_side(self, across: float, viewport: Viewport) -> ThoroughfareSide:
        if across < self.centerline(viewport):
            return ThoroughfareSide.NORTH
        return ThoroughfareSide.SOUTH

    # -- perpendicular streets --

    def street_axis(self, street: PerpendicularStreet, viewport: Viewport) -> float:
        return self.along_extent(viewport) * street.axis_offset / 100

    def street_reach(
        self,
        street: PerpendicularStreet,
        side: StreetSide,
        topology: ZoneTopology,
        viewport: Viewport,
    ) -> float:
        """Half the distance from *street*'s axis to the next axis on *side*.

        Only streets running into the same side of the thoroughfare count;
        their segments are the only ones that can share pixels.
        """
        axis = self.street_axis(street, viewport)
        gaps = [
            abs(self.street_axis(other, viewport) - axis)
            for other in topology.streets
            if other is not street
            and other.thoroughfare_side is street.thoroughfare_side
            and (
                other.axis_offset < street.axis_offset
                if side is StreetSide.WEST
                else other.axis_offset > street.axis_offset
            )
        ]
        return min(gaps) / 2 if gaps else math.inf

    def street_road(
        self, street: PerpendicularStreet, topology: ZoneTopology, viewport: Viewport
    ) -> float:
        """Half-width of the blocked band around *street*'s axis."""
        road = min(street.road_tolerance / 100 * self.along_extent(viewport), street.width / 2)
        return min(
            road,
            self.street_reach(street, StreetSide.WEST, topology, viewport) / 2,
            self.street_reach(street, StreetSide.EAST, topology, viewport) / 2,
        )

    def street_offset(
        self,
        street: PerpendicularStreet,
        side: StreetSide,
        topology: ZoneTopology,
        viewport: Viewport,
    ) -> float:
        """Distance from *street*'s axis to its marker lane on *side*.

        When streets crowd together the lane moves to halfway between the road
        edge and the street's reach, so neighbouring lanes never cross.
        """
        nominal = street.width / 2 + self.metrics.street_side_gap
        reach = self.street_reach(street, side, topology, viewport)
        return min(nominal, (self.street_road(street, topology, viewport) + reach) / 2)

    def street_lane(
        self,
        street: PerpendicularStreet,
        side: StreetSide,
        topology: ZoneTopology,
        viewport: Viewport,
    ) -> float:
        """Along coordinate of the marker lane on *side* of *street*."""
        offset = self.street_offset(street, side, topology, viewport)
        axis = self.street_axis(street, viewport)
        return axis - offset if side is StreetSide.WEST else axis + offset

    def segment_end(self, topology: ZoneTopology, viewport: Viewport) -> float:
        """Depth at which a street segment stops, just short of the main lane."""
        clearance = self.metrics.main_lane_offset + self.main_marker_size(topology, viewport) / 2
        return self.centerline(viewport) - clearance

    def depth(self, across: float, side: ThoroughfareSide, viewport: Viewport) -> float:
        """Distance of *across* from the viewport edge on *side*."""
        if side is ThoroughfareSide.NORTH:
            return across
        return self.across_extent(viewport) - across

    def across_at(self, depth: float, side: ThoroughfareSide, viewport: Viewport) -> float:
        if side is ThoroughfareSide.NORTH:
            return depth
        return self.across_extent(viewport) - depth

    def street_slots(
        self, street: PerpendicularStreet, topology: ZoneTopology, viewport: Viewport
    ) -> SlotRun:
        """Slot depths along *street*'s segment, measured from the outer edge."""
        outer = self.metrics.street_outer_margin
        span = self.segment_end(topology, viewport) - outer
        pitch = span / (street.slot_count + 1)
        return SlotRun(
            start=outer + pitch,
            pitch=pitch,
            count=street.slot_count,
            half_extent=STREET_SNAP_FRACTION * pitch,
        )

    def street_catchment(
        self,
        street: PerpendicularStreet,
        side: StreetSide,
        topology: ZoneTopology,
        viewport: Viewport,
    ) -> float:
        """Distance from *street*'s axis on *side* within which points belong to it."""
        nominal = (
            street.width / 2 + self.metrics.street_side_gap + self.metrics.street_marker_size / 2
        )
        return min(nominal, self.street_reach(street, side, topology, viewport))


class DesktopLayout(LayoutStrategy):
    """Horizontal thoroughfare: along is x, across is y."""

    name = "desktop"
    metrics = LayoutMetrics(
        thoroughfare_half_width=20,
        main_lane_offset=70,
        street_side_gap=10,
        street_outer_margin=0,
        street_marker_size=45,
    )
    min_bar = 25.0
    max_bar = 45.0
    bar_inset = 8.0

    def along_extent(self, viewport: Viewport) -> float:
        return viewport.width

    def across_extent(self, viewport: Viewport) -> float:
        return viewport.height

    def to_xy(self, along: float, across: float) -> tuple[float, float]:
        return along, across

    def from_xy(self, x: float, y: float) -> tuple[float, float]:
        return x, y

    def bar_width(self, topology: ZoneTopology, viewport: Viewport) -> float:
        raw = viewport.width / topology.main_cols - self.bar_inset
        return min(self.max_bar, max(self.min_bar, raw))

    def main_slots(self, topology: ZoneTopology, viewport: Viewport) -> SlotRun:
        cols = topology.main_cols
        bar = self.bar_width(topology, viewport)
        spacing = (viewport.width - cols * bar) / (cols + 1)
        pitch = bar + spacing
        return SlotRun(
            start=spacing + bar / 2,
            pitch=pitch,
            count=cols,
            half_extent=min(bar, pitch) / 2,
        )

    def main_marker_size(self, topology: ZoneTopology, viewport: Viewport) -> int:
        return round(self.bar_width(topology, viewport))


class MobileLayout(LayoutStrategy):
    """Vertical thoroughfare: along is y, across is x."""

    name = "mobile"
    metrics = LayoutMetrics(
        thoroughfare_half_width=40,
        main_lane_offset=50,
        street_side_gap=12,
        street_outer_margin=20,
        street_marker_size=35,
    )
    end_margin = 60.0

    def along_extent(self, viewport: Viewport) -> float:
        return viewport.height

    def across_extent(self, viewport: Viewport) -> float:
        return viewport.width

    def to_xy(self, along: float, across: float) -> tuple[float, float]:
        return across, along

    def from_xy(self, x: float, y: float) -> tuple[float, float]:
        return y, x

    def main_slots(self, topology: ZoneTopology, viewport: Viewport) -> SlotRun:
        usable = viewport.height - 2 * self.end_margin
        spacing = usable / (topology.main_cols + 1)
        return SlotRun(
            start=self.end_margin + spacing,
            pitch=spacing,
            count=topology.main_cols,
            half_extent=min(self.metrics.street_marker_size, spacing) / 2,
        )

    def main_marker_size(self, topology: ZoneTopology, viewport: Viewport) -> int:
        return self.metrics.street_marker_size


DESKTOP = DesktopLayout()
MOBILE = MobileLayout()


def strategy_for(mobile: bool) -> LayoutStrategy:
    return MOBILE if mobile else DESKTOP


# ---------------------------------------------------------------------------
# Marker sizing
# ---------------------------------------------------------------------------


def vip_multiplier(viewport: Viewport) -> float:
    """Enlargement applied to VIP markers for the current viewport width."""
    if viewport.width < 480:
        return 1.15
    if viewport.width < 768:
        return 1.25
    return 1.35


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def to_pixel(
    topology: ZoneTopology,
    row: int,
    col: int,
    *,
    mobile: bool,
    viewport: Viewport,
    vip: bool = False,
) -> PixelPosition:
    """Compute the pixel center and marker size of cell ``(row, col)``.

    Raises:
        GridBoundsError: The cell is outside the zone's grid.
        UnmappedRowError: The row is not covered by the topology table.
    """
    validate_position(topology, row, col)
    strategy = strategy_for(mobile)
    descriptor = resolve(topology, row)

    if isinstance(descriptor, MainStreet):
        along = strategy.main_slots(topology, viewport).center(col - 1)
        across = strategy.main_lane(descriptor.side, viewport)
        size = strategy.main_marker_size(topology, viewport)
    else:
        street = topology.street(descriptor.street_name)
        along = strategy.street_lane(street, descriptor.side_of_street, topology, viewport)
        depth = strategy.street_slots(street, topology, viewport).center(descriptor.slot_index)
        across = strategy.across_at(depth, descriptor.side_of_thoroughfare, viewport)
        size = strategy.metrics.street_marker_size

    if vip:
        size = round(size * vip_multiplier(viewport))
    x, y = strategy.to_xy(along, across)
    return PixelPosition(x=x, y=y, marker_size=size)
