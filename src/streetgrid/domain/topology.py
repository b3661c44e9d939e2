"""Street topology tables and the row resolver.

One table per zone describes which rows belong to the main thoroughfare and
which to each perpendicular street. Both the forward layout and the inverse
hit-tester read this table, so a street is described exactly once.

Rows 1 and 2 are always the thoroughfare (row 1 north, row 2 south).
Every other row belongs to exactly one street's contiguous row range.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from streetgrid.domain.types import LayoutKind, StreetSide, ThoroughfareSide

MAIN_ROWS = 2
STREET_COLS = 1  # perpendicular rows hold a single column


class UnknownZoneError(KeyError):
    """Raised when a zone has no topology table."""


class UnmappedRowError(LookupError):
    """Raised when a row belongs to neither the thoroughfare nor any street."""

    def __init__(self, zone: str, row: int) -> None:
        super().__init__(f"Row {row} is not mapped to any street in zone {zone!r}")
        self.zone = zone
        self.row = row


# ---------------------------------------------------------------------------
# Table entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerpendicularStreet:
    """A named side street and the grid rows laid out along it.

    Attributes:
        name: Display name, unique within a zone.
        axis_offset: Street axis position as a percentage of the long axis.
        width: Drawn road width in pixels.
        first_row: First grid row assigned to this street.
        row_count: Number of consecutive rows assigned to this street.
        layout: ``paired`` puts two rows face-to-face per slot (west row first);
            ``single_file`` stacks every row in its own slot on one side.
        thoroughfare_side: Side of the thoroughfare the street runs into.
        sides: Street sides that carry markers.
        road_tolerance: Blocked band half-width, percent of the long axis.
    """

    name: str
    axis_offset: float
    width: float
    first_row: int
    row_count: int
    layout: LayoutKind = LayoutKind.PAIRED
    thoroughfare_side: ThoroughfareSide = ThoroughfareSide.NORTH
    sides: tuple[StreetSide, ...] = (StreetSide.WEST, StreetSide.EAST)
    road_tolerance: float = 2.0

    def __post_init__(self) -> None:
        if not 0 < self.axis_offset < 100:
            msg = f"Street {self.name!r}: axis_offset must be within (0, 100)"
            raise ValueError(msg)
        if self.width <= 0:
            msg = f"Street {self.name!r}: width must be positive"
            raise ValueError(msg)
        if self.first_row <= MAIN_ROWS:
            msg = f"Street {self.name!r}: rows 1-{MAIN_ROWS} belong to the thoroughfare"
            raise ValueError(msg)
        if self.row_count < 1:
            msg = f"Street {self.name!r}: row_count must be at least 1"
            raise ValueError(msg)
        if len(set(self.sides)) != len(self.sides) or not self.sides:
            msg = f"Street {self.name!r}: sides must be a non-empty set"
            raise ValueError(msg)
        if self.layout is LayoutKind.PAIRED and len(self.sides) != 2:
            msg = f"Street {self.name!r}: paired streets carry markers on both sides"
            raise ValueError(msg)
        if self.layout is LayoutKind.SINGLE_FILE and len(self.sides) != 1:
            msg = f"Street {self.name!r}: single-file streets carry markers on one side"
            raise ValueError(msg)

    @property
    def last_row(self) -> int:
        return self.first_row + self.row_count - 1

    @property
    def slot_count(self) -> int:
        """Number of distinct positions along the street segment."""
        if self.layout is LayoutKind.PAIRED:
            return math.ceil(self.row_count / 2)
        return self.row_count

    def contains(self, row: int) -> bool:
        return self.first_row <= row <= self.last_row

    def slot_index(self, row: int) -> int:
        """Zero-based slot along the segment for *row*."""
        offset = row - self.first_row
        if self.layout is LayoutKind.PAIRED:
            return offset // 2
        return offset

    def side_of(self, row: int) -> StreetSide:
        """Street side *row* sits on."""
        if self.layout is LayoutKind.PAIRED:
            return StreetSide.WEST if (row - self.first_row) % 2 == 0 else StreetSide.EAST
        return self.sides[0]

    def row_at(self, slot_index: int, side: StreetSide) -> int | None:
        """Inverse of :meth:`slot_index` / :meth:`side_of`; None if no row there."""
        if side not in self.sides or not 0 <= slot_index < self.slot_count:
            return None
        if self.layout is LayoutKind.PAIRED:
            row = self.first_row + slot_index * 2 + (0 if side is StreetSide.WEST else 1)
        else:
            row = self.first_row + slot_index
        return row if self.contains(row) else None


@dataclass(frozen=True)
class ZoneTopology:
    """Topology table for one zone.

    Streets are kept in table order; the hit-tester scans them in this order
    and the first match wins.
    """

    zone: str
    main_cols: int
    streets: tuple[PerpendicularStreet, ...] = ()
    thoroughfare_tolerance: float = 2.0
    _by_name: dict[str, PerpendicularStreet] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.main_cols < 1:
            msg = f"Zone {self.zone!r}: main_cols must be at least 1"
            raise ValueError(msg)
        expected = MAIN_ROWS + 1
        for street in sorted(self.streets, key=lambda s: s.first_row):
            if street.first_row != expected:
                msg = (
                    f"Zone {self.zone!r}: street {street.name!r} starts at row "
                    f"{street.first_row}, expected {expected} (ranges must be contiguous)"
                )
                raise ValueError(msg)
            expected = street.last_row + 1
        by_name = {s.name: s for s in self.streets}
        if len(by_name) != len(self.streets):
            msg = f"Zone {self.zone!r}: street names must be unique"
            raise ValueError(msg)
        object.__setattr__(self, "_by_name", by_name)

    @property
    def max_rows(self) -> int:
        if not self.streets:
            return MAIN_ROWS
        return max(s.last_row for s in self.streets)

    def max_cols(self, row: int) -> int:
        """Column bound for *row* (raises UnmappedRowError outside the table)."""
        if isinstance(resolve(self, row), MainStreet):
            return self.main_cols
        return STREET_COLS

    def street(self, name: str) -> PerpendicularStreet:
        return self._by_name[name]

    def street_for_row(self, row: int) -> PerpendicularStreet | None:
        for street in self.streets:
            if street.contains(row):
                return street
        return None


# ---------------------------------------------------------------------------
# Street descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MainStreet:
    """A row on the main thoroughfare."""

    side: ThoroughfareSide


@dataclass(frozen=True)
class Perpendicular:
    """A row on a perpendicular street."""

    street_name: str
    relative_offset: float
    side_of_street: StreetSide
    side_of_thoroughfare: ThoroughfareSide
    slot_index: int


StreetDescriptor = MainStreet | Perpendicular


def resolve(topology: ZoneTopology, row: int) -> StreetDescriptor:
    """Describe where *row* lives in *topology*.

    Raises:
        UnmappedRowError: *row* is outside every configured range.
    """
    if row == 1:
        return MainStreet(side=ThoroughfareSide.NORTH)
    if row == 2:
        return MainStreet(side=ThoroughfareSide.SOUTH)
    street = topology.street_for_row(row)
    if street is None:
        raise UnmappedRowError(topology.zone, row)
    return Perpendicular(
        street_name=street.name,
        relative_offset=street.axis_offset,
        side_of_street=street.side_of(row),
        side_of_thoroughfare=street.thoroughfare_side,
        slot_index=street.slot_index(row),
    )


# ---------------------------------------------------------------------------
# Built-in zones
# ---------------------------------------------------------------------------

_EAST_ONLY = (StreetSide.EAST,)

WALKING_STREET = ZoneTopology(
    zone="walkingstreet",
    main_cols=24,
    streets=(
        PerpendicularStreet("Diamond", axis_offset=12, width=35, first_row=3, row_count=6),
        PerpendicularStreet(
            "Republic",
            axis_offset=22,
            width=12,
            first_row=9,
            row_count=2,
            layout=LayoutKind.SINGLE_FILE,
            sides=_EAST_ONLY,
            road_tolerance=1.0,
        ),
        PerpendicularStreet(
            "Myst",
            axis_offset=28,
            width=6,
            first_row=11,
            row_count=2,
            layout=LayoutKind.SINGLE_FILE,
            sides=_EAST_ONLY,
            road_tolerance=0.5,
        ),
        PerpendicularStreet("Soi 15", axis_offset=52, width=35, first_row=13, row_count=6),
        PerpendicularStreet("Soi 16", axis_offset=68, width=35, first_row=19, row_count=6),
        PerpendicularStreet(
            "BJ Alley", axis_offset=82, width=25, first_row=25, row_count=6, road_tolerance=1.5
        ),
    ),
)

ZONES: dict[str, ZoneTopology] = {
    t.zone: t
    for t in (
        WALKING_STREET,
        ZoneTopology(zone="main-street", main_cols=10),
        ZoneTopology(zone="soi6", main_cols=20),
        ZoneTopology(zone="soibuakhao", main_cols=18),
        ZoneTopology(zone="soi78", main_cols=16),
        ZoneTopology(zone="boyztown", main_cols=12),
        ZoneTopology(zone="beachroad", main_cols=40),
    )
}


def get_topology(
    zone: str,
    extra: dict[str, ZoneTopology] | None = None,
) -> ZoneTopology:
    """Look up the topology for *zone*; *extra* entries override built-ins."""
    if extra and zone in extra:
        return extra[zone]
    try:
        return ZONES[zone]
    except KeyError:
        known = sorted({*ZONES, *(extra or {})})
        msg = f"Unknown zone {zone!r}. Known zones: {', '.join(known)}"
        raise UnknownZoneError(msg) from None
