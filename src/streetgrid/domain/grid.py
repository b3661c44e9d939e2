"""Grid value types: logical cells, pixel positions, viewports and markers.

``GridPosition`` is the only thing ever persisted; ``PixelPosition`` is
derived from it on demand and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field, field_validator

from streetgrid.domain.topology import ZoneTopology
from streetgrid.domain.types import CategoryKind, category_for_id

DEFAULT_MOBILE_BREAKPOINT = 768


class GridBoundsError(ValueError):
    """Raised when a row or column falls outside a zone's grid."""


@dataclass(frozen=True, order=True)
class GridPosition:
    """A logical cell ``(zone, row, col)``; rows and columns are 1-based."""

    zone: str
    row: int
    col: int

    def __str__(self) -> str:
        return f"{self.zone}:{self.row},{self.col}"


@dataclass(frozen=True)
class PixelPosition:
    """Marker center in viewport pixels plus its rendered edge length."""

    x: float
    y: float
    marker_size: int


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            msg = f"Viewport dimensions must be positive, got {self.width}x{self.height}"
            raise ValueError(msg)


def is_mobile(viewport: Viewport, breakpoint: int = DEFAULT_MOBILE_BREAKPOINT) -> bool:
    """Whether *viewport* uses the vertical (mobile) layout."""
    return viewport.width < breakpoint


def validate_position(topology: ZoneTopology, row: int, col: int) -> None:
    """Raise GridBoundsError if ``(row, col)`` is not a cell of *topology*.

    Messages follow the commit endpoint's wording so callers can surface
    them unchanged.
    """
    if not 1 <= row <= topology.max_rows:
        msg = (
            f"Row position out of bounds: {row} "
            f"(zone {topology.zone} has {topology.max_rows} rows)"
        )
        raise GridBoundsError(msg)
    max_cols = topology.max_cols(row)
    if not 1 <= col <= max_cols:
        msg = f"Column position out of bounds: {col} (row {row} allows {max_cols})"
        raise GridBoundsError(msg)


class MarkerEntity(BaseModel):
    """An establishment as supplied by the entity source.

    ``position`` is None for establishments that have not been placed yet.
    """

    model_config = {"frozen": True}

    id: str
    display_name: str
    category: CategoryKind = CategoryKind.BEER
    position: GridPosition | None = None
    vip: bool = False
    tags: list[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _category_from_id(cls, value: object) -> object:
        """Accept establishment category ids (``cat-002``, ``2``) as well as names."""
        if isinstance(value, CategoryKind) or not isinstance(value, (str, int)):
            return value
        if value in CategoryKind:
            return value
        return category_for_id(value)

    def at(self, position: GridPosition | None) -> MarkerEntity:
        """Return a copy placed at *position*."""
        return self.model_copy(update={"position": position})
