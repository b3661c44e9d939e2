"""Orientation and classification enums shared across the grid engine."""

from __future__ import annotations

from enum import StrEnum


class ThoroughfareSide(StrEnum):
    """Side of the main thoroughfare (north = low across coordinate)."""

    NORTH = "north"
    SOUTH = "south"


class StreetSide(StrEnum):
    """Side of a perpendicular street (west = low along coordinate)."""

    WEST = "west"
    EAST = "east"


class LayoutKind(StrEnum):
    """How the rows of a perpendicular street are arranged along its segment."""

    PAIRED = "paired"
    SINGLE_FILE = "single_file"


class DropAction(StrEnum):
    """What dropping the dragged marker at the current pointer would do."""

    MOVE = "move"
    SWAP = "swap"
    BLOCKED = "blocked"
    NONE = "none"


class CategoryKind(StrEnum):
    """Establishment categories rendered on the map."""

    GOGO = "gogo"
    BEER = "beer"
    PUB = "pub"
    MASSAGE = "massage"
    NIGHTCLUB = "nightclub"


# Category ids used by the establishment records (legacy string and numeric keys).
CATEGORY_IDS: dict[str | int, CategoryKind] = {
    "cat-001": CategoryKind.BEER,
    "cat-002": CategoryKind.GOGO,
    "cat-003": CategoryKind.MASSAGE,
    "cat-004": CategoryKind.NIGHTCLUB,
    1: CategoryKind.BEER,
    2: CategoryKind.GOGO,
    3: CategoryKind.MASSAGE,
    4: CategoryKind.NIGHTCLUB,
}


def category_for_id(category_id: str | int | None) -> CategoryKind:
    """Map an establishment category id to a marker category (beer if unknown)."""
    if category_id is None:
        return CategoryKind.BEER
    return CATEGORY_IDS.get(category_id, CategoryKind.BEER)
