"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, streetgrid.toml only contains
overrides. An empty file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from streetgrid.domain.topology import PerpendicularStreet, ZoneTopology
from streetgrid.domain.types import LayoutKind, StreetSide, ThoroughfareSide

# --- streetgrid.toml sections ---


class EditorConfig(BaseModel):
    """[editor] section."""

    model_config = {"frozen": True}

    throttle_ms: int = Field(default=16, ge=0)
    lock_ms: int = Field(default=500, ge=0)
    commit_timeout: float = Field(default=10.0, gt=0)
    mobile_breakpoint: int = Field(default=768, gt=0)


class ViewportConfig(BaseModel):
    """[viewport] section — default canvas for CLI commands."""

    model_config = {"frozen": True}

    width: int = Field(default=1200, gt=0)
    height: int = Field(default=800, gt=0)


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    path: str = "markers.json"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    toast: bool = True
    max_toasts: int = Field(default=6, ge=1)


class StreetConfig(BaseModel):
    """One ``[[zones.<name>.streets]]`` entry."""

    model_config = {"frozen": True}

    name: str
    axis_offset: float
    width: float
    first_row: int
    row_count: int
    layout: LayoutKind = LayoutKind.PAIRED
    thoroughfare_side: ThoroughfareSide = ThoroughfareSide.NORTH
    sides: list[StreetSide] = Field(default_factory=lambda: [StreetSide.WEST, StreetSide.EAST])
    road_tolerance: float = 2.0

    def to_street(self) -> PerpendicularStreet:
        return PerpendicularStreet(
            name=self.name,
            axis_offset=self.axis_offset,
            width=self.width,
            first_row=self.first_row,
            row_count=self.row_count,
            layout=self.layout,
            thoroughfare_side=self.thoroughfare_side,
            sides=tuple(self.sides),
            road_tolerance=self.road_tolerance,
        )


class ZoneConfig(BaseModel):
    """``[zones.<name>]`` section declaring an extra zone."""

    model_config = {"frozen": True}

    main_cols: int = Field(gt=0)
    thoroughfare_tolerance: float = 2.0
    streets: list[StreetConfig] = Field(default_factory=list)

    def to_topology(self, zone: str) -> ZoneTopology:
        """Build the validated topology table (raises ValueError if inconsistent)."""
        return ZoneTopology(
            zone=zone,
            main_cols=self.main_cols,
            streets=tuple(s.to_street() for s in self.streets),
            thoroughfare_tolerance=self.thoroughfare_tolerance,
        )
