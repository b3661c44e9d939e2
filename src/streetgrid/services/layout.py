"""LayoutService — read-only layout queries for adapters.

Wraps the pure geometry functions and translates domain exceptions into
ServiceResult error codes. Every operation takes the zone by name so the
CLI can address built-in and configured zones alike.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from streetgrid.domain.grid import GridBoundsError, MarkerEntity, Viewport, is_mobile
from streetgrid.domain.hit_test import from_pixel, is_blocked
from streetgrid.domain.layout import strategy_for, to_pixel
from streetgrid.domain.topology import (
    ZONES,
    MainStreet,
    UnknownZoneError,
    UnmappedRowError,
    ZoneTopology,
    get_topology,
    resolve,
)
from streetgrid.services.base import BaseService
from streetgrid.services.overlay import OptimisticStore
from streetgrid.services.result import ErrorCode, ServiceResult
from streetgrid.services.telemetry import trace_span, traced


class LayoutService(BaseService):
    """Geometry queries over a fixed viewport.

    Args:
        viewport: Canvas the queries are answered for.
        mobile: Layout class; derived from *breakpoint* when None.
        extra_zones: Configured zones, overriding built-ins of the same name.
    """

    def __init__(
        self,
        viewport: Viewport,
        *,
        mobile: bool | None = None,
        breakpoint: int = 768,
        extra_zones: dict[str, ZoneTopology] | None = None,
    ) -> None:
        super().__init__()
        self.viewport = viewport
        self.mobile = is_mobile(viewport, breakpoint) if mobile is None else mobile
        self._extra = extra_zones or {}

    def topology(self, zone: str) -> ZoneTopology:
        """Raises UnknownZoneError."""
        return get_topology(zone, self._extra)

    def _unknown_zone(self, op: str, zone: str, exc: UnknownZoneError) -> ServiceResult:
        return ServiceResult.failure(
            op, ErrorCode.UNKNOWN_ZONE, str(exc.args[0]), detail={"zone": zone}
        )

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    @traced
    def list_zones(self) -> ServiceResult:
        names = sorted({*ZONES, *self._extra})
        items = []
        for name in names:
            topo = self.topology(name)
            items.append(
                {
                    "zone": name,
                    "main_cols": topo.main_cols,
                    "max_rows": topo.max_rows,
                    "streets": len(topo.streets),
                    "configured": name in self._extra,
                }
            )
        return ServiceResult.success("list_zones", {"items": items, "count": len(items)})

    @traced
    def describe(self, zone: str) -> ServiceResult:
        op = "describe_topology"
        try:
            topo = self.topology(zone)
        except UnknownZoneError as exc:
            return self._unknown_zone(op, zone, exc)

        strategy = strategy_for(self.mobile)
        rows: list[dict[str, Any]] = []
        for row in range(1, topo.max_rows + 1):
            descriptor = resolve(topo, row)
            entry: dict[str, Any] = {"row": row, "cols": topo.max_cols(row)}
            if isinstance(descriptor, MainStreet):
                entry.update(kind="main", side=str(descriptor.side))
            else:
                entry.update(
                    kind="street",
                    street=descriptor.street_name,
                    side=str(descriptor.side_of_street),
                    thoroughfare_side=str(descriptor.side_of_thoroughfare),
                    slot=descriptor.slot_index,
                )
            rows.append(entry)

        streets = [
            {
                "name": s.name,
                "axis_offset": s.axis_offset,
                "axis_px": round(strategy.street_axis(s, self.viewport), 1),
                "width": s.width,
                "rows": [s.first_row, s.last_row],
                "layout": str(s.layout),
                "sides": [str(side) for side in s.sides],
                "thoroughfare_side": str(s.thoroughfare_side),
            }
            for s in topo.streets
        ]
        return ServiceResult.success(
            op,
            {
                "zone": topo.zone,
                "main_cols": topo.main_cols,
                "max_rows": topo.max_rows,
                "layout": strategy.name,
                "streets": streets,
                "rows": rows,
            },
        )

    # ------------------------------------------------------------------
    # Forward / inverse mapping
    # ------------------------------------------------------------------

    @traced
    def pixel(self, zone: str, row: int, col: int, *, vip: bool = False) -> ServiceResult:
        op = "to_pixel"
        try:
            topo = self.topology(zone)
            pixel = to_pixel(topo, row, col, mobile=self.mobile, viewport=self.viewport, vip=vip)
        except UnknownZoneError as exc:
            return self._unknown_zone(op, zone, exc)
        except UnmappedRowError as exc:
            return ServiceResult.failure(
                op, ErrorCode.UNMAPPED_ROW, str(exc), detail={"row": row}
            )
        except GridBoundsError as exc:
            return ServiceResult.failure(
                op, ErrorCode.OUT_OF_BOUNDS, str(exc), detail={"row": row, "col": col}
            )
        return ServiceResult.success(
            op,
            {
                "zone": zone,
                "row": row,
                "col": col,
                "x": round(pixel.x, 2),
                "y": round(pixel.y, 2),
                "marker_size": pixel.marker_size,
                "layout": strategy_for(self.mobile).name,
            },
        )

    @traced(budget_ms=16)
    def hit(self, zone: str, x: float, y: float) -> ServiceResult:
        op = "from_pixel"
        try:
            topo = self.topology(zone)
        except UnknownZoneError as exc:
            return self._unknown_zone(op, zone, exc)

        blocked = is_blocked(topo, x, y, self.viewport, mobile=self.mobile)
        cell = None if blocked else from_pixel(topo, x, y, self.viewport, mobile=self.mobile)
        if cell is None:
            return ServiceResult.failure(
                op,
                ErrorCode.NO_SLOT,
                "Point is on a road" if blocked else "No slot at this point",
                detail={"x": x, "y": y, "blocked": blocked},
            )
        return ServiceResult.success(op, {**asdict(cell), "x": x, "y": y, "blocked": False})

    @traced
    def check(self, zone: str) -> ServiceResult:
        """Verify that every cell of *zone* maps back to itself."""
        op = "check_round_trip"
        try:
            topo = self.topology(zone)
        except UnknownZoneError as exc:
            return self._unknown_zone(op, zone, exc)

        mismatches: list[dict[str, Any]] = []
        cells = 0
        with trace_span("round_trip"):
            for row in range(1, topo.max_rows + 1):
                for col in range(1, topo.max_cols(row) + 1):
                    cells += 1
                    pixel = to_pixel(topo, row, col, mobile=self.mobile, viewport=self.viewport)
                    back = from_pixel(topo, pixel.x, pixel.y, self.viewport, mobile=self.mobile)
                    if back is None or (back.row, back.col) != (row, col):
                        mismatches.append(
                            {
                                "row": row,
                                "col": col,
                                "x": round(pixel.x, 2),
                                "y": round(pixel.y, 2),
                                "got": asdict(back) if back else None,
                            }
                        )

        data = {
            "zone": zone,
            "cells": cells,
            "mismatches": mismatches,
            "viewport": asdict(self.viewport),
            "layout": strategy_for(self.mobile).name,
        }
        if mismatches:
            return ServiceResult.failure(
                op,
                ErrorCode.NO_SLOT,
                f"{len(mismatches)} of {cells} cells do not round-trip",
                data=data,
            )
        return ServiceResult.success(op, data)

    @traced
    def render(
        self,
        zone: str,
        entities: list[MarkerEntity],
        overlay: OptimisticStore | None = None,
    ) -> ServiceResult:
        """Pixel positions of every marker placed in *zone*."""
        op = "render"
        try:
            topo = self.topology(zone)
        except UnknownZoneError as exc:
            return self._unknown_zone(op, zone, exc)

        view = (overlay or OptimisticStore()).render_view(entities, zone)
        items: list[dict[str, Any]] = []
        warnings: list[str] = []
        for marker in view:
            pos = marker.position
            try:
                pixel = to_pixel(
                    topo,
                    pos.row,
                    pos.col,
                    mobile=self.mobile,
                    viewport=self.viewport,
                    vip=marker.vip,
                )
            except (GridBoundsError, UnmappedRowError) as exc:
                warnings.append(f"{marker.entity_id}: {exc}")
                continue
            items.append(
                {
                    "id": marker.entity_id,
                    "name": marker.display_name,
                    "category": str(marker.category),
                    "row": pos.row,
                    "col": pos.col,
                    "x": round(pixel.x, 2),
                    "y": round(pixel.y, 2),
                    "marker_size": pixel.marker_size,
                    "vip": marker.vip,
                    "pending": marker.pending,
                }
            )
        return ServiceResult.success(
            op, {"zone": zone, "items": items, "count": len(items)}, warnings=warnings
        )
