"""Tests for LayoutService."""

import pytest

from streetgrid.domain.grid import GridPosition, Viewport
from streetgrid.domain.topology import ZONES, PerpendicularStreet, ZoneTopology
from streetgrid.services.layout import LayoutService
from streetgrid.services.overlay import OptimisticStore
from streetgrid.services.result import ErrorCode
from tests.conftest import marker


@pytest.fixture
def service() -> LayoutService:
    return LayoutService(Viewport(1000, 600))


class TestListZones:
    def test_builtin_zones(self, service: LayoutService) -> None:
        result = service.list_zones()
        assert result.ok
        assert result.data["count"] == len(ZONES)
        zones = {item["zone"]: item for item in result.data["items"]}
        assert zones["walkingstreet"]["streets"] == 6
        assert zones["walkingstreet"]["max_rows"] == 30
        assert not zones["soi6"]["configured"]

    def test_configured_zone_listed(self) -> None:
        extra = {"pier": ZoneTopology(zone="pier", main_cols=5)}
        result = LayoutService(Viewport(1000, 600), extra_zones=extra).list_zones()
        zones = {item["zone"]: item for item in result.data["items"]}
        assert zones["pier"]["configured"]
        assert [i["zone"] for i in result.data["items"]] == sorted(zones)


class TestDescribe:
    def test_walking_street(self) -> None:
        result = LayoutService(Viewport(1200, 800)).describe("walkingstreet")
        assert result.ok
        data = result.data
        assert data["layout"] == "desktop"
        assert len(data["rows"]) == 30
        diamond = data["streets"][0]
        assert diamond["name"] == "Diamond"
        assert diamond["axis_px"] == 144
        assert diamond["rows"] == [3, 8]
        assert data["rows"][0] == {"row": 1, "cols": 24, "kind": "main", "side": "north"}
        assert data["rows"][9]["street"] == "Republic"

    def test_unknown_zone(self, service: LayoutService) -> None:
        result = service.describe("atlantis")
        assert result.error is not None
        assert result.error.code == ErrorCode.UNKNOWN_ZONE
        assert result.error.detail == {"zone": "atlantis"}


class TestPixel:
    def test_main_street(self, service: LayoutService) -> None:
        result = service.pixel("main-street", 1, 3)
        assert result.ok
        assert result.data["x"] == 262.5
        assert result.data["y"] == 230
        assert result.data["marker_size"] == 45
        assert result.data["layout"] == "desktop"

    def test_vip(self, service: LayoutService) -> None:
        assert service.pixel("main-street", 1, 3, vip=True).data["marker_size"] == 61

    def test_out_of_bounds(self, service: LayoutService) -> None:
        result = service.pixel("main-street", 1, 11)
        assert result.error is not None
        assert result.error.code == ErrorCode.OUT_OF_BOUNDS
        assert "Column position out of bounds" in result.error.message

    def test_unknown_zone(self, service: LayoutService) -> None:
        result = service.pixel("atlantis", 1, 1)
        assert result.error is not None
        assert result.error.code == ErrorCode.UNKNOWN_ZONE

    def test_mobile_from_breakpoint(self) -> None:
        result = LayoutService(Viewport(375, 700)).pixel("walkingstreet", 1, 1)
        assert result.data["layout"] == "mobile"

    def test_forced_layout(self) -> None:
        result = LayoutService(Viewport(375, 700), mobile=False).pixel("walkingstreet", 1, 1)
        assert result.data["layout"] == "desktop"


class TestHit:
    def test_slot(self, service: LayoutService) -> None:
        result = service.hit("main-street", 262.5, 230)
        assert result.ok
        assert (result.data["zone"], result.data["row"], result.data["col"]) == (
            "main-street",
            1,
            3,
        )

    def test_road(self, service: LayoutService) -> None:
        result = service.hit("main-street", 262.5, 300)
        assert result.error is not None
        assert result.error.code == ErrorCode.NO_SLOT
        assert result.error.detail["blocked"] is True

    def test_gap(self, service: LayoutService) -> None:
        result = service.hit("main-street", 120, 230)
        assert result.error is not None
        assert result.error.detail["blocked"] is False


class TestCheck:
    @pytest.mark.parametrize("zone", sorted(ZONES))
    def test_builtin_zones_round_trip(self, service: LayoutService, zone: str) -> None:
        result = service.check(zone)
        assert result.ok, result.data["mismatches"]
        assert result.data["mismatches"] == []

    def test_cell_count(self, service: LayoutService) -> None:
        assert service.check("walkingstreet").data["cells"] == 2 * 24 + 28

    def test_reports_mismatches(self) -> None:
        # A and B share an axis, so every B cell resolves to the A cell drawn under it.
        crowded = ZoneTopology(
            zone="crowded",
            main_cols=4,
            streets=(
                PerpendicularStreet("A", axis_offset=50, width=20, first_row=3, row_count=2),
                PerpendicularStreet("B", axis_offset=50, width=20, first_row=5, row_count=2),
            ),
        )
        service = LayoutService(Viewport(1000, 600), extra_zones={"crowded": crowded})
        result = service.check("crowded")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.NO_SLOT
        assert {(m["row"], m["col"]) for m in result.data["mismatches"]} == {(5, 1), (6, 1)}


class TestRender:
    def test_markers_with_pixels(self, service: LayoutService) -> None:
        entities = [
            marker("a", "main-street", 1, 3, vip=True),
            marker("b", "soi6", 1, 1),
            marker("c"),
        ]
        result = service.render("main-street", entities)
        assert result.ok
        assert result.data["count"] == 1
        item = result.data["items"][0]
        assert item["id"] == "a"
        assert (item["x"], item["y"]) == (262.5, 230)
        assert item["marker_size"] == 61
        assert item["pending"] is False

    def test_overlay_applied(self, service: LayoutService) -> None:
        overlay = OptimisticStore()
        overlay.apply("a", GridPosition("main-street", 2, 5))
        result = service.render("main-street", [marker("a", "main-street", 1, 3)], overlay)
        item = result.data["items"][0]
        assert (item["row"], item["col"], item["pending"]) == (2, 5, True)
        assert (item["x"], item["y"]) == (452.5, 370)

    def test_out_of_bounds_marker_is_a_warning(self, service: LayoutService) -> None:
        result = service.render("main-street", [marker("a", "main-street", 1, 40)])
        assert result.ok
        assert result.data["count"] == 0
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("a: Column position out of bounds")
