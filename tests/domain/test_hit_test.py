"""Tests for the inverse mapper and the blocked-region check."""

import pytest

from streetgrid.domain.grid import GridPosition, Viewport
from streetgrid.domain.hit_test import from_pixel, is_blocked
from streetgrid.domain.layout import to_pixel
from streetgrid.domain.topology import ZONES, ZoneTopology

VIEWPORTS = [
    (Viewport(1000, 600), False),
    (Viewport(1200, 800), False),
    (Viewport(768, 600), False),
    (Viewport(375, 700), True),
    (Viewport(414, 896), True),
    (Viewport(320, 480), True),
    (Viewport(667, 375), True),
    (Viewport(740, 360), True),
]


def _cells(topology: ZoneTopology):
    for row in range(1, topology.max_rows + 1):
        for col in range(1, topology.max_cols(row) + 1):
            yield row, col


@pytest.mark.parametrize("zone", sorted(ZONES))
@pytest.mark.parametrize(
    "viewport,mobile",
    VIEWPORTS,
    ids=[f"{vp.width:g}x{vp.height:g}" for vp, _ in VIEWPORTS],
)
def test_every_cell_round_trips(zone: str, viewport: Viewport, mobile: bool) -> None:
    topology = ZONES[zone]
    for row, col in _cells(topology):
        pixel = to_pixel(topology, row, col, mobile=mobile, viewport=viewport)
        assert not is_blocked(topology, pixel.x, pixel.y, viewport, mobile=mobile), (row, col)
        assert from_pixel(topology, pixel.x, pixel.y, viewport, mobile=mobile) == GridPosition(
            zone, row, col
        )


class TestMainStreet:
    def test_thoroughfare_center_is_blocked(
        self, main_street: ZoneTopology, desktop: Viewport
    ) -> None:
        assert is_blocked(main_street, 262.5, 300, desktop, mobile=False)
        assert from_pixel(main_street, 262.5, 300, desktop, mobile=False) is None

    def test_road_edge_is_not_a_slot(self, main_street: ZoneTopology, desktop: Viewport) -> None:
        assert not is_blocked(main_street, 262.5, 315, desktop, mobile=False)
        assert from_pixel(main_street, 262.5, 315, desktop, mobile=False) is None

    def test_gap_between_columns(self, main_street: ZoneTopology, desktop: Viewport) -> None:
        assert from_pixel(main_street, 120, 230, desktop, mobile=False) is None

    def test_near_a_slot_snaps_to_it(self, main_street: ZoneTopology, desktop: Viewport) -> None:
        assert from_pixel(main_street, 270, 240, desktop, mobile=False) == GridPosition(
            "main-street", 1, 3
        )

    def test_south_of_centerline(self, main_street: ZoneTopology, desktop: Viewport) -> None:
        assert from_pixel(main_street, 262.5, 390, desktop, mobile=False) == GridPosition(
            "main-street", 2, 3
        )


class TestWalkingStreet:
    @pytest.fixture
    def viewport(self) -> Viewport:
        return Viewport(1200, 800)

    def test_street_axis_is_blocked(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        assert is_blocked(walking_street, 144, 100, viewport, mobile=False)
        assert from_pixel(walking_street, 144, 100, viewport, mobile=False) is None

    def test_narrow_street_axis_is_blocked(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        assert is_blocked(walking_street, 264, 103, viewport, mobile=False)

    def test_equidistant_between_slots(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        assert not is_blocked(walking_street, 116.5, 115.875, viewport, mobile=False)
        assert from_pixel(walking_street, 116.5, 115.875, viewport, mobile=False) is None

    def test_side_without_slots(self, walking_street: ZoneTopology, viewport: Viewport) -> None:
        assert not is_blocked(walking_street, 248, 103, viewport, mobile=False)
        assert from_pixel(walking_street, 248, 103, viewport, mobile=False) is None

    def test_street_only_blocks_its_own_segment(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        assert not is_blocked(walking_street, 144, 500, viewport, mobile=False)
        assert from_pixel(walking_street, 144, 500, viewport, mobile=False) == GridPosition(
            "walkingstreet", 2, 3
        )

    def test_between_segment_end_and_main_lane(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        assert from_pixel(walking_street, 144, 320, viewport, mobile=False) == GridPosition(
            "walkingstreet", 1, 3
        )

    def test_street_slot(self, walking_street: ZoneTopology, viewport: Viewport) -> None:
        assert from_pixel(walking_street, 175, 160, viewport, mobile=False) == GridPosition(
            "walkingstreet", 6, 1
        )


class TestMobile:
    def test_vertical_road_is_blocked(self, walking_street: ZoneTopology) -> None:
        viewport = Viewport(375, 700)
        assert is_blocked(walking_street, 187.5, 300, viewport, mobile=True)
        assert from_pixel(walking_street, 187.5, 300, viewport, mobile=True) is None

    def test_desktop_pixel_means_something_else_on_mobile(
        self, walking_street: ZoneTopology
    ) -> None:
        viewport = Viewport(375, 700)
        pixel = to_pixel(walking_street, 2, 4, mobile=True, viewport=viewport)
        assert from_pixel(walking_street, pixel.x, pixel.y, viewport, mobile=True) == GridPosition(
            "walkingstreet", 2, 4
        )
        desktop_cell = from_pixel(walking_street, pixel.x, pixel.y, viewport, mobile=False)
        assert desktop_cell != GridPosition("walkingstreet", 2, 4)

    @pytest.mark.parametrize("viewport", [Viewport(667, 375), Viewport(740, 360)])
    def test_landscape_phone_crowded_streets(
        self, walking_street: ZoneTopology, viewport: Viewport
    ) -> None:
        # Soi 16 and BJ Alley sit 14% apart; on a short screen their nominal lanes would cross.
        for row in (23, 24, 25, 26):
            pixel = to_pixel(walking_street, row, 1, mobile=True, viewport=viewport)
            assert from_pixel(walking_street, pixel.x, pixel.y, viewport, mobile=True) == (
                GridPosition("walkingstreet", row, 1)
            )
