"""Command group: forward/inverse position mapping and marker rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from streetgrid.commands._base import SgGroup, viewport_options

if TYPE_CHECKING:
    from streetgrid.commands._context import AppContext


@click.group(
    cls=SgGroup,
    examples="""\
  streetgrid layout pixel main-street 1 7
  streetgrid layout hit walkingstreet 640 300
  streetgrid layout check walkingstreet --width 375 --height 700
  streetgrid layout render walkingstreet""",
)
def layout() -> None:
    """Map grid cells to pixels and back."""


@layout.command(
    examples="""\
  streetgrid layout pixel main-street 1 7
  streetgrid layout pixel walkingstreet 13 1 --vip
  streetgrid --json layout pixel walkingstreet 2 24 --mobile""",
)
@click.argument("zone")
@click.argument("row", type=int)
@click.argument("col", type=int)
@click.option("--vip", is_flag=True, help="Size the marker as a VIP marker.")
@viewport_options
@click.pass_obj
def pixel(
    app: AppContext,
    zone: str,
    row: int,
    col: int,
    vip: bool,
    width: int | None,
    height: int | None,
    mobile: bool | None,
) -> None:
    """Pixel center and marker size of cell ROW,COL in ZONE."""
    svc = app.layout_service(width=width, height=height, mobile=mobile)
    app.emit(svc.pixel(zone, row, col, vip=vip))


@layout.command(
    examples="""\
  streetgrid layout hit main-street 642.5 330
  streetgrid layout hit walkingstreet 120 50 --width 1000 --height 600""",
)
@click.argument("zone")
@click.argument("x", type=float)
@click.argument("y", type=float)
@viewport_options
@click.pass_obj
def hit(
    app: AppContext,
    zone: str,
    x: float,
    y: float,
    width: int | None,
    height: int | None,
    mobile: bool | None,
) -> None:
    """Grid cell under point X,Y in ZONE."""
    svc = app.layout_service(width=width, height=height, mobile=mobile)
    app.emit(svc.hit(zone, x, y))


@layout.command(
    examples="""\
  streetgrid layout check walkingstreet
  streetgrid layout check walkingstreet --width 375 --height 700""",
)
@click.argument("zone")
@viewport_options
@click.pass_obj
def check(
    app: AppContext,
    zone: str,
    width: int | None,
    height: int | None,
    mobile: bool | None,
) -> None:
    """Verify every cell of ZONE maps back to itself."""
    svc = app.layout_service(width=width, height=height, mobile=mobile)
    app.emit(svc.check(zone))


@layout.command(
    examples="""\
  streetgrid layout render walkingstreet
  streetgrid -q layout render walkingstreet""",
)
@click.argument("zone")
@viewport_options
@click.pass_obj
def render(
    app: AppContext,
    zone: str,
    width: int | None,
    height: int | None,
    mobile: bool | None,
) -> None:
    """Pixel positions of the stored markers placed in ZONE."""
    svc = app.layout_service(width=width, height=height, mobile=mobile)
    app.emit(svc.render(zone, app.store().load()))
