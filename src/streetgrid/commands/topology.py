"""Command: describe a zone's street topology."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from streetgrid.commands._base import SgCommand, viewport_options

if TYPE_CHECKING:
    from streetgrid.commands._context import AppContext


@click.command(
    cls=SgCommand,
    examples="""\
  streetgrid topology walkingstreet
  streetgrid -v topology walkingstreet
  streetgrid topology walkingstreet --width 375 --height 700""",
)
@click.argument("zone")
@viewport_options
@click.pass_obj
def topology(
    app: AppContext,
    zone: str,
    width: int | None,
    height: int | None,
    mobile: bool | None,
) -> None:
    """Show the perpendicular streets and row mapping of ZONE."""
    svc = app.layout_service(width=width, height=height, mobile=mobile)
    app.emit(svc.describe(zone))
