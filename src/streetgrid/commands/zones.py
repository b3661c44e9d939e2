"""Command: list available zones."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from streetgrid.commands._base import SgCommand

if TYPE_CHECKING:
    from streetgrid.commands._context import AppContext


@click.command(
    cls=SgCommand,
    examples="""\
  streetgrid zones
  streetgrid --json zones
  streetgrid -q zones""",
)
@click.pass_obj
def zones(app: AppContext) -> None:
    """List built-in and configured zones."""
    app.emit(app.layout_service().list_zones())
