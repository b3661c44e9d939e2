"""Subcommand modules for streetgrid.

``register_commands()`` uses deferred imports to keep ``streetgrid --help``
fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``layout`` group and the standalone commands."""
    # --- Groups ---
    from streetgrid.commands.layout import layout

    cli.add_command(layout)

    # --- Standalone commands ---
    from streetgrid.commands.drag import drag
    from streetgrid.commands.topology import topology
    from streetgrid.commands.zones import zones

    cli.add_command(zones)
    cli.add_command(topology)
    cli.add_command(drag)
