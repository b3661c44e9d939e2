"""Command: scripted drag-and-drop of one marker against the marker store."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import TYPE_CHECKING

import click

from streetgrid.commands._base import SgCommand, viewport_options

if TYPE_CHECKING:
    from streetgrid.commands._context import AppContext


@click.command(
    cls=SgCommand,
    examples="""\
  streetgrid drag main-street bar-3 642.5 330 --width 1000 --height 660
  streetgrid drag walkingstreet est-17 120 60
  streetgrid --json drag walkingstreet est-17 200 350 --mobile --width 375 --height 700""",
)
@click.argument("zone")
@click.argument("entity_id")
@click.argument("x", type=float)
@click.argument("y", type=float)
@viewport_options
@click.option(
    "--latency",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Simulated commit round-trip in seconds.",
)
@click.pass_obj
def drag(
    app: AppContext,
    zone: str,
    entity_id: str,
    x: float,
    y: float,
    width: int | None,
    height: int | None,
    mobile: bool | None,
    latency: float,
) -> None:
    """Pick up ENTITY_ID in ZONE and drop it at point X,Y.

    Empty cells produce a move, occupied cells a swap. The change is
    committed to the marker store.
    """
    from streetgrid.domain.topology import UnknownZoneError, get_topology
    from streetgrid.infrastructure.commit import LocalCommitEndpoint
    from streetgrid.plugins.builtins.toast import ToastPlugin
    from streetgrid.services.drag import DragController
    from streetgrid.services.result import ErrorCode, ServiceResult

    extra = app.extra_zones
    try:
        topo = get_topology(zone, extra)
    except UnknownZoneError as exc:
        app.emit(
            ServiceResult.failure(
                "drop", ErrorCode.UNKNOWN_ZONE, str(exc.args[0]), detail={"zone": zone}
            )
        )
        return

    store = app.store()
    endpoint = LocalCommitEndpoint(
        store,
        topologies=lambda name: get_topology(name, extra),
        delay=latency,
    )
    controller = DragController(
        topo,
        endpoint,
        app.viewport(width, height),
        mobile=mobile,
        config=app.settings.editor,
        plugins=app.plugins,
    )
    controller.set_entities(store.load())

    picked = controller.pick_up(entity_id)
    if not picked.ok:
        app.emit(picked)
        return

    controller.pointer_move(x, y)
    result = asyncio.run(controller.drop())
    controller.set_entities(store.load())

    toast_plugin = app.plugins.get_plugin("toast")
    if isinstance(toast_plugin, ToastPlugin):
        toasts = [asdict(t) for t in toast_plugin.toasts]
        result = result.model_copy(update={"data": {**result.data, "toasts": toasts}})
    app.emit(result)
