"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Builds services lazily and centralizes result
emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from streetgrid.domain.grid import Viewport
from streetgrid.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from streetgrid.config.settings import StreetGridSettings
    from streetgrid.domain.topology import ZoneTopology
    from streetgrid.infrastructure.store import JsonMarkerStore
    from streetgrid.plugins.manager import PluginManager
    from streetgrid.services.layout import LayoutService
    from streetgrid.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: StreetGridSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None
        self._extra_zones: dict[str, ZoneTopology] | None = None

        from streetgrid.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from streetgrid.services.telemetry import enable_telemetry

            enable_telemetry()

    # ------------------------------------------------------------------
    # Lazily built collaborators
    # ------------------------------------------------------------------

    @property
    def extra_zones(self) -> dict[str, ZoneTopology]:
        """Configured zone tables (a bad table is a usage error)."""
        if self._extra_zones is None:
            try:
                self._extra_zones = self.settings.extra_topologies()
            except ValueError as exc:
                msg = f"Invalid zone configuration: {exc}"
                raise click.ClickException(msg) from exc
        return self._extra_zones

    @property
    def plugins(self) -> PluginManager:
        if self._plugins is None:
            from streetgrid.plugins.builtins.toast import ToastPlugin
            from streetgrid.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover_and_load()
            if self.settings.plugins.toast:
                self._plugins.register_plugin(
                    ToastPlugin(max_toasts=self.settings.plugins.max_toasts), name="toast"
                )
        return self._plugins

    def viewport(self, width: int | None = None, height: int | None = None) -> Viewport:
        cfg = self.settings.viewport
        return Viewport(width=width or cfg.width, height=height or cfg.height)

    def layout_service(
        self,
        *,
        width: int | None = None,
        height: int | None = None,
        mobile: bool | None = None,
    ) -> LayoutService:
        from streetgrid.services.layout import LayoutService

        return LayoutService(
            self.viewport(width, height),
            mobile=mobile,
            breakpoint=self.settings.editor.mobile_breakpoint,
            extra_zones=self.extra_zones,
        )

    def store(self) -> JsonMarkerStore:
        from streetgrid.infrastructure.store import JsonMarkerStore

        return JsonMarkerStore(self.settings.store_path)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout; warnings go to stderr in human mode.
        * Failure: stderr and exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
