"""Pluggy hook specifications for drag-commit notifications.

Hooks are called synchronously from the drag controller once a commit
resolves. Positions are passed as plain dicts so plugins need not import
streetgrid types.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("streetgrid")


class StreetGridHookSpec:
    """Hook specifications for the streetgrid plugin system."""

    @hookspec
    def post_commit(
        self,
        entity_id: str,
        action: str,
        positions: dict[str, dict[str, Any]],
    ) -> None:
        """Called after the commit endpoint accepted a move or swap."""

    @hookspec
    def commit_failed(
        self,
        entity_id: str,
        action: str,
        message: str,
        status: int | None,
    ) -> None:
        """Called after a commit was rejected or could not be delivered."""

    @hookspec
    def commit_timeout(
        self,
        entity_id: str,
        action: str,
        timeout: float,
    ) -> None:
        """Called when a commit did not resolve within the watchdog timeout."""
