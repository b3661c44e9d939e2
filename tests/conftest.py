"""Shared pytest fixtures and test helpers for streetgrid tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from streetgrid.domain.grid import GridPosition, MarkerEntity, Viewport
from streetgrid.domain.topology import ZONES, ZoneTopology
from streetgrid.domain.types import CategoryKind
from streetgrid.services.telemetry import disable_telemetry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Generator[None]:
    """Undo telemetry and logging set up by CLI invocations (-v, --log-json)."""
    root = logging.getLogger()
    level = root.level
    yield
    disable_telemetry()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("streetgrid").setLevel(logging.NOTSET)


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty temp directory with no config discovery leaking in."""
    monkeypatch.delenv("STREETGRID_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def main_street() -> ZoneTopology:
    return ZONES["main-street"]


@pytest.fixture
def walking_street() -> ZoneTopology:
    return ZONES["walkingstreet"]


@pytest.fixture
def desktop() -> Viewport:
    return Viewport(1000, 600)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def marker(
    entity_id: str,
    zone: str | None = None,
    row: int | None = None,
    col: int | None = None,
    *,
    vip: bool = False,
    category: CategoryKind = CategoryKind.BEER,
) -> MarkerEntity:
    """Build a MarkerEntity; unplaced when *zone* is None."""
    position = GridPosition(zone, row, col) if zone is not None else None  # type: ignore[arg-type]
    return MarkerEntity(
        id=entity_id,
        display_name=entity_id.replace("-", " ").title(),
        category=category,
        position=position,
        vip=vip,
    )
