"""Marker storage: the authoritative entity list.

INVARIANT: The store holds logical grid positions only; pixel positions
are always recomputed from the current viewport.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from streetgrid.domain.grid import MarkerEntity


class MarkerStore(Protocol):
    """Anything that can load and replace the full marker list."""

    def load(self) -> list[MarkerEntity]: ...

    def save(self, markers: list[MarkerEntity]) -> None: ...


class MarkerFile(BaseModel):
    """On-disk layout of a marker store file."""

    markers: list[MarkerEntity] = Field(default_factory=list)


class JsonMarkerStore:
    """Markers persisted as ``{"markers": [...]}`` in a JSON file.

    A missing file reads as an empty store. Writes go through a temp file
    in the same directory and ``os.replace`` so readers never see a
    partially written file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[MarkerEntity]:
        if not self.path.is_file():
            return []
        raw = self.path.read_text(encoding="utf-8")
        return MarkerFile.model_validate_json(raw).markers

    def save(self, markers: list[MarkerEntity]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = MarkerFile(markers=markers).model_dump_json(indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class MemoryMarkerStore:
    """In-process store, used by tests and scripted sessions."""

    def __init__(self, markers: list[MarkerEntity] | None = None) -> None:
        self._markers = list(markers or [])

    def load(self) -> list[MarkerEntity]:
        return list(self._markers)

    def save(self, markers: list[MarkerEntity]) -> None:
        self._markers = list(markers)
