"""Built-in toast plugin: user-facing notifications for commit outcomes.

Keeps the most recent toasts in a bounded queue (oldest dropped first),
which is what an editor front end polls to show its notification stack.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import pluggy

hookimpl = pluggy.HookimplMarker("streetgrid")

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOASTS = 6


class ToastKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Toast:
    kind: ToastKind
    message: str


class ToastPlugin:
    """Turns commit hooks into toasts."""

    def __init__(self, max_toasts: int = DEFAULT_MAX_TOASTS) -> None:
        self._toasts: deque[Toast] = deque(maxlen=max_toasts)

    @property
    def toasts(self) -> list[Toast]:
        return list(self._toasts)

    def clear(self) -> None:
        self._toasts.clear()

    def _push(self, kind: ToastKind, message: str) -> None:
        self._toasts.append(Toast(kind=kind, message=message))
        logger.info("toast.%s: %s", kind, message)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    @hookimpl
    def post_commit(
        self,
        entity_id: str,
        action: str,
        positions: dict[str, dict[str, Any]],
    ) -> None:
        if action == "swap":
            self._push(ToastKind.SUCCESS, "Establishments swapped successfully")
        else:
            self._push(ToastKind.SUCCESS, "Establishment moved successfully")

    @hookimpl
    def commit_failed(
        self,
        entity_id: str,
        action: str,
        message: str,
        status: int | None,
    ) -> None:
        self._push(ToastKind.ERROR, message)

    @hookimpl
    def commit_timeout(self, entity_id: str, action: str, timeout: float) -> None:
        self._push(ToastKind.WARNING, "Operation timed out - please try again")
