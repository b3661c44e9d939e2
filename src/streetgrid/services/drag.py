"""Drag interaction state machine.

One :class:`DragController` owns the editing session of a zone: the
authoritative entity list, the optimistic overlay, the occupancy index and
the current :data:`DragSession`. The session is a tagged variant, so a
"dragging" state without a dragged entity cannot be represented::

    Idle --pick_up--> Dragging --drop--> Resolving --response--> Idle
      ^                  |                   |
      +----cancel--------+-------cancel------+

Everything is synchronous except the commit round-trip awaited by
:meth:`DragController.drop`. A response that arrives after its session was
cancelled or timed out is discarded by session id.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, replace
from typing import Any

from streetgrid.config.models import EditorConfig
from streetgrid.domain.grid import (
    GridBoundsError,
    GridPosition,
    MarkerEntity,
    PixelPosition,
    Viewport,
    is_mobile,
)
from streetgrid.domain.hit_test import from_pixel, is_blocked
from streetgrid.domain.layout import to_pixel
from streetgrid.domain.navigation import ArrowKey, next_marker
from streetgrid.domain.occupancy import OccupancyIndex
from streetgrid.domain.topology import UnmappedRowError, ZoneTopology
from streetgrid.domain.types import DropAction
from streetgrid.infrastructure.commit import CommitEndpoint, CommitRequest, CommitResponse
from streetgrid.plugins.manager import PluginManager
from streetgrid.services.base import BaseService
from streetgrid.services.overlay import OptimisticStore, RenderedMarker
from streetgrid.services.result import ErrorCode, ServiceResult
from streetgrid.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)

# Budget for resolving one pointer sample (one animation frame).
FRAME_BUDGET_MS = 16.0


# ── Session states ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Idle:
    """No drag in progress."""


@dataclass(frozen=True)
class Dragging:
    """A marker is being dragged.

    Attributes:
        origin: Cell the marker was picked up from.
        pointer: Last pointer sample, None before the first move.
        candidate: Cell under the pointer at the last resolution.
        action: What dropping now would do.
        swap_with: Occupant of ``candidate`` when ``action`` is swap.
    """

    session_id: int
    entity_id: str
    origin: GridPosition
    pointer: tuple[float, float] | None = None
    candidate: GridPosition | None = None
    action: DropAction = DropAction.NONE
    swap_with: str | None = None


@dataclass(frozen=True)
class Resolving:
    """A commit is in flight.

    ``previous`` holds the overlay entries replaced by this session, so a
    rollback restores them instead of merely deleting.
    """

    session_id: int
    entity_id: str
    action: DropAction
    request: CommitRequest
    overlay_ids: tuple[str, ...]
    previous: tuple[tuple[str, GridPosition | None], ...]
    started_at: float


DragSession = Idle | Dragging | Resolving


def _position_dict(position: GridPosition | None) -> dict[str, Any] | None:
    return asdict(position) if position is not None else None


def failure_message(response: CommitResponse, request: CommitRequest) -> str:
    """User-facing message for a rejected commit."""
    if response.status == 400 and "Column" in response.message:
        return f"Invalid position: Column {request.position.col} is out of bounds"
    if response.status == 400 and "Row" in response.message:
        return f"Invalid position: Row {request.position.row} is out of bounds"
    if response.status >= 500:
        return "Server error - please try again"
    if request.swap_with is not None:
        return "Failed to swap establishments"
    return "Failed to move establishment"


NETWORK_ERROR_MESSAGE = "Network error - please try again"


class DragController(BaseService):
    """Runs drag sessions for one zone.

    Args:
        topology: Zone being edited.
        endpoint: Where drops are committed.
        viewport: Current canvas size.
        mobile: Force the layout class; derived from the viewport when None.
        config: Throttle, lock and timeout settings.
        clock: Monotonic clock in seconds (injectable for tests).
        plugins: Receives commit notifications.
    """

    def __init__(
        self,
        topology: ZoneTopology,
        endpoint: CommitEndpoint,
        viewport: Viewport,
        *,
        mobile: bool | None = None,
        config: EditorConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(plugins)
        self._topology = topology
        self._endpoint = endpoint
        self._config = config or EditorConfig()
        self._clock = clock
        self._viewport = viewport
        self._mobile = self._detect_mobile(viewport, mobile)

        self._entities: list[MarkerEntity] = []
        self._overlay = OptimisticStore()
        self._index = OccupancyIndex()
        self._state: DragSession = Idle()
        self._lock_until: float | None = None
        self._sessions = itertools.count(1)
        self._pending_pointer: tuple[float, float] | None = None
        self._last_resolved_at: float | None = None
        self._trailing: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> DragSession:
        return self._state

    @property
    def overlay(self) -> OptimisticStore:
        return self._overlay

    @property
    def index(self) -> OccupancyIndex:
        return self._index

    @property
    def topology(self) -> ZoneTopology:
        return self._topology

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def mobile(self) -> bool:
        return self._mobile

    def is_locked(self) -> bool:
        return self._lock_until is not None and self._clock() < self._lock_until

    # ------------------------------------------------------------------
    # Host inputs
    # ------------------------------------------------------------------

    def set_entities(self, entities: Iterable[MarkerEntity]) -> list[str]:
        """Replace the authoritative list; returns overlay ids it settled."""
        self._entities = list(entities)
        settled = self._overlay.reconcile(self._entities)
        self._rebuild_index()
        return settled

    def resize(self, viewport: Viewport, mobile: bool | None = None) -> None:
        """Switch to a new canvas; a drag in progress keeps its origin only."""
        self._viewport = viewport
        self._mobile = self._detect_mobile(viewport, mobile)
        self._pending_pointer = None
        self._cancel_trailing()
        if isinstance(self._state, Dragging):
            self._state = Dragging(
                session_id=self._state.session_id,
                entity_id=self._state.entity_id,
                origin=self._state.origin,
            )

    def _detect_mobile(self, viewport: Viewport, mobile: bool | None) -> bool:
        if mobile is not None:
            return mobile
        return is_mobile(viewport, self._config.mobile_breakpoint)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_view(self) -> list[RenderedMarker]:
        return self._overlay.render_view(self._entities, self._topology.zone)

    def placed_markers(self) -> list[tuple[RenderedMarker, PixelPosition]]:
        """Render view with pixel positions for the current viewport.

        Markers whose stored cell no longer fits the topology are left out
        and logged.
        """
        placed: list[tuple[RenderedMarker, PixelPosition]] = []
        for marker in self.render_view():
            pos = marker.position
            try:
                pixel = to_pixel(
                    self._topology,
                    pos.row,
                    pos.col,
                    mobile=self._mobile,
                    viewport=self._viewport,
                    vip=marker.vip,
                )
            except (GridBoundsError, UnmappedRowError) as exc:
                logger.warning("Marker %s not drawable at %s: %s", marker.entity_id, pos, exc)
                continue
            placed.append((marker, pixel))
        return placed

    def focus_next(self, current_id: str | None, key: ArrowKey) -> str | None:
        """Marker keyboard focus moves to from *current_id*; pending positions count."""
        return next_marker(
            ((m.entity_id, m.position) for m in self.render_view()), current_id, key
        )

    # ------------------------------------------------------------------
    # Drag lifecycle
    # ------------------------------------------------------------------

    @traced
    def pick_up(self, entity_id: str) -> ServiceResult:
        op = "pick_up"
        now = self._clock()
        if self._lock_until is not None and now < self._lock_until:
            remaining = round((self._lock_until - now) * 1000)
            return ServiceResult.failure(
                op,
                ErrorCode.OPERATION_LOCKED,
                "Another operation just finished - please wait",
                detail={"remaining_ms": remaining},
            )
        if not isinstance(self._state, Idle):
            return ServiceResult.failure(
                op,
                ErrorCode.BUSY,
                "A drag or commit is already in progress",
                detail={"state": type(self._state).__name__.lower()},
            )

        origin = self._index.position_of(entity_id)
        if origin is None or origin.zone != self._topology.zone:
            return ServiceResult.failure(
                op,
                ErrorCode.NOT_FOUND,
                f"No placed marker {entity_id!r} in zone {self._topology.zone}",
                detail={"entity_id": entity_id},
            )

        session_id = next(self._sessions)
        self._state = Dragging(session_id=session_id, entity_id=entity_id, origin=origin)
        self._pending_pointer = None
        self._last_resolved_at = None
        logger.debug("drag.start session=%s entity=%s origin=%s", session_id, entity_id, origin)
        return ServiceResult.success(
            op,
            {"session_id": session_id, "entity_id": entity_id, "origin": asdict(origin)},
        )

    def pointer_move(self, x: float, y: float) -> DropAction:
        """Feed a pointer sample; returns the current drop action.

        Blocked surfaces are detected on every sample. Full cell resolution
        runs at most once per throttle interval. A sample that arrives inside
        the interval is resolved by a trailing timer when an event loop is
        running; :meth:`flush` resolves it immediately.
        """
        state = self._state
        if not isinstance(state, Dragging):
            return DropAction.NONE

        if is_blocked(self._topology, x, y, self._viewport, mobile=self._mobile):
            self._pending_pointer = None
            self._cancel_trailing()
            self._state = replace(
                state, pointer=(x, y), candidate=None, action=DropAction.BLOCKED, swap_with=None
            )
            return DropAction.BLOCKED

        self._state = replace(state, pointer=(x, y))
        self._pending_pointer = (x, y)
        now = self._clock()
        last = self._last_resolved_at
        interval = self._config.throttle_ms / 1000
        if last is None or now - last >= interval:
            return self.flush()
        self._schedule_trailing(interval - (now - last))
        return self._state.action

    def flush(self) -> DropAction:
        """Resolve the latest unresolved pointer sample, if any."""
        self._cancel_trailing()
        state = self._state
        if not isinstance(state, Dragging):
            return DropAction.NONE
        if self._pending_pointer is None:
            return state.action

        x, y = self._pending_pointer
        self._pending_pointer = None
        self._last_resolved_at = self._clock()
        with trace_span("from_pixel", budget_ms=FRAME_BUDGET_MS):
            candidate = from_pixel(self._topology, x, y, self._viewport, mobile=self._mobile)
        action, swap_with = self._classify(candidate, state.entity_id)
        self._state = replace(state, candidate=candidate, action=action, swap_with=swap_with)
        return action

    def _schedule_trailing(self, delay: float) -> None:
        if self._trailing is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the host resolves with flush() or drop().
            return
        self._trailing = loop.call_later(max(delay, 0.0), self._trailing_flush)

    def _trailing_flush(self) -> None:
        self._trailing = None
        self.flush()

    def _cancel_trailing(self) -> None:
        if self._trailing is not None:
            self._trailing.cancel()
            self._trailing = None

    def _classify(
        self, candidate: GridPosition | None, entity_id: str
    ) -> tuple[DropAction, str | None]:
        if candidate is None:
            return DropAction.BLOCKED, None
        occupant = self._index.occupant_at(candidate.zone, candidate.row, candidate.col)
        if occupant is None:
            return DropAction.MOVE, None
        if occupant == entity_id:
            return DropAction.BLOCKED, None
        return DropAction.SWAP, occupant

    @traced
    async def drop(self) -> ServiceResult:
        """Drop the dragged marker at the latest pointer position.

        Applies the optimistic overlay synchronously, then awaits the commit.
        """
        op = "drop"
        self.flush()
        state = self._state
        if not isinstance(state, Dragging):
            return ServiceResult.failure(op, ErrorCode.NOT_DRAGGING, "No drag in progress")

        # The occupant may have changed since the last pointer resolution.
        action, swap_with = self._classify(state.candidate, state.entity_id)
        candidate = state.candidate
        if candidate is None or action not in (DropAction.MOVE, DropAction.SWAP):
            self._state = Idle()
            return ServiceResult.failure(
                op,
                ErrorCode.INVALID_DROP_TARGET,
                "Cannot drop here",
                detail={"action": str(action), "candidate": _position_dict(candidate)},
            )

        resolving = self._begin_commit(state, candidate, action, swap_with)
        request = resolving.request
        warnings: list[str] = []
        logger.debug(
            "commit.start session=%s payload=%s", resolving.session_id, request.to_payload()
        )

        task = asyncio.ensure_future(self._endpoint.commit(request))
        try:
            response = await asyncio.wait_for(
                asyncio.shield(task), timeout=self._config.commit_timeout
            )
        except TimeoutError as exc:
            if task.done():
                # The endpoint raised TimeoutError itself; the watchdog did not fire.
                return self._transport_failed(op, resolving, exc, warnings)
            task.add_done_callback(functools.partial(self._discard_late, resolving.session_id))
            if not self._is_current(resolving):
                return self._stale(op, resolving)
            self._rollback(resolving)
            logger.warning(
                "commit.timeout session=%s entity=%s after %.1fs",
                resolving.session_id,
                resolving.entity_id,
                self._config.commit_timeout,
            )
            self._dispatch_event(
                "commit_timeout",
                {
                    "entity_id": resolving.entity_id,
                    "action": str(action),
                    "timeout": self._config.commit_timeout,
                },
                warnings,
            )
            return ServiceResult.failure(
                op,
                ErrorCode.COMMIT_TIMEOUT,
                "Operation timed out - please try again",
                detail={"timeout": self._config.commit_timeout},
                warnings=warnings,
            )
        except asyncio.CancelledError:
            task.add_done_callback(functools.partial(self._discard_late, resolving.session_id))
            if self._is_current(resolving):
                self._rollback(resolving)
            raise
        except Exception as exc:
            return self._transport_failed(op, resolving, exc, warnings)

        if not self._is_current(resolving):
            return self._stale(op, resolving)

        if not response.ok:
            self._rollback(resolving)
            message = failure_message(response, request)
            logger.info(
                "commit.rejected session=%s status=%s message=%s",
                resolving.session_id,
                response.status,
                response.message,
            )
            return self._failed(op, resolving, message, response.status, warnings)

        self._lock_until = self._clock() + self._config.lock_ms / 1000
        self._state = Idle()
        positions = {eid: _position_dict(self._overlay.get(eid)) for eid in resolving.overlay_ids}
        logger.debug("commit.ok session=%s positions=%s", resolving.session_id, positions)
        self._dispatch_event(
            "post_commit",
            {"entity_id": resolving.entity_id, "action": str(action), "positions": positions},
            warnings,
        )
        return ServiceResult.success(
            op,
            {
                "entity_id": resolving.entity_id,
                "action": str(action),
                "position": asdict(candidate),
                "swap_with": request.swap_with,
                "overlay": positions,
                "payload": request.to_payload(),
            },
            warnings=warnings,
        )

    def cancel(self) -> ServiceResult:
        """Abandon the current session from any state."""
        state = self._state
        self._pending_pointer = None
        self._cancel_trailing()
        if isinstance(state, Resolving):
            self._rollback(state)
            logger.info("drag.cancel session=%s while resolving", state.session_id)
        else:
            self._state = Idle()
        cancelled = None if isinstance(state, Idle) else type(state).__name__.lower()
        return ServiceResult.success("cancel", {"cancelled": cancelled})

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin_commit(
        self,
        state: Dragging,
        candidate: GridPosition,
        action: DropAction,
        swap_with: str | None,
    ) -> Resolving:
        request = CommitRequest(
            entity_id=state.entity_id,
            position=candidate,
            swap_with=swap_with if action is DropAction.SWAP else None,
        )
        targets: list[tuple[str, GridPosition]] = [(state.entity_id, candidate)]
        if request.swap_with is not None:
            targets.append((request.swap_with, self._prior_position(state)))

        previous = tuple((eid, self._overlay.get(eid)) for eid, _ in targets)
        for eid, position in targets:
            self._overlay.apply(eid, position)
        self._rebuild_index()

        resolving = Resolving(
            session_id=state.session_id,
            entity_id=state.entity_id,
            action=action,
            request=request,
            overlay_ids=tuple(eid for eid, _ in targets),
            previous=previous,
            started_at=self._clock(),
        )
        self._state = resolving
        return resolving

    def _prior_position(self, state: Dragging) -> GridPosition:
        """Position a swap partner moves to: the dragged entity's stored cell."""
        for entity in self._entities:
            if entity.id == state.entity_id and entity.position is not None:
                return entity.position
        return state.origin

    def _is_current(self, resolving: Resolving) -> bool:
        state = self._state
        return isinstance(state, Resolving) and state.session_id == resolving.session_id

    def _rollback(self, resolving: Resolving) -> None:
        for eid, previous in resolving.previous:
            if previous is None:
                self._overlay.rollback(eid)
            else:
                self._overlay.apply(eid, previous)
        self._state = Idle()
        self._rebuild_index()

    def _rebuild_index(self) -> None:
        self._index = OccupancyIndex.build(self._entities, self._overlay.pending)

    def _transport_failed(
        self, op: str, resolving: Resolving, exc: BaseException, warnings: list[str]
    ) -> ServiceResult:
        if not self._is_current(resolving):
            return self._stale(op, resolving)
        self._rollback(resolving)
        logger.warning(
            "commit.error session=%s entity=%s: %s",
            resolving.session_id,
            resolving.entity_id,
            exc,
            exc_info=exc,
        )
        return self._failed(op, resolving, NETWORK_ERROR_MESSAGE, None, warnings)

    def _failed(
        self,
        op: str,
        resolving: Resolving,
        message: str,
        status: int | None,
        warnings: list[str],
    ) -> ServiceResult:
        self._dispatch_event(
            "commit_failed",
            {
                "entity_id": resolving.entity_id,
                "action": str(resolving.action),
                "message": message,
                "status": status,
            },
            warnings,
        )
        return ServiceResult.failure(
            op,
            ErrorCode.COMMIT_FAILED,
            message,
            detail={"status": status},
            warnings=warnings,
        )

    @staticmethod
    def _stale(op: str, resolving: Resolving) -> ServiceResult:
        logger.info("commit.stale_response session=%s discarded", resolving.session_id)
        return ServiceResult.failure(
            op,
            ErrorCode.STALE_RESPONSE,
            "Response arrived for a session that is no longer active",
            detail={"session_id": resolving.session_id},
        )

    @staticmethod
    def _discard_late(session_id: int, task: asyncio.Future[CommitResponse]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.info("commit.stale_response session=%s error=%s", session_id, exc)
        else:
            logger.info(
                "commit.stale_response session=%s status=%s", session_id, task.result().status
            )
