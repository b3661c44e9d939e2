"""Telemetry primitives — Span, @traced, trace_span.

Near-zero overhead when disabled (single ContextVar.get per call).
When enabled via --verbose, builds hierarchical span trees with timing
and injects them into ServiceResult.meta.

Spans may carry a frame budget. Pointer handling has to finish within one
animation frame, so hit-test spans are traced with ``budget_ms=16`` and any
overrun is flagged on the span and logged as ``span.over_budget``.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

from streetgrid.services.result import ServiceResult

log = structlog.get_logger("streetgrid.telemetry")

# ── Context variables ────────────────────────────────────────────────

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


# ── Span ─────────────────────────────────────────────────────────────


@dataclass
class Span:
    """Hierarchical timing span with an optional frame budget."""

    name: str
    parent: Span | None = None
    budget_ms: float | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    @property
    def over_budget(self) -> bool:
        return self.budget_ms is not None and self.duration_ms > self.budget_ms

    def end(self) -> None:
        self.end_time = time.perf_counter()
        if self.over_budget:
            log.debug(
                "span.over_budget",
                span_name=self.name,
                duration_ms=round(self.duration_ms, 2),
                budget_ms=self.budget_ms,
            )

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.budget_ms is not None:
            result["budget_ms"] = self.budget_ms
            result["over_budget"] = self.over_budget
        if self.annotations:
            result["annotations"] = self.annotations
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


# ── trace_span context manager ───────────────────────────────────────


@contextmanager
def trace_span(name: str, *, budget_ms: float | None = None) -> Generator[Span | None]:
    """Create a child span under the current span.

    Yields None when telemetry is disabled or no root span is active.
    """
    if not _verbose_enabled.get():
        yield None
        return

    parent = _current_span.get()
    if parent is None:
        yield None
        return

    child = Span(name=name, parent=parent, budget_ms=budget_ms)
    parent.children.append(child)

    token = _current_span.set(child)
    try:
        yield child
    finally:
        child.end()
        _current_span.reset(token)


# ── @traced decorator ────────────────────────────────────────────────


def _inject_meta(result: ServiceResult, span: Span) -> ServiceResult:
    """Return a copy of *result* with span data merged into meta."""
    existing_meta = result.meta or {}
    return result.model_copy(update={"meta": {**existing_meta, "telemetry": span.to_dict()}})


def _log_span(span: Span, *, ok: bool) -> None:
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
    )


def _finish(span: Span, token: Any, result: Any) -> Any:
    span.end()
    _current_span.reset(token)
    if isinstance(result, ServiceResult):
        result = _inject_meta(result, span)
    _log_span(span, ok=True)
    return result


def _fail(span: Span, token: Any) -> None:
    span.end()
    _current_span.reset(token)
    _log_span(span, ok=False)


def traced(
    func: Callable[..., Any] | None = None,
    *,
    budget_ms: float | None = None,
) -> Any:
    """Time a service method and inject span data into ServiceResult.meta.

    Usable bare (``@traced``) or with a frame budget
    (``@traced(budget_ms=16)``). Coroutine functions are wrapped with an
    async wrapper so the span covers the awaited work.
    """

    def decorate(fn: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                if not _verbose_enabled.get():
                    return await fn(*args, **kwargs)
                span = Span(name=fn.__qualname__, budget_ms=budget_ms)
                token = _current_span.set(span)
                try:
                    result = await fn(*args, **kwargs)
                except Exception:
                    _fail(span, token)
                    raise
                return _finish(span, token, result)

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _verbose_enabled.get():
                return fn(*args, **kwargs)
            span = Span(name=fn.__qualname__, budget_ms=budget_ms)
            token = _current_span.set(span)
            try:
                result = fn(*args, **kwargs)
            except Exception:
                _fail(span, token)
                raise
            return _finish(span, token, result)

        return wrapper

    if func is not None:
        return decorate(func)
    return decorate


# ── Public helpers ───────────────────────────────────────────────────


def enable_telemetry() -> None:
    """Enable verbose telemetry (called by the CLI context at startup)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)


def get_current_span() -> Span | None:
    """Get the current active span (for manual annotation)."""
    if not _verbose_enabled.get():
        return None
    return _current_span.get()
