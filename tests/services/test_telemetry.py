"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Generator

import pytest

from streetgrid.domain.grid import Viewport
from streetgrid.services.layout import LayoutService
from streetgrid.services.result import ServiceError, ServiceResult
from streetgrid.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


# ── Span unit tests ──────────────────────────────────────────────────


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        span = Span(name="test")
        assert span.duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "duration_ms" in d
        assert "children" not in d
        assert "budget_ms" not in d

    def test_to_dict_with_children(self) -> None:
        root = Span(name="root")
        child = Span(name="child", parent=root)
        root.children.append(child)
        child.end()
        root.end()
        d = root.to_dict()
        assert len(d["children"]) == 1
        assert d["children"][0]["name"] == "child"

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate("cells", 42)
        span.end()
        assert span.to_dict()["annotations"] == {"cells": 42}


class TestFrameBudget:
    def test_over_budget(self) -> None:
        span = Span(name="from_pixel", budget_ms=0.001)
        time.sleep(0.005)
        span.end()
        assert span.over_budget
        d = span.to_dict()
        assert d["budget_ms"] == 0.001
        assert d["over_budget"] is True

    def test_within_budget(self) -> None:
        span = Span(name="from_pixel", budget_ms=10_000)
        span.end()
        assert not span.over_budget
        assert span.to_dict()["over_budget"] is False

    def test_unfinished_span_is_not_over_budget(self) -> None:
        assert not Span(name="open", budget_ms=0).over_budget


# ── trace_span tests ─────────────────────────────────────────────────


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_enabled_with_root(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("child", budget_ms=16) as span:
                assert span is not None
                assert span.name == "child"
                assert span.budget_ms == 16
            assert len(root.children) == 1
            assert root.children[0].end_time is not None
        finally:
            _current_span.reset(token)

    def test_nested_spans(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("a"):
                with trace_span("b"):
                    pass
            assert root.children[0].name == "a"
            assert root.children[0].children[0].name == "b"
        finally:
            _current_span.reset(token)


# ── @traced decorator tests ──────────────────────────────────────────


class TestTracedDecorator:
    def test_noop_when_disabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        result = my_func()
        assert result.ok
        assert result.meta is None

    def test_injects_meta_when_enabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        expected_name = "TestTracedDecorator.test_injects_meta_when_enabled.<locals>.my_func"
        assert result.meta["telemetry"]["name"] == expected_name
        assert result.meta["telemetry"]["duration_ms"] >= 0

    def test_budget_argument(self) -> None:
        @traced(budget_ms=16)
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert result.meta["telemetry"]["budget_ms"] == 16

    def test_preserves_existing_meta(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test", meta={"existing": "data"})

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert result.meta["existing"] == "data"
        assert "telemetry" in result.meta

    def test_non_service_result_passthrough(self) -> None:
        @traced
        def my_func() -> str:
            return "hello"

        enable_telemetry()
        assert my_func() == "hello"

    def test_exception_propagates(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            msg = "boom"
            raise ValueError(msg)

        enable_telemetry()
        with pytest.raises(ValueError, match="boom"):
            my_func()
        assert _current_span.get() is None

    def test_error_result_gets_telemetry(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(
                ok=False, op="test", error=ServiceError(code="FAIL", message="oops")
            )

        enable_telemetry()
        result = my_func()
        assert not result.ok
        assert result.meta is not None
        assert "telemetry" in result.meta

    def test_coroutine_function(self) -> None:
        @traced
        async def my_func() -> ServiceResult:
            with trace_span("await_commit"):
                await asyncio.sleep(0)
            return ServiceResult(ok=True, op="drop")

        enable_telemetry()
        result = asyncio.run(my_func())
        assert result.meta is not None
        assert result.meta["telemetry"]["children"][0]["name"] == "await_commit"


class TestGetCurrentSpan:
    def test_returns_none_when_disabled(self) -> None:
        assert get_current_span() is None

    def test_returns_span_when_enabled(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            assert get_current_span() is root
        finally:
            _current_span.reset(token)


# ── @traced on real services ────────────────────────────────────────


class TestTracedOnLayoutService:
    def test_check_has_round_trip_span(self) -> None:
        enable_telemetry()
        result = LayoutService(Viewport(1000, 600)).check("main-street")
        assert result.ok
        assert result.meta is not None
        tel = result.meta["telemetry"]
        assert "LayoutService.check" in tel["name"]
        assert [c["name"] for c in tel["children"]] == ["round_trip"]

    def test_hit_carries_frame_budget(self) -> None:
        enable_telemetry()
        result = LayoutService(Viewport(1000, 600)).hit("main-street", 262.5, 230)
        assert result.ok
        assert result.meta is not None
        assert result.meta["telemetry"]["budget_ms"] == 16
