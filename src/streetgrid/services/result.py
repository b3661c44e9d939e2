"""ServiceResult and ServiceError — the contract between services and adapters.

INVARIANT: Public service operations return ServiceResult; domain
exceptions are translated into ServiceError codes at the service boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ErrorCode:
    """Error codes carried by ``ServiceError.code``."""

    INVALID_DROP_TARGET = "INVALID_DROP_TARGET"
    COMMIT_FAILED = "COMMIT_FAILED"
    COMMIT_TIMEOUT = "COMMIT_TIMEOUT"
    STALE_RESPONSE = "STALE_RESPONSE"
    OPERATION_LOCKED = "OPERATION_LOCKED"
    BUSY = "BUSY"
    NOT_FOUND = "NOT_FOUND"
    NOT_DRAGGING = "NOT_DRAGGING"
    UNKNOWN_ZONE = "UNKNOWN_ZONE"
    UNMAPPED_ROW = "UNMAPPED_ROW"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    NO_SLOT = "NO_SLOT"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"drop"``).
        data: Operation-specific payload.
        warnings: Non-fatal issues, such as a failing notification plugin.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans, timings).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def success(
        cls, op: str, data: dict[str, Any] | None = None, warnings: list[str] | None = None
    ) -> ServiceResult:
        return cls(ok=True, op=op, data=data or {}, warnings=warnings or [])

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            data=data or {},
            warnings=warnings or [],
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )
