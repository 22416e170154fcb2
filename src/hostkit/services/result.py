"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: Service operations report failure through ServiceResult
instead of raising. The CLI and any embedding host consume this type.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    """Machine-readable failure codes carried by :class:`ServiceError`."""

    NOT_FOUND = "NOT_FOUND"
    RESTORE_MISMATCH = "RESTORE_MISMATCH"
    IO_FAILURE = "IO_FAILURE"
    SNAPSHOT_FAILED = "SNAPSHOT_FAILED"
    UNKNOWN_OPTION = "UNKNOWN_OPTION"
    INVALID_VALUE = "INVALID_VALUE"
    UNKNOWN_COMMAND = "UNKNOWN_COMMAND"
    COMMAND_FAILED = "COMMAND_FAILED"
    LOCK_HELD = "LOCK_HELD"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"save"``).
        data: Operation-specific payload. Populated on failure too when
            partial progress is meaningful (e.g. records that did save).
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: ErrorCode,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> ServiceResult:
        """Shorthand for ``ok=False`` with a populated :class:`ServiceError`."""
        error = ServiceError(code=str(code), message=message, detail=detail or {})
        return cls(ok=False, op=op, error=error, **kwargs)
