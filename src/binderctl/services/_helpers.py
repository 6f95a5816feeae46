"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from binderctl.domain.errors import BinderError
from binderctl.services.result import ServiceError, ServiceResult


def now_iso() -> str:
    """Current UTC time as ISO 8601."""
    return datetime.now(UTC).isoformat()


def failure(
    op: str,
    error: BinderError | None = None,
    *,
    code: str | None = None,
    message: str | None = None,
    warnings: list[str] | None = None,
    **detail: Any,
) -> ServiceResult:
    """Build a failed ServiceResult from a domain error or an explicit code.

    Examples:
        >>> failure("sync", code="NO_SNAPSHOT", message="Binder not pulled").error.code
        'NO_SNAPSHOT'
    """
    if error is not None:
        err = ServiceError(
            code=error.code, message=error.message, detail={**error.detail, **detail}
        )
    else:
        err = ServiceError(code=code or "ERROR", message=message or "", detail=detail)
    return ServiceResult(ok=False, op=op, error=err, warnings=warnings or [])
