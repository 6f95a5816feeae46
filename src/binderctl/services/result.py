"""Result envelope shared by binder, card, layout and sync operations.

Services never raise for expected failures (a full binder, a slot collision,
a remote timeout); they return ``ServiceResult(ok=False, error=...)`` and the
CLI decides how to print it and which exit code to use.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Failures where the pending ledger is untouched and the same call may succeed later.
RETRYABLE_CODES = frozenset({"SYNC_ERROR", "SYNC_IN_PROGRESS", "RATE_LIMITED", "COOLING"})


class ServiceError(BaseModel):
    """Error code, human message and machine-readable detail."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @property
    def retryable(self) -> bool:
        return self.code in RETRYABLE_CODES


class ServiceResult(BaseModel):
    """Outcome of one service call.

    ``op`` names the call (``"add_cards"``, ``"sync_to_remote"``); ``data`` is
    its payload on success, ``error`` is set when ``ok`` is False, and ``meta``
    carries telemetry spans when verbose output is on.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
