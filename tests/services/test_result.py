"""Tests for ServiceResult, ServiceError and the failure helper."""

import pytest
from pydantic import ValidationError

from binderctl.domain.errors import InsufficientCapacity
from binderctl.services._helpers import failure, now_iso
from binderctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_defaults(self) -> None:
        result = ServiceResult(ok=True, op="render")
        assert result.data == {}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="render")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]

    def test_error_serializes(self) -> None:
        result = ServiceResult(
            ok=False,
            op="sync_to_remote",
            error=ServiceError(code="SYNC_ERROR", message="boom"),
        )
        dumped = result.model_dump()
        assert dumped["error"]["code"] == "SYNC_ERROR"
        assert dumped["error"]["detail"] == {}

    @pytest.mark.parametrize(
        ("code", "retryable"),
        [("SYNC_ERROR", True), ("SYNC_IN_PROGRESS", True), ("COOLING", True), ("NOT_FOUND", False)],
    )
    def test_retryable(self, code: str, retryable: bool) -> None:
        assert ServiceError(code=code, message="x").retryable is retryable


class TestFailure:
    def test_from_domain_error(self) -> None:
        result = failure("add_cards", InsufficientCapacity(requested=5, found=2), extra=1)
        assert not result.ok
        assert result.op == "add_cards"
        assert result.error.code == "INSUFFICIENT_CAPACITY"
        assert result.error.detail == {"requested": 5, "found": 2, "shortfall": 3, "extra": 1}

    def test_from_code(self) -> None:
        result = failure("pull", code="NOT_FOUND", message="missing", binder_id="b1")
        assert result.error.code == "NOT_FOUND"
        assert result.error.message == "missing"
        assert result.error.detail == {"binder_id": "b1"}

    def test_now_iso_is_utc(self) -> None:
        assert now_iso().endswith("+00:00")
