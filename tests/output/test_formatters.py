"""Tests for output mode selection."""

import json

from binderctl.output.formatters import OutputSettings, format_result
from binderctl.services.result import ServiceError, ServiceResult


def _ok() -> ServiceResult:
    return ServiceResult(
        ok=True,
        op="add_cards",
        data={"binder_id": "b1", "count": 1, "added": [{"card_id": "c1", "page": 1, "slot": 1}]},
    )


class TestFormatResult:
    def test_json(self) -> None:
        parsed = json.loads(format_result(_ok(), settings=OutputSettings(json_output=True)))
        assert parsed["ok"] is True
        assert parsed["data"]["added"][0]["card_id"] == "c1"

    def test_quiet_lists_card_ids(self) -> None:
        assert format_result(_ok(), settings=OutputSettings(quiet=True)) == "c1"

    def test_quiet_status_line(self) -> None:
        result = ServiceResult(ok=True, op="clear", data={"cleared": 0})
        assert format_result(result, settings=OutputSettings(quiet=True)) == "OK: clear"

    def test_quiet_error(self) -> None:
        result = ServiceResult(
            ok=False, op="pull", error=ServiceError(code="NOT_FOUND", message="gone")
        )
        assert format_result(result, settings=OutputSettings(quiet=True)) == "ERROR: pull: gone"

    def test_default_is_rich(self) -> None:
        output = format_result(_ok())
        assert output.startswith("OK")
        assert "add_cards" in output
