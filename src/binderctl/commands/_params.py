"""Custom Click parameter types."""

from __future__ import annotations

from typing import Any

import click
from pydantic import ValidationError

from binderctl.domain.grid import SlotAddress


class SlotAddressType(click.ParamType):
    """``PAGE:SLOT`` (e.g. ``2:5``) parsed into a :class:`SlotAddress`.

    With ``allow_overall`` a bare integer is accepted as an overall slot.
    """

    name = "slot"

    def __init__(self, *, allow_overall: bool = False) -> None:
        self.allow_overall = allow_overall

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, (SlotAddress, int)):
            return value
        text = str(value).strip()
        if self.allow_overall and text.isdigit():
            return int(text)
        page, sep, slot = text.partition(":")
        try:
            if not sep:
                raise ValueError(text)
            return SlotAddress(page_number=int(page), slot_in_page=int(slot))
        except (ValueError, ValidationError):
            self.fail(f"{value!r} is not a PAGE:SLOT address", param, ctx)


SLOT = SlotAddressType()
SLOT_OR_OVERALL = SlotAddressType(allow_overall=True)
