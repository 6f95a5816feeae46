"""Command group: local card edits, recorded as pending changes."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from binderctl.commands._base import BinderGroup, binder_id_argument
from binderctl.commands._params import SLOT, SLOT_OR_OVERALL

if TYPE_CHECKING:
    from binderctl.commands._context import AppContext
    from binderctl.domain.grid import SlotAddress

_CARD_EXAMPLES = """\
  binderctl card add binder_1a2b3c4d5e6f --name Pikachu --rarity Common --api-id sv8-63
  binderctl card add binder_1a2b3c4d5e6f --file pulls.json --start 2:1
  binderctl card move binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e 1:5
  binderctl card swap binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e sv8-12_9f8e7d6c5b
  binderctl card update binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e --set condition=NM
  binderctl card remove binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e
  binderctl card free binder_1a2b3c4d5e6f 3"""


@click.group(cls=BinderGroup, examples=_CARD_EXAMPLES)
def card() -> None:
    """Add, move, swap, update, and remove cards locally."""


def _load_cards(path: Path) -> list[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read cards from {path}: {exc}"
        raise click.BadParameter(msg, param_hint="--file") from exc
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(c, dict) for c in data):
        raise click.BadParameter("expected a JSON object or a list of objects", param_hint="--file")
    return data


@card.command(
    examples="""\
  binderctl card add binder_1a2b3c4d5e6f --name Pikachu --rarity Common
  binderctl card add binder_1a2b3c4d5e6f --file pulls.json
  binderctl card add binder_1a2b3c4d5e6f --name Eevee --start 10"""
)
@binder_id_argument
@click.option("--name", default=None, help="Card name (single card).")
@click.option("--rarity", default=None, help="Card rarity (single card).")
@click.option("--api-id", "card_api_id", default=None, help="Catalog card ID (single card).")
@click.option(
    "--file",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with a card object or a list of them.",
)
@click.option(
    "--start",
    "start_hint",
    type=SLOT_OR_OVERALL,
    default=None,
    help="Start the slot search here (PAGE:SLOT or overall slot).",
)
@click.pass_obj
def add(
    app: AppContext,
    binder_id: str,
    name: str | None,
    rarity: str | None,
    card_api_id: str | None,
    file_path: Path | None,
    start_hint: SlotAddress | int | None,
) -> None:
    """Place cards into the next free slots."""
    from binderctl.services.ledger import LedgerService

    cards: list[dict[str, Any]] = _load_cards(file_path) if file_path else []
    if name is not None:
        single: dict[str, Any] = {"name": name}
        if rarity is not None:
            single["rarity"] = rarity
        if card_api_id is not None:
            single["card_api_id"] = card_api_id
        cards.append(single)
    if not cards:
        raise click.UsageError("Give --name or --file.")

    app.emit(LedgerService(app.workspace).add_cards(binder_id, cards, start_hint=start_hint))


@card.command(examples="  binderctl card remove binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e")
@binder_id_argument
@click.argument("card_id")
@click.pass_obj
def remove(app: AppContext, binder_id: str, card_id: str) -> None:
    """Remove a card from the binder."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).remove_card(binder_id, card_id))


@card.command(examples="  binderctl card move binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e 2:4")
@binder_id_argument
@click.argument("card_id")
@click.argument("to_slot", type=SLOT)
@click.pass_obj
def move(app: AppContext, binder_id: str, card_id: str, to_slot: SlotAddress) -> None:
    """Move a card to a free PAGE:SLOT."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).move_card(binder_id, card_id, to_slot))


@card.command(
    examples="  binderctl card swap binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e sv8-12_9f8e7d6c5b"
)
@binder_id_argument
@click.argument("first_id")
@click.argument("second_id")
@click.pass_obj
def swap(app: AppContext, binder_id: str, first_id: str, second_id: str) -> None:
    """Exchange the slots of two cards."""
    from binderctl.services.ledger import LedgerService

    app.emit(LedgerService(app.workspace).swap_cards(binder_id, first_id, second_id))


@card.command(
    examples="""\
  binderctl card update binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e --set condition=NM
  binderctl card update binder_1a2b3c4d5e6f sv8-63_0a1b2c3d4e --set name=Raichu --set rarity=Rare"""
)
@binder_id_argument
@click.argument("card_id")
@click.option(
    "--set", "assignments", multiple=True, required=True, help="KEY=VALUE field to set."
)
@click.pass_obj
def update(app: AppContext, binder_id: str, card_id: str, assignments: tuple[str, ...]) -> None:
    """Edit a card's catalog fields."""
    from binderctl.services.ledger import LedgerService

    fields: dict[str, Any] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"{item!r} is not KEY=VALUE", param_hint="--set")
        fields[key] = value
    app.emit(LedgerService(app.workspace).update_card(binder_id, card_id, fields))


@card.command(
    examples="""\
  binderctl card free binder_1a2b3c4d5e6f 3
  binderctl card free binder_1a2b3c4d5e6f 2 --start 2:1"""
)
@binder_id_argument
@click.argument("count", type=click.IntRange(min=0))
@click.option("--start", "start_hint", type=SLOT_OR_OVERALL, default=None, help="Scan from here.")
@click.pass_obj
def free(
    app: AppContext, binder_id: str, count: int, start_hint: SlotAddress | int | None
) -> None:
    """Preview the slots the next COUNT cards would take."""
    from binderctl.services.layout import LayoutService

    app.emit(LayoutService(app.workspace).find_slots(binder_id, count, start_hint=start_hint))
