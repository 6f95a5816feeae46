"""Reverse-holo layout processor.

When the reverse-holo view is on, every eligible card is immediately
followed by a synthesized variant and all later cards shift along:

- card A (slot 1) stays in slot 1, its variant takes slot 2
- card B (was slot 2) moves to slot 3, and so on.

Both functions are pure. Each re-flowed card remembers the address it held
before the layout in ``layout_origin``; :func:`remove_derived_variants`
puts it back there, so toggling the view off restores the original slots.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from binderctl.domain.grid import GridSize, to_slot_address
from binderctl.domain.ids import variant_card_id
from binderctl.domain.placements import CardPlacement

REVERSE_HOLO_RARITIES: frozenset[str] = frozenset({"Common", "Uncommon", "Rare"})

EligibilityPredicate = Callable[[CardPlacement], bool]


def rarity_predicate(rarities: Iterable[str]) -> EligibilityPredicate:
    """Build an eligibility predicate over a closed set of rarity tiers."""
    allowed = frozenset(rarities)

    def _eligible(card: CardPlacement) -> bool:
        if card.is_derived_variant:
            return False
        rarity = card.rarity
        return rarity is not None and rarity in allowed

    return _eligible


is_reverse_holo_eligible: EligibilityPredicate = rarity_predicate(REVERSE_HOLO_RARITIES)


def create_variant(source: CardPlacement) -> CardPlacement:
    """Synthesize the reverse-holo variant of *source* (address unset)."""
    return CardPlacement(
        card_id=variant_card_id(source.card_id),
        address=source.address,
        origin=source.origin,
        is_derived_variant=True,
        source_card_id=source.card_id,
        card_api_id=source.card_api_id,
        card_data={**source.card_data, "is_reverse_holo": True},
    )


def remove_derived_variants(cards: Iterable[CardPlacement]) -> list[CardPlacement]:
    """Drop derived variants and restore each card's pre-layout address."""
    restored: list[CardPlacement] = []
    for card in cards:
        if card.is_derived_variant:
            continue
        if card.layout_origin is not None:
            card = card.model_copy(update={"address": card.layout_origin, "layout_origin": None})
        restored.append(card)
    return restored


def apply_reverse_holo_layout(
    cards: Iterable[CardPlacement],
    grid: GridSize,
    *,
    is_eligible: EligibilityPredicate = is_reverse_holo_eligible,
) -> list[CardPlacement]:
    """Re-flow *cards* from slot 1 with a variant after every eligible card.

    Existing variants are stripped first so repeated passes never compound.
    Page rollover follows :func:`to_slot_address`.
    """
    originals = sorted(remove_derived_variants(cards), key=lambda c: c.address.key())

    laid_out: list[CardPlacement] = []
    next_slot = 1
    for card in originals:
        laid_out.append(
            card.model_copy(
                update={
                    "address": to_slot_address(next_slot, grid),
                    "layout_origin": card.address,
                }
            )
        )
        next_slot += 1
        if is_eligible(card):
            variant = create_variant(card)
            laid_out.append(variant.at(to_slot_address(next_slot, grid)))
            next_slot += 1
    return laid_out


def source_of_variant(
    variant: CardPlacement,
    cards: Iterable[CardPlacement],
) -> CardPlacement | None:
    """The non-derived placement a variant was synthesized from."""
    if not variant.is_derived_variant:
        return variant
    for card in cards:
        if card.card_id == variant.source_card_id and not card.is_derived_variant:
            return card
    return None


def count_variants(cards: Iterable[CardPlacement]) -> int:
    return sum(1 for c in cards if c.is_derived_variant)
