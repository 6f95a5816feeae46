"""Tests for the reverse-holo layout processor."""

from __future__ import annotations

from binderctl.domain.grid import parse_grid_size
from binderctl.domain.reverse_holo import (
    apply_reverse_holo_layout,
    count_variants,
    create_variant,
    is_reverse_holo_eligible,
    rarity_predicate,
    remove_derived_variants,
    source_of_variant,
)
from tests.conftest import make_card

GRID_2X2 = parse_grid_size("2x2")


def _positions(cards: list) -> list[tuple[str, int]]:
    return [(c.card_id, c.overall_slot(GRID_2X2)) for c in cards]


def _five_cards() -> list:
    return [
        make_card("c1", 1, 1, rarity="Common"),
        make_card("c2", 1, 2, rarity="Holo Rare"),
        make_card("c3", 1, 3, rarity="Uncommon"),
        make_card("c4", 1, 4, rarity="Ultra Rare"),
        make_card("c5", 2, 1, rarity="Illustration Rare"),
    ]


class TestApplyLayout:
    def test_variants_follow_eligible_cards(self) -> None:
        laid_out = apply_reverse_holo_layout(_five_cards(), GRID_2X2)
        assert _positions(laid_out) == [
            ("c1", 1),
            ("c1_reverse", 2),
            ("c2", 3),
            ("c3", 4),
            ("c3_reverse", 5),
            ("c4", 6),
            ("c5", 7),
        ]
        variant = laid_out[4]
        assert (variant.address.page_number, variant.address.slot_in_page) == (2, 1)

    def test_variant_fields(self) -> None:
        laid_out = apply_reverse_holo_layout(_five_cards(), GRID_2X2)
        variant = laid_out[1]
        assert variant.is_derived_variant
        assert variant.source_card_id == "c1"
        assert variant.card_data["is_reverse_holo"] is True
        assert variant.name == "c1"

    def test_idempotent(self) -> None:
        once = apply_reverse_holo_layout(_five_cards(), GRID_2X2)
        twice = apply_reverse_holo_layout(once, GRID_2X2)
        assert twice == once
        assert count_variants(twice) == 2

    def test_sorts_by_slot_first(self) -> None:
        cards = list(reversed(_five_cards()))
        assert apply_reverse_holo_layout(cards, GRID_2X2) == apply_reverse_holo_layout(
            _five_cards(), GRID_2X2
        )

    def test_gaps_are_compacted(self) -> None:
        cards = [make_card("a", 1, 2, rarity="Rare"), make_card("b", 2, 3, rarity="Promo")]
        assert _positions(apply_reverse_holo_layout(cards, GRID_2X2)) == [
            ("a", 1),
            ("a_reverse", 2),
            ("b", 3),
        ]

    def test_no_eligible_cards(self) -> None:
        cards = [make_card("a", 1, 1, rarity="Secret Rare"), make_card("b", 1, 2)]
        laid_out = apply_reverse_holo_layout(cards, GRID_2X2)
        assert count_variants(laid_out) == 0
        assert _positions(laid_out) == [("a", 1), ("b", 2)]

    def test_custom_predicate(self) -> None:
        laid_out = apply_reverse_holo_layout(
            _five_cards(), GRID_2X2, is_eligible=rarity_predicate({"Holo Rare"})
        )
        assert [c.card_id for c in laid_out if c.is_derived_variant] == ["c2_reverse"]

    def test_empty(self) -> None:
        assert apply_reverse_holo_layout([], GRID_2X2) == []


class TestRemoveDerivedVariants:
    def test_inverse_of_layout(self) -> None:
        cards = _five_cards()
        assert remove_derived_variants(apply_reverse_holo_layout(cards, GRID_2X2)) == cards

    def test_inverse_restores_gaps(self) -> None:
        cards = [make_card("a", 1, 2, rarity="Rare"), make_card("b", 3, 4, rarity="Common")]
        assert remove_derived_variants(apply_reverse_holo_layout(cards, GRID_2X2)) == cards

    def test_identity_on_unprocessed(self) -> None:
        cards = _five_cards()
        assert remove_derived_variants(cards) == cards


class TestEligibility:
    def test_default_rarities(self) -> None:
        assert is_reverse_holo_eligible(make_card("a", rarity="Common"))
        assert is_reverse_holo_eligible(make_card("a", rarity="Rare"))
        assert not is_reverse_holo_eligible(make_card("a", rarity="Double Rare"))
        assert not is_reverse_holo_eligible(make_card("a"))

    def test_variants_never_eligible(self) -> None:
        variant = create_variant(make_card("a", rarity="Common"))
        assert not is_reverse_holo_eligible(variant)

    def test_source_of_variant(self) -> None:
        cards = apply_reverse_holo_layout(_five_cards(), GRID_2X2)
        source = source_of_variant(cards[1], cards)
        assert source is not None
        assert source.card_id == "c1"
        assert source_of_variant(cards[0], cards) is cards[0]
