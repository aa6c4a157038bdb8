from __future__ import annotations

import random
from collections import Counter

import pytest

from turnseven.engine.cards import build_deck, discard, draw, draw_many
from turnseven.engine.errors import EmptyDeckError
from turnseven.engine.player import PlayerState
from turnseven.engine.scoring import compute_hand_score, pick_winner, round_score
from turnseven.engine.state import GameState
from turnseven.engine.types import Card, DeckSpec, GameConfig


def _n(cid: str, rank: int) -> Card:
    return Card(id=cid, suit="number", rank=str(rank), face_up=True)


def _m(cid: str, rank: str) -> Card:
    return Card(id=cid, suit="modifier", rank=rank, face_up=True)


def _players(*totals: int) -> list[PlayerState]:
    return [PlayerState(id=f"p{i + 1}", name=f"P{i + 1}", total_score=t) for i, t in enumerate(totals)]


def test_default_deck_composition() -> None:
    deck = build_deck(DeckSpec())
    assert len(deck) == 94 == DeckSpec().size
    assert len({c.id for c in deck}) == 94
    assert all(not c.face_up for c in deck)

    numbers = Counter(c.rank for c in deck if c.is_number)
    assert numbers["12"] == 12
    assert numbers["1"] == 1
    assert numbers["0"] == 1
    assert sorted(c.rank for c in deck if c.is_modifier) == sorted(["+2", "+4", "+6", "+8", "+10", "x2"])
    actions = Counter(c.rank for c in deck if c.is_action)
    assert actions == {"Lock": 3, "TurnThree": 3, "LifeSaver": 3}


def test_card_properties() -> None:
    assert _n("a", 7).value == 7
    assert _m("b", "x2").multiplier == 2
    assert _m("c", "+8").bonus == 8
    assert _m("c", "+8").multiplier is None
    with pytest.raises(ValueError):
        _ = _m("d", "+2").value
    lock = Card(id="e", suit="action", rank="Lock")
    assert lock.label == "Lock"
    assert Card(id="f", suit="action", rank="TurnThree").label == "Turn Three"
    assert lock.flipped(True).face_up
    assert lock.flipped(False) is lock


def test_hand_score_multiplies_numbers_before_adding() -> None:
    hand = [_n("a", 5), _n("b", 3), _m("c", "x2"), _m("d", "+4")]
    assert compute_hand_score(hand) == 20


def test_multiplier_never_applies_to_additive_cards() -> None:
    assert compute_hand_score([_m("a", "x2"), _m("b", "+10")]) == 10
    assert compute_hand_score([]) == 0


def test_unique_bonus_applies_at_target() -> None:
    hand = [_n(f"c{r}", r) for r in range(7)]
    assert compute_hand_score(hand) == sum(range(7)) + 15
    # six distinct numbers earn nothing extra
    assert compute_hand_score(hand[:6]) == sum(range(6))
    cfg = GameConfig(unique_target=3, unique_bonus=100)
    assert compute_hand_score(hand[:3], cfg) == 0 + 1 + 2 + 100


def test_busted_player_scores_zero() -> None:
    p = PlayerState(id="p1", name="P1", hand=[_n("a", 9)], has_busted=True, is_active=False)
    assert round_score(p) == 0


def test_pick_winner_threshold_and_ties() -> None:
    cfg = GameConfig()
    assert pick_winner(_players(199, 150), cfg) is None
    assert pick_winner(_players(205, 230, 10), cfg) == "p2"
    # equal totals: earliest seat
    assert pick_winner(_players(210, 210), cfg) == "p1"

    by_round = GameConfig(tie_break="round_order")
    assert pick_winner(_players(210, 210, 5), by_round, round_starter_id="p2") == "p2"


def _pile_state(discarded: list[Card], **cfg: object) -> GameState:
    return GameState(
        players=[PlayerState(id="p1", name="P1")],
        config=GameConfig(**cfg),  # type: ignore[arg-type]
        deck=[],
        discard_pile=list(discarded),
    )


def test_reshuffle_keeps_most_recent_discard() -> None:
    pile = [_n("a", 1), _n("b", 2), _n("c", 3)]
    state = _pile_state(pile)
    card = draw(state, random.Random(0))
    assert card.id in ("a", "b")
    assert card.face_up
    assert [c.id for c in state.discard_pile] == ["c"]
    assert len(state.deck) == 1
    assert not state.deck[0].face_up
    assert state.shuffle_count == 1


def test_reshuffle_whole_pile_when_configured() -> None:
    state = _pile_state([_n("a", 1), _n("b", 2)], reshuffle_keeps_top_discard=False)
    draw(state, random.Random(0))
    assert state.discard_pile == []
    assert len(state.deck) == 1


def test_single_discard_is_reshuffled() -> None:
    state = _pile_state([_n("a", 1)])
    assert draw(state, random.Random(0)).id == "a"
    assert state.discard_pile == []


def test_draw_from_nothing_raises() -> None:
    state = _pile_state([])
    with pytest.raises(EmptyDeckError):
        draw(state, random.Random(0))


def test_draw_takes_top_and_discard_flips_up() -> None:
    top = Card(id="top", suit="number", rank="4")
    state = GameState(players=[], deck=[Card(id="under", suit="number", rank="2"), top])
    assert draw(state, random.Random(0)).id == "top"
    discard(state, Card(id="x", suit="modifier", rank="+2"))
    assert state.discard_pile[-1].face_up


def test_draw_many_checks_supply_first() -> None:
    state = GameState(players=[], deck=[_n("a", 1), _n("b", 2)], discard_pile=[_n("c", 3)])
    with pytest.raises(EmptyDeckError):
        draw_many(state, 4, random.Random(0))
    assert len(state.deck) == 2

    cards = draw_many(state, 2, random.Random(0))
    assert [c.id for c in cards] == ["b", "a"]
