from __future__ import annotations

import random

import pytest

from turnseven.engine import DrawAction, PlayActionAction, StayAction, count_cards, create_initial_state
from turnseven.engine.ai import BotSpec, choose_action, play_bots
from turnseven.engine.odds import bust_probability, expected_hit_score
from turnseven.engine.player import PlayerState
from turnseven.engine.state import GameState
from turnseven.engine.types import Card, PlayerConfig


def _n(cid: str, rank: int) -> Card:
    return Card(id=cid, suit="number", rank=str(rank), face_up=True)


def test_bust_probability() -> None:
    hand = [_n("a", 5)]
    deck = [_n("b", 5), _n("c", 6), Card(id="d", suit="modifier", rank="x2"), Card(id="e", suit="action", rank="Lock")]
    assert bust_probability(hand, deck) == pytest.approx(0.25)
    assert bust_probability(hand, deck, has_life_saver=True) == 0.0
    assert bust_probability(hand, []) == 0.0


def test_expected_hit_score() -> None:
    hand = [_n("a", 5)]
    assert expected_hit_score(hand, [_n("b", 5), _n("c", 6)]) == pytest.approx(5.5)
    assert expected_hit_score(hand, [_n("b", 5)], has_life_saver=True) == pytest.approx(5.0)
    assert expected_hit_score(hand, []) == 5.0


def _table(*totals: int) -> GameState:
    players = [
        PlayerState(id=f"p{i + 1}", name=f"P{i + 1}", hand=[_n(f"h{i}", i + 1)], total_score=t, is_bot=True)
        for i, t in enumerate(totals)
    ]
    return GameState(players=players, current_player_id="p1", round_starter_id="p1")


def test_bot_aims_lock_at_leader() -> None:
    state = _table(10, 100, 150)
    lock = Card(id="lock", suit="action", rank="Lock", face_up=True)
    state.players[0].reserved_actions.append(lock)
    state.players[0].pending_immediate_action_ids.append("lock")

    action = choose_action(state, "p1", BotSpec(difficulty="medium"))
    assert action == PlayActionAction(actor_id="p1", card_id="lock", target_id="p3")


def test_bot_gives_life_saver_to_underdog() -> None:
    state = _table(120, 10, 150)
    ls = Card(id="ls", suit="action", rank="LifeSaver", face_up=True)
    state.players[0].has_life_saver = True
    state.players[0].reserved_actions.append(ls)
    state.players[0].pending_immediate_action_ids.append("ls")

    action = choose_action(state, "p1", BotSpec(difficulty="hard"))
    assert action == PlayActionAction(actor_id="p1", card_id="ls", target_id="p2")


def test_bot_hits_on_empty_hand_and_stays_on_a_strong_one() -> None:
    state = _table(0, 0)
    state.players[0].hand = []
    assert choose_action(state, "p1", BotSpec()) == DrawAction(actor_id="p1")

    state.players[0].hand = [_n(f"s{r}", r) for r in range(7, 13)]
    assert choose_action(state, "p1", BotSpec(difficulty="hard")) == StayAction(actor_id="p1")


def test_easy_bot_uses_given_rng() -> None:
    state = _table(0, 0)
    a = choose_action(state, "p1", BotSpec(difficulty="easy"), rng=random.Random(3))
    b = choose_action(state, "p1", BotSpec(difficulty="easy"), rng=random.Random(3))
    assert a == b
    assert isinstance(a, (DrawAction, StayAction))


def test_bots_play_out_a_round() -> None:
    players = [PlayerConfig(name=f"Bot {i}", is_bot=True, bot_difficulty=d) for i, d in enumerate(["easy", "medium", "hard"])]
    state = create_initial_state(players, seed=2024)
    state = play_bots(state, random.Random(0))

    assert state.game_phase in ("round-ended", "gameover")
    assert count_cards(state) == 94


def test_play_bots_stops_at_human_turn() -> None:
    state = create_initial_state([PlayerConfig(name="Human"), PlayerConfig(name="Bot", is_bot=True)], seed=8)
    after = play_bots(state)
    current = after.current_player()
    assert after.game_phase != "playing" or (current is not None and not current.is_bot)
