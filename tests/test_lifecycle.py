from __future__ import annotations

import pytest

from turnseven.engine import (
    DrawAction,
    FailedPrecondition,
    InitGameAction,
    InvalidArgument,
    PlayActionAction,
    PlayerConfig,
    RemovePlayerAction,
    StartNextRoundAction,
    count_cards,
    create_initial_state,
    create_initial_state_from_config,
    create_lobby_state,
    perform_action,
    reset_game,
    start_next_round,
)
from turnseven.engine.ai import BotSpec, choose_action
from turnseven.engine.player import PlayerState
from turnseven.engine.state import GameState
from turnseven.engine.types import Card, GameConfig


def _n(cid: str, rank: int, face_up: bool = False) -> Card:
    return Card(id=cid, suit="number", rank=str(rank), face_up=face_up)


def test_init_game_deals_everyone_one_card() -> None:
    action = InitGameAction(players=(PlayerConfig(name="Ann"), PlayerConfig(name="Bob")), seed=5)
    state = perform_action(None, action)

    assert [p.id for p in state.players] == ["p1", "p2"]
    assert [p.name for p in state.players] == ["Ann", "Bob"]
    assert state.round_number == 1
    assert count_cards(state) == 94
    if not state.dealing and state.game_phase == "playing":
        assert all(p.hand or p.reserved_actions or not p.is_active for p in state.players)
    assert state.ledger[0].action == "Deal"


def test_init_game_only_once() -> None:
    state = perform_action(None, InitGameAction(players=(PlayerConfig(name="Ann"),)))
    with pytest.raises(FailedPrecondition):
        perform_action(state, InitGameAction(players=(PlayerConfig(name="Bob"),)))
    with pytest.raises(FailedPrecondition):
        perform_action(None, DrawAction(actor_id="p1"))


def test_player_validation() -> None:
    with pytest.raises(InvalidArgument):
        create_initial_state([])
    with pytest.raises(InvalidArgument):
        create_initial_state(["a", "a"])
    with pytest.raises(InvalidArgument):
        create_initial_state(["a", "b"], config=GameConfig(min_players=3))


def test_create_from_raw_config() -> None:
    state = create_initial_state_from_config(
        [{"name": "Ann"}, {"name": "Robo", "isBot": True, "botDifficulty": "hard"}],
        seed=9,
    )
    bot = state.players[1]
    assert bot.is_bot and bot.bot_difficulty == "hard"

    with pytest.raises(InvalidArgument):
        create_initial_state_from_config("Ann")  # type: ignore[arg-type]
    with pytest.raises(InvalidArgument):
        create_initial_state_from_config([{"name": "Ann", "bot_difficulty": "impossible"}])


def test_same_seed_same_opening() -> None:
    a = create_initial_state(["a", "b", "c"], seed=77)
    b = create_initial_state(["a", "b", "c"], seed=77)
    assert a == b


def test_lobby_and_player_removal() -> None:
    seats = (PlayerConfig(name="A"), PlayerConfig(name="B"), PlayerConfig(name="C"))
    lobby = perform_action(None, InitGameAction(players=seats, lobby=True))
    assert lobby.game_phase == "setup"
    assert all(not p.hand for p in lobby.players)

    smaller = perform_action(lobby, RemovePlayerAction(player_id="p2"))
    assert [p.id for p in smaller.players] == ["p1", "p3"]
    assert len(lobby.players) == 3

    started = perform_action(smaller, StartNextRoundAction())
    assert started.game_phase in ("playing", "round-ended")
    assert started.round_number == 1
    with pytest.raises(FailedPrecondition):
        perform_action(started, RemovePlayerAction(player_id="p1"))


def test_cannot_remove_last_player() -> None:
    lobby = create_lobby_state(["solo"])
    with pytest.raises(FailedPrecondition):
        perform_action(lobby, RemovePlayerAction(player_id="solo"))


def test_opening_deal_pauses_for_action_cards() -> None:
    lobby = create_lobby_state(["a", "b"])
    lobby.deck = [_n("n3", 3), _n("n5", 5), Card(id="lock", suit="action", rank="Lock")]
    state = start_next_round(lobby)

    assert state.dealing
    assert state.current_player_id == "a"
    assert state.players[0].pending_immediate_action_ids == ["lock"]
    with pytest.raises(FailedPrecondition):
        perform_action(state, DrawAction(actor_id="a"))

    state = perform_action(state, PlayActionAction(actor_id="a", card_id="lock", target_id="b"))
    a, b = state.players
    assert b.is_locked and not b.is_active
    # the locked player is not dealt again
    assert [c.id for c in b.hand] == ["lock"]
    assert [c.id for c in a.hand] == ["n5"]
    assert not state.dealing
    assert state.current_player_id == "a"
    assert count_cards(state) == 3


def _ended_round() -> GameState:
    players = [
        PlayerState(id="p1", name="P1", hand=[_n("h1", 9, True)], total_score=50, has_stayed=True, is_active=False),
        PlayerState(id="p2", name="P2", hand=[_n("h2", 9, True), _n("h3", 9, True)], total_score=20, has_busted=True, is_active=False),
    ]
    return GameState(
        players=players,
        deck=[_n("d1", 1), _n("d2", 2), _n("d3", 3), _n("d4", 4)],
        game_phase="round-ended",
        round_starter_id="p1",
    )


def test_start_next_round_keeps_totals_and_rotates_starter() -> None:
    ended = _ended_round()
    before = count_cards(ended)
    state = perform_action(ended, StartNextRoundAction())

    assert state.round_number == 2
    assert state.game_phase == "playing"
    assert [p.total_score for p in state.players] == [50, 20]
    assert state.round_starter_id == "p2"
    assert state.current_player_id == "p2"
    # deal starts with the new starter
    assert [c.id for c in state.players[1].hand] == ["d4"]
    assert [c.id for c in state.players[0].hand] == ["d3"]
    assert all(p.is_active and not p.has_busted and not p.has_stayed for p in state.players)
    assert {c.id for c in state.discard_pile} == {"h1", "h2", "h3"}
    assert state.previous_round_scores["p1"].result_type == "normal"
    assert state.previous_round_scores["p2"].result_type == "bust"
    assert state.previous_round_scores["p1"].score == 50
    assert count_cards(state) == before


def test_next_round_only_after_round_end() -> None:
    state = create_initial_state(["a", "b"], seed=1)
    if state.game_phase == "playing":
        with pytest.raises(FailedPrecondition):
            perform_action(state, StartNextRoundAction())


def test_life_saver_persists_when_configured() -> None:
    ended = _ended_round()
    ended.config = GameConfig(life_saver_persists=True)
    ls = Card(id="ls", suit="action", rank="LifeSaver", face_up=True)
    ended.players[0].hand.append(ls)
    ended.players[0].has_life_saver = True

    state = start_next_round(ended)
    p1 = state.players[0]
    assert p1.has_life_saver
    assert any(c.id == "ls" for c in p1.hand)


def test_reshuffle_each_round_rebuilds_deck() -> None:
    ended = _ended_round()
    ended.config = GameConfig(reshuffle_each_round=True)
    state = start_next_round(ended)

    assert state.discard_pile == []
    assert count_cards(state) == 7
    assert state.shuffle_count == ended.shuffle_count + 1


def test_reset_game_restarts_with_same_seats() -> None:
    ended = _ended_round()
    ended.players[1].is_bot = True
    ended.players[1].bot_difficulty = "hard"
    ended.round_number = 4
    ended.previous_round_scores = {}
    state = reset_game(ended)

    assert [(p.id, p.name) for p in state.players] == [("p1", "P1"), ("p2", "P2")]
    assert state.players[1].is_bot and state.players[1].bot_difficulty == "hard"
    assert [p.total_score for p in state.players] == [0, 0]
    assert state.round_number == 1
    assert state.previous_round_scores == {}
    assert state.game_phase in ("playing", "round-ended")
    assert count_cards(state) == 94
    # the ended game is untouched
    assert ended.players[0].total_score == 50


def test_totals_never_decrease_across_rounds() -> None:
    state = create_initial_state(["a", "b", "c"], seed=31)
    last = {p.id: 0 for p in state.players}
    for _ in range(400):
        if state.game_phase == "gameover":
            break
        if state.game_phase == "round-ended":
            state = perform_action(state, StartNextRoundAction())
        else:
            assert state.current_player_id is not None
            state = perform_action(state, choose_action(state, state.current_player_id, BotSpec(difficulty="easy")))
        for p in state.players:
            assert p.total_score >= last[p.id]
            last[p.id] = p.total_score
    assert state.round_number > 1
