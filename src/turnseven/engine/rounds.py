from __future__ import annotations

import logging

from .scoring import pick_winner, score_round
from .state import GameState

logger = logging.getLogger(__name__)


def finish_round(state: GameState) -> None:
    """Score every player once and move to `round-ended` or `gameover`."""
    score_round(state)

    state.current_player_id = None
    state.turn_order_base_id = None
    state.deal_queue = []

    winner = pick_winner(state.players, state.config, state.round_starter_id)
    if winner is not None:
        state.game_phase = "gameover"
        state.winner_id = winner
        logger.debug("game over after round %d, winner %s", state.round_number, winner)
    else:
        state.game_phase = "round-ended"
        logger.debug("round %d ended", state.round_number)


def advance_turn(state: GameState) -> None:
    """Hand the turn to the next active seat after the chain's anchor player."""
    base_id = state.turn_order_base_id or state.current_player_id
    state.turn_order_base_id = None
    base = state.seat_of(base_id)
    total = len(state.players)
    for offset in range(1, total + 1):
        p = state.players[(base + offset) % total]
        if p.is_active:
            state.current_player_id = p.id
            return
    finish_round(state)


def reached_unique_target(state: GameState) -> bool:
    target = state.config.unique_target
    return any(not p.has_busted and p.unique_numbers() >= target for p in state.players)


def check_round_end(state: GameState) -> None:
    if state.game_phase != "playing":
        return
    if reached_unique_target(state) or not state.active_players():
        finish_round(state)
