from __future__ import annotations

from typing import Iterable, Sequence

from .player import PlayerState
from .state import GameState
from .types import Card, GameConfig


def compute_hand_score(hand: Iterable[Card], config: GameConfig | None = None) -> int:
    """Round score of a hand: numbers summed, then multiplied, then additive modifiers.

    Multipliers never apply to `+N` cards. A hand with `unique_target` distinct
    number ranks also earns `unique_bonus`.
    """
    cfg = config or GameConfig()
    number_sum = 0
    factor = 1
    additive = 0
    ranks: set[str] = set()
    for c in hand:
        if c.is_number:
            number_sum += c.value
            ranks.add(c.rank)
        elif c.is_modifier:
            if c.multiplier is not None:
                factor *= c.multiplier
            elif c.bonus is not None:
                additive += c.bonus
    total = number_sum * factor + additive
    if len(ranks) >= cfg.unique_target:
        total += cfg.unique_bonus
    return total


def round_score(player: PlayerState, config: GameConfig | None = None) -> int:
    if player.has_busted:
        return 0
    return compute_hand_score(player.hand, config)


def score_round(state: GameState) -> None:
    """Bank every player's round score into their total, exactly once per round."""
    cfg = state.config
    for p in state.players:
        p.round_score = round_score(p, cfg)
        p.total_score += p.round_score
        if p.has_busted:
            state.log(p.name, "Round End", f"Busted (Score: 0, Total: {p.total_score})")
        else:
            state.log(p.name, "Round End", f"Score: {p.round_score} (Total: {p.total_score})")


def pick_winner(
    players: Sequence[PlayerState],
    config: GameConfig,
    round_starter_id: str | None = None,
) -> str | None:
    """Highest total among players at or above the threshold, or None.

    Ties go to the first tied player in seat order, or in turn order from the
    round's starting player when `config.tie_break == "round_order"`.
    """
    if not any(p.total_score >= config.win_score for p in players):
        return None

    order = list(players)
    if config.tie_break == "round_order" and round_starter_id is not None:
        start = next((i for i, p in enumerate(order) if p.id == round_starter_id), 0)
        order = order[start:] + order[:start]

    best: PlayerState | None = None
    for p in order:
        if best is None or p.total_score > best.total_score:
            best = p
    return best.id if best is not None else None
