from __future__ import annotations

from typing import Sequence

from .scoring import compute_hand_score
from .types import Card, GameConfig


def bust_probability(hand: Sequence[Card], deck: Sequence[Card], has_life_saver: bool = False) -> float:
    """Chance that the next card from `deck` duplicates a number already in `hand`.

    Every card in `deck` counts toward the denominator; only number cards can
    bust. A held Life Saver absorbs the next duplicate, so the chance is zero.
    """
    if has_life_saver or not deck:
        return 0.0
    ranks = {c.rank for c in hand if c.is_number}
    busting = sum(1 for c in deck if c.is_number and c.rank in ranks)
    return busting / len(deck)


def expected_hit_score(
    hand: Sequence[Card],
    deck: Sequence[Card],
    config: GameConfig | None = None,
    has_life_saver: bool = False,
) -> float:
    """Expected hand score after drawing one more card from `deck`.

    A bust scores zero. Action cards leave the hand as it is.
    """
    current = compute_hand_score(hand, config)
    if not deck:
        return float(current)
    ranks = {c.rank for c in hand if c.is_number}
    total = 0.0
    for c in deck:
        if c.is_number and c.rank in ranks:
            total += current if has_life_saver else 0
        elif c.is_number or c.is_modifier:
            total += compute_hand_score([*hand, c], config)
        else:
            total += current
    return total / len(deck)
