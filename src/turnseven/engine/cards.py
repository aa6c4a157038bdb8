from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Protocol

from .errors import EmptyDeckError
from .types import Card, DeckSpec

if TYPE_CHECKING:
    from .state import GameState

logger = logging.getLogger(__name__)


class Shuffler(Protocol):
    """Anything that can shuffle a list in place. `random.Random` qualifies."""

    def shuffle(self, x: list[Card]) -> None: ...


def rng_for(state: "GameState") -> random.Random:
    """Deterministic shuffle source derived from plain state data."""
    return random.Random(state.seed * 1_000_003 + state.shuffle_count)


def build_deck(spec: DeckSpec) -> list[Card]:
    deck: list[Card] = []

    def add(suit: str, rank: str) -> None:
        deck.append(Card(id=f"card-{len(deck)}", suit=suit, rank=rank))  # type: ignore[arg-type]

    for value, copies in spec.numbers:
        for _ in range(copies):
            add("number", str(value))
    for mod in spec.modifiers:
        add("modifier", mod)
    for kind, copies in spec.actions:
        for _ in range(copies):
            add("action", kind)
    return deck


def _reshuffle(state: "GameState", rng: Shuffler) -> None:
    pile = state.discard_pile
    if state.config.reshuffle_keeps_top_discard and len(pile) > 1:
        fodder, keep = pile[:-1], pile[-1:]
    else:
        fodder, keep = pile[:], []
    fodder = [c.flipped(False) for c in fodder]
    rng.shuffle(fodder)
    state.deck = fodder
    state.discard_pile = keep
    state.shuffle_count += 1
    logger.debug("reshuffled %d discarded cards into the deck", len(fodder))


def cards_available(state: "GameState") -> int:
    return len(state.deck) + len(state.discard_pile)


def draw(state: "GameState", rng: Shuffler) -> Card:
    """Take the top card, reshuffling the discard pile first if the deck is empty."""
    if not state.deck:
        if not state.discard_pile:
            raise EmptyDeckError("No cards left in the deck or the discard pile.")
        _reshuffle(state, rng)
    return state.deck.pop().flipped(True)


def draw_many(state: "GameState", n: int, rng: Shuffler) -> list[Card]:
    if n > cards_available(state):
        raise EmptyDeckError(f"Cannot draw {n} cards, only {cards_available(state)} left.")
    return [draw(state, rng) for _ in range(n)]


def discard(state: "GameState", card: Card) -> None:
    state.discard_pile.append(card.flipped(True))


def count_cards(state: "GameState") -> int:
    return (
        len(state.deck)
        + len(state.discard_pile)
        + sum(len(p.hand) for p in state.players)
        + sum(len(p.reserved_actions) for p in state.players)
    )
