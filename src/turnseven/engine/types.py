from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

CardSuit = Literal["number", "modifier", "action"]
ActionKind = Literal["Lock", "TurnThree", "LifeSaver"]
GamePhase = Literal["setup", "playing", "round-ended", "gameover"]
TieBreak = Literal["seat_order", "round_order"]
BotDifficulty = Literal["easy", "medium", "hard"]

ACTION_KINDS: tuple[ActionKind, ...] = ("Lock", "TurnThree", "LifeSaver")

DEFAULT_ACTION_LABELS: tuple[tuple[ActionKind, str], ...] = (
    ("Lock", "Lock"),
    ("TurnThree", "Turn Three"),
    ("LifeSaver", "Life Saver"),
)


@dataclass(frozen=True)
class Card:
    """One physical card. Identity is `id`; everything else is its face."""

    id: str
    suit: CardSuit
    rank: str
    face_up: bool = False

    @property
    def is_number(self) -> bool:
        return self.suit == "number"

    @property
    def is_modifier(self) -> bool:
        return self.suit == "modifier"

    @property
    def is_action(self) -> bool:
        return self.suit == "action"

    @property
    def value(self) -> int:
        if not self.is_number:
            raise ValueError(f"{self.id} is not a number card")
        return int(self.rank)

    @property
    def multiplier(self) -> int | None:
        if self.is_modifier and self.rank.startswith("x"):
            return int(self.rank[1:])
        return None

    @property
    def bonus(self) -> int | None:
        if self.is_modifier and self.rank.startswith("+"):
            return int(self.rank[1:])
        return None

    @property
    def label(self) -> str:
        if self.is_action:
            return dict(DEFAULT_ACTION_LABELS).get(self.rank, self.rank)
        return self.rank

    def flipped(self, face_up: bool) -> "Card":
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)


def _default_numbers() -> tuple[tuple[int, int], ...]:
    # twelve 12s down to a single 1, plus a single 0
    return tuple((v, v) for v in range(12, 0, -1)) + ((0, 1),)


@dataclass(frozen=True)
class DeckSpec:
    numbers: tuple[tuple[int, int], ...] = field(default_factory=_default_numbers)
    modifiers: tuple[str, ...] = ("+2", "+4", "+6", "+8", "+10", "x2")
    actions: tuple[tuple[ActionKind, int], ...] = (("Lock", 3), ("TurnThree", 3), ("LifeSaver", 3))

    @property
    def size(self) -> int:
        return (
            sum(count for _, count in self.numbers)
            + len(self.modifiers)
            + sum(count for _, count in self.actions)
        )


@dataclass(frozen=True)
class GameConfig:
    """Rule knobs for one variant. Plain data so it can live inside GameState."""

    variant_id: str = "turn-seven"
    deck: DeckSpec = field(default_factory=DeckSpec)
    action_labels: tuple[tuple[ActionKind, str], ...] = DEFAULT_ACTION_LABELS
    win_score: int = 200
    unique_target: int = 7
    unique_bonus: int = 15
    turn_three_draws: int = 3
    life_saver_persists: bool = False
    reshuffle_keeps_top_discard: bool = True
    reshuffle_each_round: bool = False
    tie_break: TieBreak = "seat_order"
    min_players: int = 1
    max_players: int = 18

    def card_name(self, card: Card) -> str:
        if card.is_action:
            labels: dict[str, str] = dict(self.action_labels)
            return labels.get(card.rank, card.label)
        return card.rank


@dataclass(frozen=True)
class PlayerConfig:
    name: str
    id: str | None = None
    is_bot: bool = False
    bot_difficulty: BotDifficulty | None = None
