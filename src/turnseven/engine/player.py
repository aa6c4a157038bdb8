from __future__ import annotations

from dataclasses import dataclass, field

from .types import BotDifficulty, Card, PlayerConfig


@dataclass
class PlayerState:
    id: str
    name: str
    hand: list[Card] = field(default_factory=list)
    round_score: int = 0
    total_score: int = 0
    is_active: bool = True
    has_stayed: bool = False
    has_busted: bool = False
    is_locked: bool = False
    has_life_saver: bool = False
    # action cards drawn but not yet resolved; never also in `hand`
    reserved_actions: list[Card] = field(default_factory=list)
    pending_immediate_action_ids: list[str] = field(default_factory=list)
    # card id -> draws still owed by an interrupted Turn Three
    deferred_draws: dict[str, int] = field(default_factory=dict)
    is_bot: bool = False
    bot_difficulty: BotDifficulty | None = None

    @property
    def is_busted(self) -> bool:
        return self.has_busted

    @property
    def can_act(self) -> bool:
        return self.is_active and not self.has_stayed and not self.has_busted

    @property
    def has_pending(self) -> bool:
        return bool(self.pending_immediate_action_ids)

    def number_ranks(self) -> list[str]:
        return [c.rank for c in self.hand if c.is_number]

    def unique_numbers(self) -> int:
        return len(set(self.number_ranks()))

    def holds_number(self, rank: str) -> bool:
        return any(c.is_number and c.rank == rank for c in self.hand)

    def find_reserved(self, card_id: str) -> Card | None:
        for c in self.reserved_actions:
            if c.id == card_id:
                return c
        return None

    def reset_for_round(self, keep_life_saver: bool = False) -> list[Card]:
        """Clear round-scoped fields and return the cards the player gave up.

        `total_score` is never touched. With `keep_life_saver` a held token,
        and the Life Saver card backing it, carries over.
        """
        had_token = self.has_life_saver
        kept: list[Card] = []
        released: list[Card] = []
        for c in self.hand:
            if keep_life_saver and had_token and c.is_action and c.rank == "LifeSaver" and not kept:
                kept.append(c)
            else:
                released.append(c)
        released.extend(self.reserved_actions)

        self.hand = kept
        self.reserved_actions = []
        self.pending_immediate_action_ids = []
        self.deferred_draws = {}
        self.round_score = 0
        self.is_active = True
        self.has_stayed = False
        self.has_busted = False
        self.is_locked = False
        self.has_life_saver = had_token and keep_life_saver
        return released


def new_player(cfg: PlayerConfig, index: int) -> PlayerState:
    return PlayerState(
        id=cfg.id or f"p{index + 1}",
        name=cfg.name or f"Player {index + 1}",
        is_bot=cfg.is_bot,
        bot_difficulty=cfg.bot_difficulty,
    )
