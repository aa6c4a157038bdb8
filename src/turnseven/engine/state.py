from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from .errors import NotFound
from .player import PlayerState
from .types import Card, GameConfig, GamePhase

RoundResultType = Literal["normal", "bust", "turn-seven"]


@dataclass(frozen=True)
class LedgerEntry:
    round_number: int
    player_name: str
    action: str
    result: str
    target_name: str | None = None


@dataclass(frozen=True)
class RoundResult:
    score: int
    result_type: RoundResultType


@dataclass
class GameState:
    """Root of a game. Plain data only: no generators, callbacks or back-references."""

    players: list[PlayerState]
    config: GameConfig = field(default_factory=GameConfig)
    deck: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    current_player_id: str | None = None
    game_phase: GamePhase = "playing"
    winner_id: str | None = None
    round_number: int = 1
    round_starter_id: str | None = None
    # player whose turn started the current action chain
    turn_order_base_id: str | None = None
    # players still owed their opening card this round, in deal order
    deal_queue: list[str] = field(default_factory=list)
    seed: int = 0
    shuffle_count: int = 0
    previous_turn_log: str | None = None
    previous_round_scores: dict[str, RoundResult] = field(default_factory=dict)
    ledger: list[LedgerEntry] = field(default_factory=list)

    @property
    def dealing(self) -> bool:
        return bool(self.deal_queue)

    def find_player(self, player_id: str | None) -> PlayerState | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_player(self, player_id: str) -> PlayerState:
        p = self.find_player(player_id)
        if p is None:
            raise NotFound(f"No player with id {player_id!r}.")
        return p

    def seat_of(self, player_id: str | None) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return -1

    def current_player(self) -> PlayerState | None:
        return self.find_player(self.current_player_id)

    def active_players(self) -> list[PlayerState]:
        return [p for p in self.players if p.is_active]

    def log(self, player_name: str, action: str, result: str, target_name: str | None = None) -> None:
        self.ledger.append(
            LedgerEntry(
                round_number=self.round_number,
                player_name=player_name,
                action=action,
                result=result,
                target_name=target_name,
            )
        )
