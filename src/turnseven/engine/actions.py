from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .types import GameConfig, PlayerConfig

ActionType = Literal["INIT_GAME", "DRAW", "STAY", "PLAY_ACTION", "REMOVE_PLAYER", "START_NEXT_ROUND"]


@dataclass(frozen=True)
class InitGameAction:
    players: tuple[PlayerConfig, ...]
    config: GameConfig | None = None
    seed: int = 0
    lobby: bool = False


@dataclass(frozen=True)
class DrawAction:
    actor_id: str


@dataclass(frozen=True)
class StayAction:
    actor_id: str


@dataclass(frozen=True)
class PlayActionAction:
    actor_id: str
    card_id: str
    target_id: str | None = None


@dataclass(frozen=True)
class RemovePlayerAction:
    player_id: str


@dataclass(frozen=True)
class StartNextRoundAction:
    pass


Action = (
    InitGameAction
    | DrawAction
    | StayAction
    | PlayActionAction
    | RemovePlayerAction
    | StartNextRoundAction
)

ACTION_TYPES: dict[type, ActionType] = {
    InitGameAction: "INIT_GAME",
    DrawAction: "DRAW",
    StayAction: "STAY",
    PlayActionAction: "PLAY_ACTION",
    RemovePlayerAction: "REMOVE_PLAYER",
    StartNextRoundAction: "START_NEXT_ROUND",
}


def action_type(action: Action) -> ActionType:
    return ACTION_TYPES[type(action)]
