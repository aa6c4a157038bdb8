"""Deterministic, headless rules engine for Turn Seven.

IMPORTANT: This package must never import I/O, storage or presentation code.
"""

from .actions import (
    Action,
    DrawAction,
    InitGameAction,
    PlayActionAction,
    RemovePlayerAction,
    StartNextRoundAction,
    StayAction,
)
from .cards import count_cards
from .errors import EmptyDeckError, EngineError, FailedPrecondition, InvalidArgument, NotFound
from .match import (
    create_initial_state,
    create_initial_state_from_config,
    create_lobby_state,
    perform_action,
    replay,
    reset_game,
    start_next_round,
)
from .resolver import valid_targets
from .scoring import compute_hand_score
from .state import GameState
from .types import Card, DeckSpec, GameConfig, PlayerConfig

__all__ = [
    "Action",
    "Card",
    "DeckSpec",
    "DrawAction",
    "EmptyDeckError",
    "EngineError",
    "FailedPrecondition",
    "GameConfig",
    "GameState",
    "InitGameAction",
    "InvalidArgument",
    "NotFound",
    "PlayActionAction",
    "PlayerConfig",
    "RemovePlayerAction",
    "StartNextRoundAction",
    "StayAction",
    "compute_hand_score",
    "count_cards",
    "create_initial_state",
    "create_initial_state_from_config",
    "create_lobby_state",
    "perform_action",
    "replay",
    "reset_game",
    "start_next_round",
    "valid_targets",
]
