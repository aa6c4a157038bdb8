from __future__ import annotations

import copy
import logging
import random
from typing import Iterable, Mapping, Sequence

from .actions import (
    Action,
    DrawAction,
    InitGameAction,
    PlayActionAction,
    RemovePlayerAction,
    StartNextRoundAction,
    StayAction,
)
from .cards import Shuffler, build_deck, discard, rng_for
from .errors import FailedPrecondition, InvalidArgument
from .player import new_player
from .resolver import continue_dealing, handle_draw, handle_play_action, handle_stay
from .rounds import check_round_end
from .state import GameState, RoundResult, RoundResultType
from .types import GameConfig, PlayerConfig

logger = logging.getLogger(__name__)

PlayerSpec = PlayerConfig | str


def _coerce_players(players: Iterable[PlayerSpec]) -> list[PlayerConfig]:
    out: list[PlayerConfig] = []
    for i, p in enumerate(players):
        if isinstance(p, PlayerConfig):
            out.append(p)
        elif isinstance(p, str) and p:
            # bare ids, named like the default seat labels
            out.append(PlayerConfig(name=f"Player {i + 1}", id=p))
        else:
            raise InvalidArgument(f"Player entry {i} is not a player configuration.")
    return out


def _validate_players(configs: Sequence[PlayerConfig], cfg: GameConfig) -> None:
    if not configs:
        raise InvalidArgument("At least one player is required.")
    if len(configs) < cfg.min_players or len(configs) > cfg.max_players:
        raise InvalidArgument(
            f"{cfg.variant_id} needs {cfg.min_players}-{cfg.max_players} players, got {len(configs)}."
        )
    ids = [c.id or f"p{i + 1}" for i, c in enumerate(configs)]
    if len(set(ids)) != len(ids):
        raise InvalidArgument("Player ids must be unique.")


def _new_state(configs: Sequence[PlayerConfig], cfg: GameConfig, seed: int, rng: Shuffler | None) -> GameState:
    deck = build_deck(cfg.deck)
    (rng or random.Random(seed)).shuffle(deck)
    players = [new_player(c, i) for i, c in enumerate(configs)]
    return GameState(
        players=players,
        config=cfg,
        deck=deck,
        game_phase="setup",
        round_starter_id=players[0].id,
        seed=seed,
        shuffle_count=1,
    )


def _begin_round(state: GameState, rng: Shuffler) -> None:
    state.game_phase = "playing"
    state.winner_id = None
    state.turn_order_base_id = None
    start = max(state.seat_of(state.round_starter_id), 0)
    order = state.players[start:] + state.players[:start]
    state.round_starter_id = order[0].id
    state.current_player_id = order[0].id
    state.deal_queue = [p.id for p in order if p.is_active]
    continue_dealing(state, rng)
    check_round_end(state)


def create_lobby_state(
    players: Iterable[PlayerSpec],
    config: GameConfig | None = None,
    seed: int = 0,
    rng: Shuffler | None = None,
) -> GameState:
    """A game in the `setup` phase: seats taken, deck shuffled, nothing dealt."""
    cfg = config or GameConfig()
    configs = _coerce_players(players)
    _validate_players(configs, cfg)
    return _new_state(configs, cfg, seed, rng)


def create_initial_state(
    players: Iterable[PlayerSpec],
    config: GameConfig | None = None,
    seed: int = 0,
    rng: Shuffler | None = None,
) -> GameState:
    """Start a game and deal the first round.

    `players` holds `PlayerConfig` values or bare player ids. The same seed
    (and no explicit `rng`) always produces the same opening state.
    """
    state = create_lobby_state(players, config=config, seed=seed, rng=rng)
    _begin_round(state, rng or rng_for(state))
    return state


def _config_from_mapping(raw: object, index: int) -> PlayerConfig:
    if not isinstance(raw, Mapping):
        raise InvalidArgument(f"Player entry {index} must be an object.")
    name = raw.get("name", "")
    pid = raw.get("id")
    is_bot = raw.get("is_bot", raw.get("isBot", False))
    difficulty = raw.get("bot_difficulty", raw.get("botDifficulty"))
    if not isinstance(name, str):
        raise InvalidArgument(f"Player entry {index} has a non-string name.")
    if pid is not None and (not isinstance(pid, str) or not pid):
        raise InvalidArgument(f"Player entry {index} has an invalid id.")
    if not isinstance(is_bot, bool):
        raise InvalidArgument(f"Player entry {index} has a non-boolean is_bot.")
    if difficulty not in (None, "easy", "medium", "hard"):
        raise InvalidArgument(f"Player entry {index} has an unknown bot difficulty {difficulty!r}.")
    return PlayerConfig(name=name, id=pid, is_bot=is_bot, bot_difficulty=difficulty)


def create_initial_state_from_config(
    player_configs: Sequence[object],
    config: GameConfig | None = None,
    seed: int = 0,
    rng: Shuffler | None = None,
) -> GameState:
    """Like `create_initial_state`, for raw `{name, id?, is_bot?, bot_difficulty?}` dicts."""
    if not isinstance(player_configs, Sequence) or isinstance(player_configs, (str, bytes)):
        raise InvalidArgument("Player configuration must be a list.")
    configs = [_config_from_mapping(raw, i) for i, raw in enumerate(player_configs)]
    return create_initial_state(configs, config=config, seed=seed, rng=rng)


def _remove_player(state: GameState, action: RemovePlayerAction) -> None:
    if state.game_phase != "setup":
        raise FailedPrecondition("Players can only be removed before the game starts.")
    player = state.get_player(action.player_id)
    if len(state.players) == 1:
        raise FailedPrecondition("Cannot remove the last player.")
    seat = state.seat_of(player.id)
    state.players.pop(seat)
    if state.round_starter_id == player.id:
        state.round_starter_id = state.players[seat % len(state.players)].id


def _result_type(state: GameState, player_id: str) -> RoundResultType:
    p = state.get_player(player_id)
    if p.has_busted:
        return "bust"
    if p.unique_numbers() >= state.config.unique_target:
        return "turn-seven"
    return "normal"


def start_next_round(state: GameState, rng: Shuffler | None = None) -> GameState:
    """Reset round-scoped fields, rotate the starting seat and deal a new round.

    From `setup` this deals the first round of a lobby game instead.
    """
    if state.game_phase not in ("round-ended", "setup"):
        raise FailedPrecondition(f"Cannot start a round while the game is in phase {state.game_phase!r}.")

    new = copy.deepcopy(state)
    rng = rng or rng_for(new)

    if new.game_phase == "setup":
        if len(new.players) < new.config.min_players:
            raise FailedPrecondition(f"{new.config.variant_id} needs at least {new.config.min_players} players.")
        _begin_round(new, rng)
        return new

    cfg = new.config
    new.previous_round_scores = {
        p.id: RoundResult(score=p.total_score, result_type=_result_type(new, p.id))
        for p in new.players
    }

    for p in new.players:
        for card in p.reset_for_round(keep_life_saver=cfg.life_saver_persists):
            discard(new, card)

    if cfg.reshuffle_each_round or not new.deck:
        pile = [c.flipped(False) for c in new.deck + new.discard_pile]
        rng.shuffle(pile)
        new.deck = pile
        new.discard_pile = []
        new.shuffle_count += 1
        logger.debug("round %d starts from a reshuffled deck of %d", new.round_number + 1, len(pile))

    new.round_number += 1
    new.previous_turn_log = None
    seat = state.seat_of(state.round_starter_id)
    new.round_starter_id = new.players[(seat + 1) % len(new.players)].id
    _begin_round(new, rng)
    return new


def reset_game(state: GameState, rng: Shuffler | None = None) -> GameState:
    """Restart from round 1 with the same seats, rules and seed. Totals go back to zero."""
    seats = [
        PlayerConfig(name=p.name, id=p.id, is_bot=p.is_bot, bot_difficulty=p.bot_difficulty)
        for p in state.players
    ]
    logger.debug("game reset with %d players", len(seats))
    return create_initial_state(seats, config=state.config, seed=state.seed, rng=rng)


def perform_action(state: GameState | None, action: Action, rng: Shuffler | None = None) -> GameState:
    """Apply one action and return the resulting state.

    The input state is never mutated: work happens on a deep copy, so a
    rejected action (an `EngineError`) leaves the caller's value untouched.
    """
    if isinstance(action, InitGameAction):
        if state is not None:
            raise FailedPrecondition("A game has already been initialised.")
        if action.lobby:
            return create_lobby_state(action.players, config=action.config, seed=action.seed, rng=rng)
        return create_initial_state(action.players, config=action.config, seed=action.seed, rng=rng)

    if state is None:
        raise FailedPrecondition("No game has been initialised.")

    if isinstance(action, StartNextRoundAction):
        return start_next_round(state, rng)

    new = copy.deepcopy(state)
    shuffler = rng or rng_for(new)
    if isinstance(action, DrawAction):
        handle_draw(new, action, shuffler)
    elif isinstance(action, StayAction):
        handle_stay(new, action)
    elif isinstance(action, PlayActionAction):
        handle_play_action(new, action, shuffler)
    elif isinstance(action, RemovePlayerAction):
        _remove_player(new, action)
    else:
        raise InvalidArgument(f"Unknown action {action!r}.")
    return new


def replay(
    players: Iterable[PlayerSpec],
    actions: Iterable[Action],
    seed: int = 0,
    config: GameConfig | None = None,
) -> GameState:
    state = create_initial_state(players, config=config, seed=seed)
    for a in actions:
        state = perform_action(state, a)
        if state.game_phase == "gameover":
            break
    return state
