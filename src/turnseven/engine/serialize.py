from __future__ import annotations

from typing import Mapping

from .actions import (
    Action,
    DrawAction,
    InitGameAction,
    PlayActionAction,
    RemovePlayerAction,
    StartNextRoundAction,
    StayAction,
    action_type,
)
from .errors import InvalidArgument
from .player import PlayerState
from .state import GameState, LedgerEntry, RoundResult
from .types import ACTION_KINDS, DEFAULT_ACTION_LABELS, ActionKind, Card, DeckSpec, GameConfig, PlayerConfig


def card_to_dict(c: Card) -> dict[str, object]:
    return {"id": c.id, "suit": c.suit, "rank": c.rank, "face_up": c.face_up}


def card_from_dict(d: Mapping[str, object]) -> Card:
    return Card(id=str(d["id"]), suit=d["suit"], rank=str(d["rank"]), face_up=bool(d.get("face_up", False)))  # type: ignore[arg-type]


def config_to_dict(cfg: GameConfig) -> dict[str, object]:
    return {
        "variant_id": cfg.variant_id,
        "deck": {
            "numbers": [[v, n] for v, n in cfg.deck.numbers],
            "modifiers": list(cfg.deck.modifiers),
            "actions": [[k, n] for k, n in cfg.deck.actions],
        },
        "action_labels": [[k, label] for k, label in cfg.action_labels],
        "win_score": cfg.win_score,
        "unique_target": cfg.unique_target,
        "unique_bonus": cfg.unique_bonus,
        "turn_three_draws": cfg.turn_three_draws,
        "life_saver_persists": cfg.life_saver_persists,
        "reshuffle_keeps_top_discard": cfg.reshuffle_keeps_top_discard,
        "reshuffle_each_round": cfg.reshuffle_each_round,
        "tie_break": cfg.tie_break,
        "min_players": cfg.min_players,
        "max_players": cfg.max_players,
    }


_CONFIG_INTS: dict[str, int] = {
    "win_score": 1,
    "unique_target": 1,
    "unique_bonus": 0,
    "turn_three_draws": 1,
    "min_players": 1,
    "max_players": 1,
}
_CONFIG_BOOLS = ("life_saver_persists", "reshuffle_keeps_top_discard", "reshuffle_each_round")


def _config_int(d: Mapping[str, object], key: str, minimum: int) -> int:
    v = d.get(key, getattr(GameConfig, key))
    if not isinstance(v, int) or isinstance(v, bool) or v < minimum:
        raise InvalidArgument(f"Config field {key!r} must be an integer >= {minimum}.")
    return v


def _config_bool(d: Mapping[str, object], key: str) -> bool:
    v = d.get(key, getattr(GameConfig, key))
    if not isinstance(v, bool):
        raise InvalidArgument(f"Config field {key!r} must be a boolean.")
    return v


def _pairs(raw: object, key: str) -> list[tuple[object, object]]:
    if not isinstance(raw, list) or not all(isinstance(p, (list, tuple)) and len(p) == 2 for p in raw):
        raise InvalidArgument(f"Config field {key!r} must be a list of pairs.")
    return [(p[0], p[1]) for p in raw]


def _count(v: object, key: str) -> int:
    if not isinstance(v, int) or isinstance(v, bool) or v < 0:
        raise InvalidArgument(f"Config field {key!r} holds a non-integer count.")
    return v


def _deck_from_dict(raw: object) -> DeckSpec:
    if not isinstance(raw, Mapping):
        raise InvalidArgument("Config field 'deck' must be an object.")
    numbers = tuple((_count(v, "deck.numbers"), _count(n, "deck.numbers")) for v, n in _pairs(raw.get("numbers"), "deck.numbers"))
    modifiers = raw.get("modifiers")
    if not isinstance(modifiers, list) or not all(
        isinstance(m, str) and len(m) > 1 and m[0] in "x+" and m[1:].isdigit() for m in modifiers
    ):
        raise InvalidArgument("Config field 'deck.modifiers' must list 'xN' or '+N' tags.")
    actions: list[tuple[ActionKind, int]] = []
    for kind, n in _pairs(raw.get("actions"), "deck.actions"):
        if kind not in ACTION_KINDS:
            raise InvalidArgument(f"Unknown action card kind {kind!r}.")
        actions.append((kind, _count(n, "deck.actions")))  # type: ignore[arg-type]
    return DeckSpec(numbers=numbers, modifiers=tuple(modifiers), actions=tuple(actions))


def config_from_dict(d: Mapping[str, object]) -> GameConfig:
    """Inverse of `config_to_dict`. Every field is type-checked; rejections raise `InvalidArgument`."""
    unknown = set(d) - set(config_to_dict(GameConfig()))
    if unknown:
        raise InvalidArgument(f"Unknown config fields: {', '.join(sorted(unknown))}.")

    variant_id = d.get("variant_id", GameConfig.variant_id)
    if not isinstance(variant_id, str) or not variant_id:
        raise InvalidArgument("Config field 'variant_id' must be a non-empty string.")

    deck = _deck_from_dict(d["deck"]) if "deck" in d else DeckSpec()

    labels: list[tuple[ActionKind, str]] = []
    if "action_labels" in d:
        for kind, label in _pairs(d["action_labels"], "action_labels"):
            if kind not in ACTION_KINDS or not isinstance(label, str):
                raise InvalidArgument(f"Bad action label entry for {kind!r}.")
            labels.append((kind, label))  # type: ignore[arg-type]

    tie_break = d.get("tie_break", GameConfig.tie_break)
    if tie_break not in ("seat_order", "round_order"):
        raise InvalidArgument(f"Unknown tie_break {tie_break!r}.")

    ints = {k: _config_int(d, k, m) for k, m in _CONFIG_INTS.items()}
    if ints["min_players"] > ints["max_players"]:
        raise InvalidArgument("Config min_players exceeds max_players.")

    return GameConfig(
        variant_id=variant_id,
        deck=deck,
        action_labels=tuple(labels) if "action_labels" in d else DEFAULT_ACTION_LABELS,
        tie_break=tie_break,  # type: ignore[arg-type]
        **ints,
        **{k: _config_bool(d, k) for k in _CONFIG_BOOLS},
    )


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "hand": [card_to_dict(c) for c in p.hand],
        "round_score": p.round_score,
        "total_score": p.total_score,
        "is_active": p.is_active,
        "has_stayed": p.has_stayed,
        "has_busted": p.has_busted,
        "is_locked": p.is_locked,
        "has_life_saver": p.has_life_saver,
        "reserved_actions": [card_to_dict(c) for c in p.reserved_actions],
        "pending_immediate_action_ids": list(p.pending_immediate_action_ids),
        "deferred_draws": dict(p.deferred_draws),
        "is_bot": p.is_bot,
        "bot_difficulty": p.bot_difficulty,
    }


def _player_from_dict(d: Mapping[str, object]) -> PlayerState:
    return PlayerState(
        id=str(d["id"]),
        name=str(d["name"]),
        hand=[card_from_dict(c) for c in d["hand"]],  # type: ignore[union-attr]
        round_score=int(d["round_score"]),  # type: ignore[arg-type]
        total_score=int(d["total_score"]),  # type: ignore[arg-type]
        is_active=bool(d["is_active"]),
        has_stayed=bool(d["has_stayed"]),
        has_busted=bool(d["has_busted"]),
        is_locked=bool(d.get("is_locked", False)),
        has_life_saver=bool(d["has_life_saver"]),
        reserved_actions=[card_from_dict(c) for c in d["reserved_actions"]],  # type: ignore[union-attr]
        pending_immediate_action_ids=[str(i) for i in d["pending_immediate_action_ids"]],  # type: ignore[union-attr]
        deferred_draws={str(k): int(v) for k, v in dict(d.get("deferred_draws") or {}).items()},  # type: ignore[call-overload]
        is_bot=bool(d.get("is_bot", False)),
        bot_difficulty=d.get("bot_difficulty"),  # type: ignore[arg-type]
    )


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the game state."""
    return {
        "config": config_to_dict(state.config),
        "players": [_player_to_dict(p) for p in state.players],
        "deck": [card_to_dict(c) for c in state.deck],
        "discard_pile": [card_to_dict(c) for c in state.discard_pile],
        "current_player_id": state.current_player_id,
        "game_phase": state.game_phase,
        "winner_id": state.winner_id,
        "round_number": state.round_number,
        "round_starter_id": state.round_starter_id,
        "turn_order_base_id": state.turn_order_base_id,
        "deal_queue": list(state.deal_queue),
        "seed": state.seed,
        "shuffle_count": state.shuffle_count,
        "previous_turn_log": state.previous_turn_log,
        "previous_round_scores": {
            pid: {"score": r.score, "result_type": r.result_type}
            for pid, r in state.previous_round_scores.items()
        },
        "ledger": [
            {
                "round_number": e.round_number,
                "player_name": e.player_name,
                "action": e.action,
                "result": e.result,
                "target_name": e.target_name,
            }
            for e in state.ledger
        ],
    }


def state_from_dict(d: Mapping[str, object]) -> GameState:
    """Rebuild a GameState from `snapshot` output (for example after a store round-trip)."""
    try:
        return GameState(
            players=[_player_from_dict(p) for p in d["players"]],  # type: ignore[union-attr]
            config=config_from_dict(d["config"]),  # type: ignore[arg-type]
            deck=[card_from_dict(c) for c in d["deck"]],  # type: ignore[union-attr]
            discard_pile=[card_from_dict(c) for c in d["discard_pile"]],  # type: ignore[union-attr]
            current_player_id=d.get("current_player_id"),  # type: ignore[arg-type]
            game_phase=d["game_phase"],  # type: ignore[arg-type]
            winner_id=d.get("winner_id"),  # type: ignore[arg-type]
            round_number=int(d["round_number"]),  # type: ignore[arg-type]
            round_starter_id=d.get("round_starter_id"),  # type: ignore[arg-type]
            turn_order_base_id=d.get("turn_order_base_id"),  # type: ignore[arg-type]
            deal_queue=[str(i) for i in d.get("deal_queue") or []],  # type: ignore[union-attr]
            seed=int(d.get("seed", 0)),  # type: ignore[arg-type]
            shuffle_count=int(d.get("shuffle_count", 0)),  # type: ignore[arg-type]
            previous_turn_log=d.get("previous_turn_log"),  # type: ignore[arg-type]
            previous_round_scores={
                str(pid): RoundResult(score=int(r["score"]), result_type=r["result_type"])
                for pid, r in dict(d.get("previous_round_scores") or {}).items()  # type: ignore[call-overload]
            },
            ledger=[LedgerEntry(**e) for e in d.get("ledger") or []],  # type: ignore[union-attr]
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidArgument(f"Malformed game state: {e}") from e


def _player_config_to_dict(p: PlayerConfig) -> dict[str, object]:
    out: dict[str, object] = {"name": p.name, "is_bot": p.is_bot}
    if p.id is not None:
        out["id"] = p.id
    if p.bot_difficulty is not None:
        out["bot_difficulty"] = p.bot_difficulty
    return out


def action_to_dict(a: Action) -> dict[str, object]:
    out: dict[str, object] = {"type": action_type(a)}
    if isinstance(a, InitGameAction):
        out["players"] = [_player_config_to_dict(p) for p in a.players]
        out["seed"] = a.seed
        out["lobby"] = a.lobby
        if a.config is not None:
            out["config"] = config_to_dict(a.config)
    elif isinstance(a, (DrawAction, StayAction)):
        out["actor_id"] = a.actor_id
    elif isinstance(a, PlayActionAction):
        out["actor_id"] = a.actor_id
        out["card_id"] = a.card_id
        out["target_id"] = a.target_id
    elif isinstance(a, RemovePlayerAction):
        out["player_id"] = a.player_id
    return out


def _require_str(d: Mapping[str, object], key: str) -> str:
    v = d.get(key)
    if not isinstance(v, str) or not v:
        raise InvalidArgument(f"Action field {key!r} must be a non-empty string.")
    return v


def action_from_dict(d: Mapping[str, object]) -> Action:
    """Turn a wire payload into a tagged action. Structural checks only."""
    t = d.get("type")
    if t == "DRAW":
        return DrawAction(actor_id=_require_str(d, "actor_id"))
    if t == "STAY":
        return StayAction(actor_id=_require_str(d, "actor_id"))
    if t == "PLAY_ACTION":
        target = d.get("target_id")
        if target is not None and not isinstance(target, str):
            raise InvalidArgument("Action field 'target_id' must be a string.")
        return PlayActionAction(
            actor_id=_require_str(d, "actor_id"),
            card_id=_require_str(d, "card_id"),
            target_id=target,
        )
    if t == "REMOVE_PLAYER":
        return RemovePlayerAction(player_id=_require_str(d, "player_id"))
    if t == "START_NEXT_ROUND":
        return StartNextRoundAction()
    if t == "INIT_GAME":
        raw_players = d.get("players")
        if not isinstance(raw_players, list) or not raw_players:
            raise InvalidArgument("INIT_GAME needs a non-empty list of players.")
        players: list[PlayerConfig] = []
        for i, p in enumerate(raw_players):
            if not isinstance(p, Mapping):
                raise InvalidArgument(f"Player entry {i} is malformed.")
            name = p.get("name", "")
            pid = p.get("id")
            is_bot = p.get("is_bot", False)
            difficulty = p.get("bot_difficulty")
            if not isinstance(name, str):
                raise InvalidArgument(f"Player entry {i} has a non-string name.")
            if pid is not None and (not isinstance(pid, str) or not pid):
                raise InvalidArgument(f"Player entry {i} has an invalid id.")
            if not isinstance(is_bot, bool):
                raise InvalidArgument(f"Player entry {i} has a non-boolean is_bot.")
            if difficulty not in (None, "easy", "medium", "hard"):
                raise InvalidArgument(f"Player entry {i} has an unknown bot difficulty {difficulty!r}.")
            players.append(PlayerConfig(name=name, id=pid, is_bot=is_bot, bot_difficulty=difficulty))  # type: ignore[arg-type]
        raw_cfg = d.get("config")
        if raw_cfg is not None and not isinstance(raw_cfg, Mapping):
            raise InvalidArgument("INIT_GAME config must be an object.")
        cfg = config_from_dict(raw_cfg) if raw_cfg is not None else None
        seed = d.get("seed", 0)
        if not isinstance(seed, int) or isinstance(seed, bool):
            raise InvalidArgument("INIT_GAME seed must be an integer.")
        lobby = d.get("lobby", False)
        if not isinstance(lobby, bool):
            raise InvalidArgument("INIT_GAME lobby must be a boolean.")
        return InitGameAction(
            players=tuple(players),
            config=cfg,
            seed=seed,
            lobby=lobby,
        )
    raise InvalidArgument(f"Unknown action type: {t!r}")
