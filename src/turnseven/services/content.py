from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from turnseven.engine.types import ACTION_KINDS, DEFAULT_ACTION_LABELS, ActionKind, DeckSpec, GameConfig

logger = logging.getLogger(__name__)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


@lru_cache(maxsize=None)
def _load_schema(path: Path) -> object:
    return _load_json(path)


def schema_errors(instance: object, schema: object) -> list[str]:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    out = []
    for err in errors[:10]:
        loc = "/".join(str(p) for p in err.absolute_path)
        out.append(f"- {loc}: {err.message}")
    return out


def validate_json(instance: object, schema: object, *, context: str) -> None:
    lines = schema_errors(instance, schema)
    if lines:
        raise ContentError("\n".join([f"Schema validation failed for {context}:", *lines]))


def _require_int(obj: Mapping[str, object], key: str, default: int) -> int:
    v = obj.get(key, default)
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContentError(f"Expected int for {key}")
    return v


def _require_bool(obj: Mapping[str, object], key: str, default: bool) -> bool:
    v = obj.get(key, default)
    if not isinstance(v, bool):
        raise ContentError(f"Expected bool for {key}")
    return v


def _parse_deck(raw: Mapping[str, object]) -> DeckSpec:
    numbers = raw.get("numbers", [])
    modifiers = raw.get("modifiers", [])
    actions = raw.get("actions", {})
    if not isinstance(numbers, list) or not isinstance(modifiers, list) or not isinstance(actions, dict):
        raise ContentError("deck must have numbers, modifiers and actions")

    counts: list[tuple[int, int]] = []
    for entry in numbers:
        if not isinstance(entry, dict):
            continue
        counts.append((_require_int(entry, "value", 0), _require_int(entry, "copies", 0)))

    kinds: list[tuple[ActionKind, int]] = []
    for kind in ACTION_KINDS:
        n = actions.get(kind, 0)
        if not isinstance(n, int):
            raise ContentError(f"Expected int count for action {kind}")
        if n:
            kinds.append((kind, n))

    return DeckSpec(
        numbers=tuple(counts),
        modifiers=tuple(m for m in modifiers if isinstance(m, str)),
        actions=tuple(kinds),
    )


def _parse_variant(variant_id: str, raw: Mapping[str, object]) -> GameConfig:
    deck_raw = raw.get("deck")
    deck = _parse_deck(deck_raw) if isinstance(deck_raw, dict) else DeckSpec()

    labels = dict(DEFAULT_ACTION_LABELS)
    raw_labels = raw.get("action_labels", {})
    if isinstance(raw_labels, dict):
        for kind in ACTION_KINDS:
            label = raw_labels.get(kind)
            if isinstance(label, str):
                labels[kind] = label

    tie_break = raw.get("tie_break", "seat_order")
    if tie_break not in ("seat_order", "round_order"):
        raise ContentError(f"Unknown tie_break {tie_break!r} in variant {variant_id}")

    min_players = _require_int(raw, "min_players", 1)
    max_players = _require_int(raw, "max_players", 18)
    if min_players > max_players:
        raise ContentError(f"Variant {variant_id}: min_players exceeds max_players")

    return GameConfig(
        variant_id=variant_id,
        deck=deck,
        action_labels=tuple((kind, labels[kind]) for kind in ACTION_KINDS),
        win_score=_require_int(raw, "win_score", 200),
        unique_target=_require_int(raw, "unique_target", 7),
        unique_bonus=_require_int(raw, "unique_bonus", 15),
        turn_three_draws=_require_int(raw, "turn_three_draws", 3),
        life_saver_persists=_require_bool(raw, "life_saver_persists", False),
        reshuffle_keeps_top_discard=_require_bool(raw, "reshuffle_keeps_top_discard", True),
        reshuffle_each_round=_require_bool(raw, "reshuffle_each_round", False),
        tie_break=tie_break,  # type: ignore[arg-type]
        min_players=min_players,
        max_players=max_players,
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_variants(self) -> dict[str, GameConfig]:
        path = self._data_dir / "variants.json"
        schema = _load_schema(self._schema_dir / "variants.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("variants.json must be an object")
        raw_variants = raw.get("variants")
        if not isinstance(raw_variants, dict):
            raise ContentError("variants.json.variants must be an object")

        out: dict[str, GameConfig] = {}
        for variant_id, v in raw_variants.items():
            if not isinstance(v, dict):
                continue
            out[variant_id] = _parse_variant(variant_id, v)
            logger.debug("loaded variant %s (%d cards)", variant_id, out[variant_id].deck.size)
        return out

    def load_config(self, variant_id: str) -> GameConfig:
        variants = self.load_variants()
        try:
            return variants[variant_id]
        except KeyError as e:
            raise ContentError(f"Unknown variant: {variant_id}") from e

    def load_action_schema(self) -> object:
        return _load_schema(self._schema_dir / "actions.schema.json")

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_variants()
        try:
            Draft202012Validator.check_schema(self.load_action_schema())
        except SchemaError as e:
            raise ContentError(f"Invalid action schema: {e.message}") from e
