from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass

from .actions import Action, DrawAction, PlayActionAction, StayAction
from .cards import build_deck
from .errors import FailedPrecondition
from .match import perform_action
from .odds import expected_hit_score
from .player import PlayerState
from .resolver import valid_targets
from .scoring import compute_hand_score
from .state import GameState
from .types import BotDifficulty, Card


@dataclass(frozen=True)
class BotSpec:
    """Bot tuning.

    difficulty:
      easy   = hits, stays and targets at random
      medium = estimates the deck from its own hand and aims at total scores
      hard   = also counts every visible card and includes round scores
    """

    difficulty: BotDifficulty = "medium"


def _spec_for(player: PlayerState, spec: BotSpec | None) -> BotSpec:
    if spec is not None:
        return spec
    return BotSpec(difficulty=player.bot_difficulty or "medium")


def _unseen_cards(state: GameState, player: PlayerState, difficulty: BotDifficulty) -> list[Card]:
    """The full deck minus the cards this bot can see."""
    known: list[Card] = list(player.hand)
    if difficulty == "hard":
        for p in state.players:
            if p.id != player.id:
                known.extend(c for c in p.hand if c.face_up)
        if state.discard_pile:
            known.append(state.discard_pile[-1])

    seen = Counter((c.suit, c.rank) for c in known)
    unseen: list[Card] = []
    for c in build_deck(state.config.deck):
        key = (c.suit, c.rank)
        if seen[key] > 0:
            seen[key] -= 1
        else:
            unseen.append(c)
    return unseen


def _threat(state: GameState, p: PlayerState, difficulty: BotDifficulty) -> int:
    if difficulty == "hard" and not p.has_busted:
        return p.total_score + compute_hand_score(p.hand, state.config)
    return p.total_score


def _choose_target(
    state: GameState,
    player: PlayerState,
    card: Card,
    difficulty: BotDifficulty,
    rng: random.Random,
) -> str:
    targets = valid_targets(state, player.id, card.id)
    if not targets:
        raise FailedPrecondition(f"{player.name} has no legal target for {card.id}.")
    if len(targets) == 1:
        return targets[0]
    if difficulty == "easy":
        return rng.choice(targets)

    candidates = [state.get_player(pid) for pid in targets]
    if card.rank == "LifeSaver":
        # help the underdog, preferring someone without a token
        candidates.sort(key=lambda p: (p.has_life_saver, _threat(state, p, difficulty)))
        return candidates[0].id

    # Lock and Turn Three go at the leader, never at ourselves if avoidable
    others = [p for p in candidates if p.id != player.id] or candidates
    others.sort(key=lambda p: -_threat(state, p, difficulty))
    return others[0].id


def choose_action(
    state: GameState,
    player_id: str,
    spec: BotSpec | None = None,
    rng: random.Random | None = None,
) -> Action:
    """Pick the next action for `player_id`, who must be the player to act."""
    player = state.get_player(player_id)
    spec = _spec_for(player, spec)
    rng = rng or random.Random(state.seed * 7919 + len(state.ledger))

    if player.has_pending:
        card = player.find_reserved(player.pending_immediate_action_ids[0])
        assert card is not None
        target = _choose_target(state, player, card, spec.difficulty, rng)
        return PlayActionAction(actor_id=player.id, card_id=card.id, target_id=target)

    if spec.difficulty == "easy":
        return DrawAction(actor_id=player.id) if rng.random() < 0.5 else StayAction(actor_id=player.id)

    deck = _unseen_cards(state, player, spec.difficulty)
    expected = expected_hit_score(player.hand, deck, state.config, player.has_life_saver)
    current = compute_hand_score(player.hand, state.config)
    if expected > current:
        return DrawAction(actor_id=player.id)
    return StayAction(actor_id=player.id)


def play_bots(state: GameState, rng: random.Random | None = None, max_steps: int = 500) -> GameState:
    """Apply bot actions while a bot is the player to act.

    Stops at the first human turn or when the round is no longer in play.
    """
    for _ in range(max_steps):
        if state.game_phase != "playing":
            break
        current = state.current_player()
        if current is None or not current.is_bot:
            break
        action = choose_action(state, current.id, rng=rng)
        state = perform_action(state, action)
    return state
