from __future__ import annotations

import logging
from typing import Literal

from .actions import DrawAction, PlayActionAction, StayAction
from .cards import Shuffler, cards_available, discard, draw
from .errors import EmptyDeckError, FailedPrecondition, InvalidArgument, NotFound
from .player import PlayerState
from .rounds import advance_turn, check_round_end
from .state import GameState
from .types import Card

logger = logging.getLogger(__name__)

Outcome = Literal["kept", "pending", "saved", "busted", "discarded"]


def _give_card(state: GameState, player: PlayerState, card: Card) -> None:
    player.hand.append(card.flipped(True))
    if player.id in state.deal_queue:
        state.deal_queue.remove(player.id)


def _queue_pending(player: PlayerState, card: Card) -> None:
    player.reserved_actions.append(card.flipped(True))
    player.pending_immediate_action_ids.append(card.id)


def _discard_pending(state: GameState, player: PlayerState) -> None:
    pending = set(player.pending_immediate_action_ids)
    for c in [c for c in player.reserved_actions if c.id in pending]:
        discard(state, c)
    player.reserved_actions = [c for c in player.reserved_actions if c.id not in pending]
    player.pending_immediate_action_ids = []
    player.deferred_draws = {}


def _others_active(state: GameState, player: PlayerState) -> bool:
    return any(p.is_active and p.id != player.id for p in state.players)


def _drop_orphaned_life_savers(state: GameState) -> None:
    for p in state.players:
        while p.pending_immediate_action_ids:
            head = p.find_reserved(p.pending_immediate_action_ids[0])
            if head is None or head.rank != "LifeSaver" or _others_active(state, p):
                break
            p.pending_immediate_action_ids.pop(0)
            p.reserved_actions = [c for c in p.reserved_actions if c.id != head.id]
            discard(state, head)
            state.log(p.name, "Action", "Discarded Life Saver - no eligible targets")


def _spend_life_saver(state: GameState, player: PlayerState, duplicate: Card) -> None:
    discard(state, duplicate)
    for i, c in enumerate(player.hand):
        if c.is_action and c.rank == "LifeSaver":
            discard(state, player.hand.pop(i))
            break

    # a spare Life Saver still waiting to be given away becomes the new token
    spare = next((c for c in player.reserved_actions if c.rank == "LifeSaver"), None)
    if spare is None:
        player.has_life_saver = False
        return
    player.reserved_actions = [c for c in player.reserved_actions if c.id != spare.id]
    player.pending_immediate_action_ids = [i for i in player.pending_immediate_action_ids if i != spare.id]
    player.hand.append(spare)
    player.has_life_saver = True


def _bust(state: GameState, player: PlayerState) -> None:
    player.has_busted = True
    player.is_active = False
    player.hand = [c.flipped(False) for c in player.hand]
    _discard_pending(state, player)
    if player.id in state.deal_queue:
        state.deal_queue.remove(player.id)


def receive_card(state: GameState, player: PlayerState, card: Card) -> Outcome:
    """Apply a freshly drawn or dealt card to `player`."""
    if card.is_number:
        if player.holds_number(card.rank):
            if player.has_life_saver:
                _spend_life_saver(state, player, card)
                return "saved"
            player.hand.append(card)
            _bust(state, player)
            return "busted"
        _give_card(state, player, card)
        return "kept"

    if card.is_modifier:
        _give_card(state, player, card)
        return "kept"

    if card.rank == "LifeSaver":
        if not player.has_life_saver:
            player.has_life_saver = True
            _give_card(state, player, card)
            return "kept"
        if _others_active(state, player):
            _queue_pending(player, card)
            return "pending"
        discard(state, card)
        return "discarded"

    # Lock and TurnThree need a target before play continues
    _queue_pending(player, card)
    return "pending"


_OUTCOME_NOTES: dict[Outcome, str] = {
    "kept": "",
    "pending": "",
    "saved": " Life Saved!",
    "busted": " Busted!",
    "discarded": " (Discarded Life Saver - no eligible targets)",
}


def _require_playing(state: GameState) -> None:
    if state.game_phase != "playing":
        raise FailedPrecondition(f"Cannot act while the game is in phase {state.game_phase!r}.")


def _require_turn(state: GameState, player: PlayerState) -> None:
    if state.dealing:
        raise FailedPrecondition("The opening deal is still in progress.")
    if player.id != state.current_player_id:
        raise FailedPrecondition(f"It is not {player.name}'s turn.")
    if player.has_pending:
        raise FailedPrecondition(f"{player.name} must resolve pending action cards first.")
    if not player.can_act:
        raise FailedPrecondition(f"{player.name} is out of this round.")


def continue_dealing(state: GameState, rng: Shuffler) -> None:
    """Deal opening cards until everyone has one or someone must resolve an action."""
    while state.game_phase == "playing":
        pending = next((p for p in state.players if p.has_pending), None)
        if pending is not None:
            state.current_player_id = pending.id
            return

        while state.deal_queue:
            head = state.find_player(state.deal_queue[0])
            if head is not None and head.is_active:
                break
            state.deal_queue.pop(0)

        if state.deal_queue and cards_available(state) == 0:
            logger.debug("deck exhausted during the opening deal")
            state.deal_queue = []

        if not state.deal_queue:
            state.turn_order_base_id = None
            starter = state.find_player(state.round_starter_id)
            if starter is not None and starter.is_active:
                state.current_player_id = starter.id
            else:
                first = next(iter(state.active_players()), None)
                state.current_player_id = first.id if first is not None else None
            return

        player = state.get_player(state.deal_queue[0])
        state.current_player_id = player.id
        card = draw(state, rng)
        outcome = receive_card(state, player, card)
        state.log(player.name, "Deal", f"Dealt {state.config.card_name(card)}{_OUTCOME_NOTES[outcome]}")


def handle_draw(state: GameState, action: DrawAction, rng: Shuffler) -> None:
    _require_playing(state)
    actor = state.get_player(action.actor_id)
    _require_turn(state, actor)
    if cards_available(state) == 0:
        raise EmptyDeckError("No cards left in the deck or the discard pile.")

    if not state.turn_order_base_id:
        state.turn_order_base_id = actor.id

    card = draw(state, rng)
    name = state.config.card_name(card)
    outcome = receive_card(state, actor, card)
    note = _OUTCOME_NOTES[outcome]
    if not actor.has_busted and actor.unique_numbers() >= state.config.unique_target:
        note += " Turn 7!"

    state.previous_turn_log = f"{actor.name} hit: drew {name}.{note}"
    state.log(actor.name, "Hit", f"Drew {name}." + note if note else f"Drew {name}")

    if not actor.has_pending:
        advance_turn(state)
    check_round_end(state)


def handle_stay(state: GameState, action: StayAction) -> None:
    _require_playing(state)
    actor = state.get_player(action.actor_id)
    _require_turn(state, actor)

    actor.has_stayed = True
    actor.is_active = False
    state.previous_turn_log = f"{actor.name} stayed."
    state.log(actor.name, "Stay", "Stayed")

    state.turn_order_base_id = None
    advance_turn(state)
    check_round_end(state)


def valid_targets(state: GameState, actor_id: str, card_id: str) -> list[str]:
    """Ids of players `actor_id` may aim the reserved card `card_id` at."""
    actor = state.get_player(actor_id)
    card = actor.find_reserved(card_id)
    if card is None:
        return []
    if card.id in actor.deferred_draws:
        return [actor.id] if actor.is_active else []
    return [
        p.id
        for p in state.players
        if p.is_active and not (card.rank == "LifeSaver" and p.id == actor.id)
    ]


def _validate_play(state: GameState, action: PlayActionAction) -> tuple[PlayerState, Card, PlayerState]:
    _require_playing(state)
    if not action.target_id:
        raise InvalidArgument("PLAY_ACTION requires a target_id.")
    actor = state.get_player(action.actor_id)
    card = actor.find_reserved(action.card_id)
    if card is None:
        raise NotFound(f"{actor.name} holds no reserved card {action.card_id!r}.")
    pending = actor.pending_immediate_action_ids
    if action.card_id not in pending:
        raise FailedPrecondition(f"Card {action.card_id!r} is not waiting to be resolved.")
    if pending[0] != action.card_id:
        raise FailedPrecondition("Pending action cards must be resolved in the order they were drawn.")
    target = state.get_player(action.target_id)
    if card.rank == "LifeSaver" and target.id == actor.id:
        raise InvalidArgument("A spare Life Saver must be given to another player.")
    if card.id in actor.deferred_draws and target.id != actor.id:
        raise InvalidArgument("An interrupted Turn Three resumes on the player holding it.")
    if not target.is_active:
        raise FailedPrecondition(f"{target.name} is not active this round.")
    return actor, card, target


def _resolve_lock(state: GameState, actor: PlayerState, target: PlayerState, card: Card) -> str:
    target.has_stayed = True
    target.is_locked = True
    target.is_active = False
    _give_card(state, target, card)
    _discard_pending(state, target)
    return f"Locked {target.name}"


def _resolve_life_saver(state: GameState, actor: PlayerState, target: PlayerState, card: Card) -> str:
    discard(state, card)
    if target.has_life_saver:
        return f"Discarded ({target.name} already has one)"
    target.has_life_saver = True
    return "Given"


def _resolve_turn_three(
    state: GameState,
    actor: PlayerState,
    target: PlayerState,
    card: Card,
    draws: int,
    rng: Shuffler,
) -> tuple[str, bool]:
    cfg = state.config
    drawn: list[str] = []
    interrupted = False
    for i in range(draws):
        if cards_available(state) == 0:
            logger.debug("deck exhausted during Turn Three on %s", target.id)
            break
        nxt = draw(state, rng)
        drawn.append(cfg.card_name(nxt))
        outcome = receive_card(state, target, nxt)
        if outcome == "busted":
            break
        if outcome == "pending":
            remaining = draws - (i + 1)
            if remaining > 0:
                target.reserved_actions.append(card)
                target.pending_immediate_action_ids.append(card.id)
                target.deferred_draws[card.id] = remaining
            else:
                _give_card(state, target, card)
            if not state.turn_order_base_id:
                state.turn_order_base_id = actor.id
            state.current_player_id = target.id
            interrupted = True
            break
        if target.unique_numbers() >= cfg.unique_target:
            break

    if not interrupted:
        if target.has_busted:
            discard(state, card)
        else:
            _give_card(state, target, card)

    result = f"Turn 3 (on {target.name}). Draws {', '.join(drawn) if drawn else 'nothing'}"
    if target.has_busted:
        result += f". {target.name} Busted"
    return result, interrupted


def handle_play_action(state: GameState, action: PlayActionAction, rng: Shuffler) -> None:
    actor, card, target = _validate_play(state, action)
    was_dealing = state.dealing

    actor.reserved_actions = [c for c in actor.reserved_actions if c.id != card.id]
    actor.pending_immediate_action_ids.pop(0)
    draws = actor.deferred_draws.pop(card.id, state.config.turn_three_draws)

    name = state.config.card_name(card)
    state.previous_turn_log = f"{actor.name} played {name} on {target.name}."

    interrupted = False
    if card.rank == "Lock":
        result = _resolve_lock(state, actor, target, card)
    elif card.rank == "LifeSaver":
        result = _resolve_life_saver(state, actor, target, card)
    else:
        result, interrupted = _resolve_turn_three(state, actor, target, card, draws, rng)
    state.log(actor.name, "Action", result, target.name)
    _drop_orphaned_life_savers(state)

    if state.game_phase == "playing":
        if was_dealing:
            continue_dealing(state, rng)
        elif not interrupted and not actor.has_pending:
            advance_turn(state)
    check_round_end(state)
