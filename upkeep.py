"""
Turn and match flow for Siege Tactics.

Handles the player_turn <-> ai_turn transitions and what happens at each
boundary:
- Reset the incoming side's per-turn actions and clear the selection
- Advance the turn counter when play returns to the player
- Shrink the playable zone every shrink_interval turns, down to a floor
- Recompute fog of war for both factions
- Check victory (a side with no units left loses) and end the match
"""

import logging
from typing import Optional

from events import GAME_ENDED, TURN_SWITCHED
from models import Owner
from state import GameState, Phase, get_game_summary, log_event

logger = logging.getLogger(__name__)


def check_victory_condition(game_state: GameState) -> Optional[Owner]:
    """
    Check whether either side has been wiped out.

    Args:
        game_state: Current game state

    Returns:
        Owner.PLAYER if the AI has no living units, Owner.AI if the player has
        none, None otherwise
    """
    alive_ai = [u for u in game_state.ai_units if u.is_alive()]
    alive_player = [u for u in game_state.player_units if u.is_alive()]

    if not alive_ai:
        return Owner.PLAYER
    if not alive_player:
        return Owner.AI
    return None


def apply_shrink(game_state: GameState) -> bool:
    """
    Shrink the playable zone by one ring if the turn counter calls for it.

    Returns:
        True if the radius changed
    """
    interval = game_state.config['shrink_interval']
    floor = game_state.config['min_shrink_radius']
    if interval <= 0 or game_state.turn_count <= 0 or game_state.turn_count % interval != 0:
        return False

    new_radius = max(floor, game_state.shrink_radius - 1)
    if new_radius == game_state.shrink_radius:
        return False

    game_state.shrink_radius = new_radius
    game_state.battlefield.update_boundaries(new_radius)
    log_event(game_state, f"Battlefield shrinks to radius {new_radius}", shrink_radius=new_radius)
    logger.info("Turn %d: playable radius shrinks to %d", game_state.turn_count, new_radius)
    return True


def switch_turn(game_state: GameState, new_turn: Owner) -> None:
    """
    Hand the turn to new_turn.

    Resets that side's units, clears the selection, advances the turn
    counter (and possibly shrinks the map) when returning to the player,
    then recomputes vision.
    """
    game_state.phase = Phase.PLAYER_TURN if new_turn == Owner.PLAYER else Phase.AI_TURN
    for unit in game_state.get_units(new_turn):
        unit.reset_turn_actions()
    game_state.clear_selection()
    game_state.hovered_hex = None

    if new_turn == Owner.PLAYER:
        game_state.turn_count += 1
        apply_shrink(game_state)

    game_state.update_vision()

    log_event(game_state, f"Turn passes to {new_turn.value}")
    logger.info("Turn %d: %s to act", game_state.turn_count, new_turn.value)
    game_state.events.emit(TURN_SWITCHED, {
        'owner': new_turn.value,
        'turn_count': game_state.turn_count,
        'shrink_radius': game_state.shrink_radius,
    })


def end_match(game_state: GameState, winner: Owner) -> None:
    """Move the match to its terminal state and announce the winner."""
    game_state.phase = Phase.ENDED
    game_state.winner = winner
    game_state.clear_selection()

    log_event(
        game_state,
        f"Match over: {winner.value} wins",
        winner=winner.value,
        enemies_destroyed_by_player=game_state.enemies_destroyed_by_player,
    )
    logger.info("Game ended. Victor: %s", winner.value)
    game_state.events.emit(GAME_ENDED, {
        'winner': winner.value,
        'state': get_game_summary(game_state),
    })


def resolve_victory(game_state: GameState) -> Optional[Owner]:
    """End the match if a side has been wiped out; returns the winner if so."""
    if game_state.is_over:
        return game_state.winner
    winner = check_victory_condition(game_state)
    if winner is not None:
        end_match(game_state, winner)
    return winner


def end_player_turn(game_state: GameState) -> bool:
    """
    Finish the player's turn and start the AI's.

    Returns:
        False if it was not the player's turn; True otherwise (including when
        the match ended instead of passing the turn)
    """
    if game_state.phase != Phase.PLAYER_TURN:
        logger.info("Cannot end player turn during %s", game_state.phase.value)
        return False

    if resolve_victory(game_state) is not None:
        return True

    switch_turn(game_state, Owner.AI)
    return True


def finish_ai_turn(game_state: GameState) -> bool:
    """
    Finish the AI's turn and hand play back to the player.

    Returns:
        False if it was not the AI's turn
    """
    if game_state.phase != Phase.AI_TURN:
        logger.info("Cannot finish AI turn during %s", game_state.phase.value)
        return False

    if resolve_victory(game_state) is not None:
        return True

    switch_turn(game_state, Owner.PLAYER)
    return True
