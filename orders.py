"""
Player intents for Siege Tactics.

The input layer turns clicks into hex coordinates and calls one of these.
Each intent is validated first; an invalid intent is logged and returns
False without touching the game state. Nothing here raises for bad input.
"""

import logging
from typing import Optional

from combat import execute_attack, get_attack_range, get_enemy_at_hex
from models import Hex, Owner, Unit
from pathfinding import find_path, get_reachable_hexes
from state import GameState, Phase, log_event
from upkeep import end_player_turn, resolve_victory

logger = logging.getLogger(__name__)


class ActionValidationError(Exception):
    """Exception raised when a player intent fails validation."""
    pass


def _reject(game_state: GameState, action: str, error: ActionValidationError) -> bool:
    logger.info("Rejected %s: %s", action, error)
    log_event(game_state, f"Rejected {action}: {error}", rejected=action)
    return False


def validate_player_turn(game_state: GameState) -> None:
    if game_state.phase == Phase.ENDED:
        raise ActionValidationError("The match is over")
    if game_state.phase != Phase.PLAYER_TURN:
        raise ActionValidationError("Not your turn")


def validate_selectable(game_state: GameState, unit: Optional[Unit]) -> Unit:
    if unit is None:
        raise ActionValidationError("No such unit")
    if unit.owner != Owner.PLAYER:
        raise ActionValidationError(f"Unit {unit.id} belongs to the enemy")
    if not unit.is_alive():
        raise ActionValidationError(f"Unit {unit.id} is destroyed")
    return unit


def refresh_selection(game_state: GameState) -> None:
    """Recompute the selected unit's valid move and attack hexes."""
    unit = game_state.selected_unit
    if unit is None:
        game_state.clear_selection()
        return

    if unit.can_move():
        game_state.valid_move_hexes = get_reachable_hexes(
            unit.position, unit.remaining_movement(), game_state.battlefield, game_state.shrink_radius
        )
    else:
        game_state.valid_move_hexes = []

    if unit.can_attack():
        game_state.valid_attack_hexes = get_attack_range(
            unit, game_state.battlefield, game_state.shrink_radius
        )
    else:
        game_state.valid_attack_hexes = []
    game_state.planned_path = []


def select_unit(game_state: GameState, unit_id: str) -> bool:
    """Select one of the player's living units and compute its move/attack options."""
    try:
        validate_player_turn(game_state)
        unit = validate_selectable(game_state, game_state.get_unit_by_id(unit_id))
    except ActionValidationError as e:
        return _reject(game_state, "select", e)

    game_state.selected_unit = unit
    refresh_selection(game_state)
    logger.info(
        "Selected %s at %s: %d moves, %d attack hexes",
        unit.id, unit.position, len(game_state.valid_move_hexes), len(game_state.valid_attack_hexes),
    )
    return True


def hover_hex(game_state: GameState, h: Optional[Hex]) -> bool:
    """Track the hovered hex and preview the selected unit's path to it."""
    if h is None or not game_state.is_in_playable_area(h):
        game_state.hovered_hex = None
        game_state.planned_path = []
        return h is None

    game_state.hovered_hex = h
    if game_state.selected_unit is not None and h in game_state.valid_move_hexes:
        game_state.planned_path = find_path(
            game_state.selected_unit.position, h, game_state.battlefield, game_state.shrink_radius
        )
    else:
        game_state.planned_path = []
    return True


def move_selected_unit(game_state: GameState, destination: Hex) -> bool:
    """Move the selected unit to destination if it is one of its valid moves."""
    try:
        validate_player_turn(game_state)
        unit = game_state.selected_unit
        if unit is None:
            raise ActionValidationError("No unit selected")
        if not unit.can_move():
            raise ActionValidationError(f"{unit.id} cannot move this turn")
        if destination not in game_state.valid_move_hexes:
            raise ActionValidationError(f"Cannot move {unit.id} to {destination}")
        path = find_path(unit.position, destination, game_state.battlefield, game_state.shrink_radius)
        if not path:
            raise ActionValidationError(f"No path from {unit.position} to {destination}")
    except ActionValidationError as e:
        return _reject(game_state, "move", e)

    old_position = unit.position
    game_state.move_unit(unit, destination, path)
    log_event(
        game_state,
        f"{unit.id} moves from {old_position} to {destination}",
        unit=unit.id, cost=unit.movement_points_used,
    )
    refresh_selection(game_state)
    return True


def attack_at(game_state: GameState, target_hex: Hex) -> bool:
    """Fire the selected unit at the enemy standing on target_hex."""
    try:
        validate_player_turn(game_state)
        attacker = game_state.selected_unit
        if attacker is None:
            raise ActionValidationError("No unit selected")
        if target_hex not in game_state.valid_attack_hexes:
            raise ActionValidationError(f"{target_hex} is not in range of {attacker.id}")
        target = get_enemy_at_hex(target_hex, attacker, game_state)
        if target is None:
            raise ActionValidationError(f"No enemy at {target_hex}")
    except ActionValidationError as e:
        return _reject(game_state, "attack", e)

    result = execute_attack(attacker, target, game_state)
    if not result.success:
        return _reject(game_state, "attack", ActionValidationError(f"{attacker.id} cannot attack {target.id}"))

    log_event(
        game_state,
        f"{attacker.id} hits {target.id} for {result.damage}",
        attacker=attacker.id, target=target.id, damage=result.damage,
        destroyed=result.target_destroyed,
    )

    if resolve_victory(game_state) is None:
        refresh_selection(game_state)
    return True


def end_turn(game_state: GameState) -> bool:
    """The player's end-turn signal; the only way into the AI turn."""
    try:
        validate_player_turn(game_state)
    except ActionValidationError as e:
        return _reject(game_state, "end turn", e)
    return end_player_turn(game_state)
