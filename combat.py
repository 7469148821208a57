"""
Combat resolution for Siege Tactics.

Handles attack ranges, target selection, attack legality (including the
player's fog-of-war gate), damage and unit destruction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Set

from events import ATTACK_EXECUTED
from map_gen import ORIGIN, Battlefield, hex_distance, to_key
from models import Hex, Owner, Unit
from vision import VisionEngine

if TYPE_CHECKING:
    from state import GameState

logger = logging.getLogger(__name__)


@dataclass
class AttackResult:
    success: bool
    damage: int = 0
    target_destroyed: bool = False
    attacker_id: Optional[str] = None
    target_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'damage': self.damage,
            'target_destroyed': self.target_destroyed,
            'attacker_id': self.attacker_id,
            'target_id': self.target_id,
        }


def get_attack_range(unit: Unit, battlefield: Battlefield, shrink_radius: int) -> List[Hex]:
    """
    Calculate all hexes a unit can fire on.

    Args:
        unit: Attacking unit
        battlefield: Battlefield to enumerate
        shrink_radius: Current playable radius; hexes outside it cannot be targeted

    Returns:
        Hexes whose distance from the unit is within its weapon's [min, max]
    """
    range_min, range_max = unit.attack_range()
    attackable = []
    for tile in battlefield:
        distance = hex_distance(unit.position, tile.coordinate)
        if range_min <= distance <= range_max and hex_distance(tile.coordinate, ORIGIN) <= shrink_radius:
            attackable.append(tile.coordinate)
    return attackable


def get_valid_targets(attacker: Unit, game_state: GameState) -> List[Unit]:
    """Living enemy units standing on a hex in the attacker's range. Vision is not considered."""
    in_range: Set[str] = {
        to_key(h) for h in get_attack_range(attacker, game_state.battlefield, game_state.shrink_radius)
    }
    return [
        enemy for enemy in game_state.get_units(attacker.owner.opponent)
        if enemy.is_alive() and to_key(enemy.position) in in_range
    ]


def can_attack(attacker: Unit, target: Unit, vision: Optional[VisionEngine] = None) -> bool:
    """
    Check if attacker may fire on target right now.

    The player may only attack units it currently sees; the AI is never
    gated by its own fog of war.
    """
    if attacker.has_attacked:
        logger.debug("%s has already attacked this turn", attacker.id)
        return False

    if attacker.owner == target.owner:
        logger.debug("%s cannot attack friendly unit %s", attacker.id, target.id)
        return False

    distance = hex_distance(attacker.position, target.position)
    range_min, range_max = attacker.attack_range()
    if distance < range_min or distance > range_max:
        logger.debug("Target out of range: %d (need %d-%d)", distance, range_min, range_max)
        return False

    if not target.is_alive():
        logger.debug("%s is already destroyed", target.id)
        return False

    if vision is not None and attacker.owner == Owner.PLAYER:
        if not vision.is_unit_visible_to(Owner.PLAYER, target):
            logger.debug("Cannot attack %s in fog of war", target.id)
            return False

    return True


def execute_attack(attacker: Unit, target: Unit, game_state: GameState) -> AttackResult:
    """
    Fire attacker on target, applying damage and destroying the target at 0 health.

    Args:
        attacker: Attacking unit
        target: Target unit
        game_state: Match state (rosters, selection, vision, events)

    Returns:
        AttackResult; success is False and nothing changes if the attack is illegal
    """
    if not can_attack(attacker, target, game_state.vision):
        logger.info("Invalid attack attempted: %s -> %s", attacker.id, target.id)
        return AttackResult(success=False, attacker_id=attacker.id, target_id=target.id)

    damage = max(game_state.config['min_damage'], attacker.damage())
    health_before = target.health
    target.take_damage(damage)
    attacker.has_attacked = True

    logger.info(
        "%s dealt %d damage to %s (%d -> %d HP)",
        attacker.id, damage, target.id, health_before, target.health,
    )

    target_destroyed = not target.is_alive()
    if target_destroyed:
        handle_unit_destruction(target, attacker, game_state)

    result = AttackResult(
        success=True,
        damage=damage,
        target_destroyed=target_destroyed,
        attacker_id=attacker.id,
        target_id=target.id,
    )
    game_state.events.emit(ATTACK_EXECUTED, result.to_dict())
    return result


def handle_unit_destruction(destroyed: Unit, attacker: Unit, game_state: GameState) -> None:
    """Remove a dead unit from its roster and tile, credit player kills and drop a stale selection."""
    logger.info("%s (%s) destroyed by %s", destroyed.id, destroyed.owner.value, attacker.id)
    game_state.remove_unit(destroyed)

    if attacker.owner == Owner.PLAYER and destroyed.owner == Owner.AI:
        game_state.enemies_destroyed_by_player += 1

    if game_state.selected_unit is destroyed:
        game_state.clear_selection()

    game_state.assert_rosters_consistent()


def get_enemy_at_hex(h: Hex, attacker: Unit, game_state: GameState) -> Optional[Unit]:
    """Living enemy of attacker standing on h, if any."""
    for unit in game_state.get_units(attacker.owner.opponent):
        if unit.position == h and unit.is_alive():
            return unit
    return None
