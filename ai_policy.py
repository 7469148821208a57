"""
Greedy AI for Siege Tactics.

For each living AI unit, in roster order:
1. Attack the weakest enemy in range, if any
2. If it has not moved: step onto the reachable hex closest to the nearest enemy
3. Attack again, in case the move brought a target into range

Decisions are synchronous. AITurnRunner resolves one unit per step() so a
caller can pace the turn for presentation; the core never waits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from combat import AttackResult, execute_attack, get_valid_targets
from map_gen import hex_distance, to_key
from models import Hex, Unit
from pathfinding import find_path, get_reachable_hexes
from state import GameState, Phase, log_event
from upkeep import finish_ai_turn, resolve_victory

logger = logging.getLogger(__name__)


@dataclass
class AIUnitReport:
    """What one AI unit did during its step."""
    unit_id: str
    attacks: List[AttackResult] = field(default_factory=list)
    moved_from: Optional[Hex] = None
    moved_to: Optional[Hex] = None
    path: List[Hex] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'unit_id': self.unit_id,
            'attacks': [a.to_dict() for a in self.attacks],
            'moved_from': to_key(self.moved_from) if self.moved_from else None,
            'moved_to': to_key(self.moved_to) if self.moved_to else None,
            'path': [to_key(h) for h in self.path],
        }


def select_best_target(targets: List[Unit]) -> Unit:
    """Lowest health first; ties go to the earliest target in the list."""
    return min(targets, key=lambda t: t.health)


def find_nearest_enemy(unit: Unit, enemies: List[Unit]) -> Optional[Unit]:
    """Closest living enemy by hex distance; ties go to roster order."""
    living = [e for e in enemies if e.is_alive()]
    if not living:
        return None
    return min(living, key=lambda e: hex_distance(unit.position, e.position))


def select_move_destination(reachable: List[Hex], target_position: Hex) -> Hex:
    """Reachable hex closest to the target; ties go to the earliest hex in the list."""
    return min(reachable, key=lambda h: hex_distance(h, target_position))


def try_attack(unit: Unit, game_state: GameState) -> Optional[AttackResult]:
    if unit.has_attacked:
        return None

    targets = get_valid_targets(unit, game_state)
    if not targets:
        logger.debug("%s has no targets in range", unit.id)
        return None

    target = select_best_target(targets)
    logger.info("AI %s targeting %s (%d HP)", unit.id, target.id, target.health)
    result = execute_attack(unit, target, game_state)
    if not result.success:
        return None

    log_event(
        game_state,
        f"{unit.id} hits {target.id} for {result.damage}",
        attacker=unit.id, target=target.id, damage=result.damage,
        destroyed=result.target_destroyed,
    )
    resolve_victory(game_state)
    return result


def try_move(unit: Unit, game_state: GameState, report: AIUnitReport) -> bool:
    if unit.has_moved:
        return False

    nearest = find_nearest_enemy(unit, game_state.player_units)
    if nearest is None:
        return False

    reachable = get_reachable_hexes(
        unit.position, unit.movement_range(), game_state.battlefield, game_state.shrink_radius
    )
    if not reachable:
        logger.debug("%s cannot move (no reachable hexes)", unit.id)
        return False

    destination = select_move_destination(reachable, nearest.position)
    path = find_path(unit.position, destination, game_state.battlefield, game_state.shrink_radius)
    if not path:
        logger.debug("%s could not find path to %s", unit.id, destination)
        return False

    report.moved_from = unit.position
    report.moved_to = destination
    report.path = path
    game_state.move_unit(unit, destination, path)
    log_event(game_state, f"{unit.id} moves to {destination}", unit=unit.id, to=to_key(destination))
    return True


def process_unit(unit: Unit, game_state: GameState) -> AIUnitReport:
    """Run the attack, move, attack sequence for one AI unit."""
    report = AIUnitReport(unit_id=unit.id)
    logger.debug("Processing AI %s at %s", unit.id, unit.position)

    first = try_attack(unit, game_state)
    if first:
        report.attacks.append(first)

    if not game_state.is_over and not unit.has_moved:
        try_move(unit, game_state, report)

    if not game_state.is_over and not unit.has_attacked:
        second = try_attack(unit, game_state)
        if second:
            report.attacks.append(second)

    return report


class AITurnRunner:
    """
    Steps through one AI turn a unit at a time.

    The roster is snapshotted at construction so units destroyed mid-turn
    are skipped rather than shifting the order.
    """

    def __init__(self, game_state: GameState):
        self.game_state = game_state
        self._pending = list(game_state.ai_units)
        self.reports: List[AIUnitReport] = []
        self._finished = False

    @property
    def done(self) -> bool:
        if self.game_state.phase != Phase.AI_TURN:
            return True
        return not any(u.is_alive() for u in self._pending)

    def step(self) -> Optional[AIUnitReport]:
        """Resolve the next living AI unit; None when no unit is left to act."""
        while self._pending and self.game_state.phase == Phase.AI_TURN:
            unit = self._pending.pop(0)
            if not unit.is_alive():
                continue
            report = process_unit(unit, self.game_state)
            self.reports.append(report)
            return report
        return None

    def finish(self) -> bool:
        """Hand the turn back to the player (or end the match). Safe to call twice."""
        if self._finished:
            return False
        self._finished = True
        if self.game_state.phase != Phase.AI_TURN:
            return False
        return finish_ai_turn(self.game_state)


def run_ai_turn(game_state: GameState) -> List[AIUnitReport]:
    """Play the whole AI turn in one call and return what each unit did."""
    if game_state.phase != Phase.AI_TURN:
        logger.info("run_ai_turn called during %s", game_state.phase.value)
        return []

    logger.info("=== AI Turn Executing ===")
    runner = AITurnRunner(game_state)
    while runner.step() is not None:
        pass
    runner.finish()
    logger.info("=== AI Turn Complete ===")
    return runner.reports
