"""
Game state management for Siege Tactics.

The GameState is the single root of a match: it owns the battlefield, both
unit rosters, the vision engine and the event bus, plus the turn bookkeeping
(phase, turn counter, shrink radius) and the transient selection state that
pathfinding and combat fill in for the UI.

Configuration comes from config.json next to this module, merged over
DEFAULT_CONFIG.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import sys
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from events import EventBus, UNIT_MOVED
from map_gen import Battlefield, generate_battlefield, to_key
from models import Hex, Owner, Unit, WeaponType
from pathfinding import path_cost
from vision import VisionEngine

logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')

DEFAULT_CONFIG: Dict[str, Any] = {
    'grid_radius': 7,
    'vision_range': 4,
    'shrink_interval': 5,
    'min_shrink_radius': 5,
    'starting_health': 100,
    'min_damage': 1,
    'xp_per_kill': 50,
    'obstacle_fraction': 0.15,
    'obstacle_clear_radius': 2,
    'player_spawn': [-3, 5],
    'ai_spawn': [3, -5],
    'ai_weapon': 'catapult',
    'ai_step_delay_ms': 500,
    'progress_path': 'progress.json',
}


class ConfigError(Exception):
    """Raised when a configuration value cannot be used."""
    pass


class Phase(Enum):
    PLAYER_TURN = "player_turn"
    AI_TURN = "ai_turn"
    ENDED = "ended"


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load game constants, falling back to defaults for anything missing.

    Args:
        path: Config file to read (default: config.json beside this module)

    Returns:
        Config dict with every DEFAULT_CONFIG key present
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            config.update(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        logger.debug("Config file unavailable, using defaults")
    return config


def setup_logging(level: str = "INFO") -> None:
    """Configure root logger with a compact format for the CLI and API entry points."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s [%(levelname)-5s] %(name)-12s | %(message)s",
        datefmt="%H:%M:%S",
    ))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)


def _spawn_hex(config: Dict[str, Any], key: str) -> Hex:
    try:
        q, r = config[key]
        return Hex(int(q), int(r))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{key} must be a [q, r] pair, got {config.get(key)!r}") from e


def parse_weapon(value: Any) -> WeaponType:
    if isinstance(value, WeaponType):
        return value
    try:
        return WeaponType(value)
    except ValueError as e:
        raise ConfigError(f"Unknown weapon type: {value!r}") from e


@dataclass
class GameState:
    """
    Complete state of one match.

    Phase moves player_turn -> ai_turn -> player_turn ... until a side is
    wiped out and the phase becomes ended.
    """
    game_id: str
    battlefield: Battlefield
    config: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG))
    player_units: List[Unit] = field(default_factory=list)
    ai_units: List[Unit] = field(default_factory=list)
    phase: Phase = Phase.PLAYER_TURN
    winner: Optional[Owner] = None
    turn_count: int = 0
    shrink_radius: int = 7
    enemies_destroyed_by_player: int = 0
    vision: VisionEngine = field(default_factory=VisionEngine)
    events: EventBus = field(default_factory=EventBus)
    log: List[Dict[str, Any]] = field(default_factory=list)

    # Transient selection state, filled by pathfinding/combat for display
    selected_unit: Optional[Unit] = None
    valid_move_hexes: List[Hex] = field(default_factory=list)
    valid_attack_hexes: List[Hex] = field(default_factory=list)
    hovered_hex: Optional[Hex] = None
    planned_path: List[Hex] = field(default_factory=list)

    @property
    def current_turn(self) -> Optional[Owner]:
        """Whose turn it is, or None once the match has ended."""
        if self.phase == Phase.PLAYER_TURN:
            return Owner.PLAYER
        if self.phase == Phase.AI_TURN:
            return Owner.AI
        return None

    @property
    def is_over(self) -> bool:
        return self.phase == Phase.ENDED

    def get_units(self, owner: Owner) -> List[Unit]:
        return self.player_units if owner == Owner.PLAYER else self.ai_units

    def all_units(self) -> List[Unit]:
        return self.player_units + self.ai_units

    def get_unit_by_id(self, unit_id: str) -> Optional[Unit]:
        for unit in self.all_units():
            if unit.id == unit_id:
                return unit
        return None

    def get_unit_at(self, h: Hex) -> Optional[Unit]:
        return self.battlefield.get_occupant(h)

    def add_unit(self, unit: Unit) -> None:
        """Put a unit on the battlefield and its owner's roster."""
        tile = self.battlefield.require_tile(unit.position)
        if not tile.is_empty():
            raise ValueError(f"Tile {unit.position} is already occupied by {tile.occupant.id}")
        self.get_units(unit.owner).append(unit)
        tile.occupant = unit

    def remove_unit(self, unit: Unit) -> None:
        roster = self.get_units(unit.owner)
        if unit in roster:
            roster.remove(unit)
            logger.debug("Removed %s unit, %d remaining", unit.owner.value, len(roster))
        if self.battlefield.get_occupant(unit.position) is unit:
            self.battlefield.clear_occupant(unit.position)

    def move_unit(self, unit: Unit, destination: Hex, path: Optional[List[Hex]] = None) -> None:
        """
        Relocate a unit and update occupancy, movement bookkeeping and vision.

        Callers validate the destination; this only applies the move.
        """
        old_position = unit.position
        self.battlefield.clear_occupant(old_position)
        unit.position = destination
        self.battlefield.set_occupant(destination, unit)
        unit.has_moved = True
        if path:
            unit.movement_points_used += path_cost(path, self.battlefield)

        self.update_vision()
        self.events.emit(UNIT_MOVED, {
            'unit_id': unit.id,
            'from': to_key(old_position),
            'to': to_key(destination),
            'path': [to_key(h) for h in (path or [destination])],
        })

    def is_in_playable_area(self, h: Hex) -> bool:
        tile = self.battlefield.get_tile(h)
        return tile is not None and tile.is_in_bounds

    def clear_selection(self) -> None:
        self.selected_unit = None
        self.valid_move_hexes = []
        self.valid_attack_hexes = []
        self.planned_path = []

    def update_vision(self) -> None:
        """Recompute fog of war and copy each faction's classification onto the tiles."""
        self.vision.update_vision(self.player_units, self.ai_units, self.battlefield)
        for tile in self.battlefield:
            key = to_key(tile.coordinate)
            for owner in Owner:
                tile.visibility[owner] = self.vision.get_tile_visibility(owner, key)

    def assert_rosters_consistent(self) -> None:
        """A dead unit left on a roster means destruction cleanup was skipped."""
        for unit in self.all_units():
            assert unit.is_alive(), f"Dead unit {unit.id} still on the {unit.owner.value} roster"


def log_event(game_state: GameState, event: str, **kwargs) -> None:
    """
    Add an event to the game state log.

    Args:
        game_state: Current game state
        event: Description of the event
        **kwargs: Additional event data to include
    """
    log_entry = {
        'turn': game_state.turn_count,
        'phase': game_state.phase.value,
        'event': event,
        **kwargs
    }
    game_state.log.append(log_entry)


def initialize_game(
    weapon: Any = WeaponType.CATAPULT,
    seed: int = 42,
    config: Optional[Dict[str, Any]] = None,
) -> GameState:
    """
    Initialize a new match: battlefield, one unit per side, and initial vision.

    The player spawns at player_spawn with the chosen weapon, the AI at
    ai_spawn with ai_weapon.

    Args:
        weapon: Player's weapon (WeaponType or its string value)
        seed: Random seed for obstacle placement
        config: Config dict (default: load_config())

    Returns:
        New GameState in the player's turn, turn counter 0
    """
    if config is None:
        config = load_config()
    else:
        config = {**DEFAULT_CONFIG, **config}

    player_weapon = parse_weapon(weapon)
    ai_weapon = parse_weapon(config['ai_weapon'])
    player_start = _spawn_hex(config, 'player_spawn')
    ai_start = _spawn_hex(config, 'ai_spawn')

    battlefield = generate_battlefield(
        seed,
        radius=config['grid_radius'],
        spawns=[player_start, ai_start],
        obstacle_fraction=config['obstacle_fraction'],
        clear_radius=config['obstacle_clear_radius'],
    )

    game_state = GameState(
        game_id=str(uuid.uuid4()),
        battlefield=battlefield,
        config=config,
        shrink_radius=config['grid_radius'],
        vision=VisionEngine(config['vision_range']),
    )

    health = config['starting_health']
    game_state.add_unit(Unit('player-1', player_weapon, Owner.PLAYER, player_start, max_health=health))
    game_state.add_unit(Unit('ai-1', ai_weapon, Owner.AI, ai_start, max_health=health))

    game_state.update_vision()
    log_event(game_state, f"Match started: player {player_weapon.value} vs ai {ai_weapon.value}", seed=seed)
    logger.info("Initialized game %s with weapon %s (seed=%d)", game_state.game_id, player_weapon.value, seed)
    return game_state


def hex_to_dict(h: Optional[Hex]) -> Optional[Dict[str, int]]:
    if h is None:
        return None
    return {'q': h.q, 'r': h.r, 's': h.s}


def unit_snapshot(unit: Unit, game_state: GameState) -> Dict[str, Any]:
    return {
        'id': unit.id,
        'owner': unit.owner.value,
        'weapon': unit.weapon.value,
        'position': hex_to_dict(unit.position),
        'health': unit.health,
        'max_health': unit.max_health,
        'has_moved': unit.has_moved,
        'has_attacked': unit.has_attacked,
        'movement_points_used': unit.movement_points_used,
        'visible_to_player': game_state.vision.is_unit_visible_to(Owner.PLAYER, unit),
    }


def tile_snapshot(game_state: GameState) -> List[Dict[str, Any]]:
    return [
        {
            'q': tile.coordinate.q,
            'r': tile.coordinate.r,
            'occupant': tile.occupant.id if tile.occupant else None,
            'obstacle': tile.obstacle.type.value if tile.obstacle else None,
            'in_bounds': tile.is_in_bounds,
            'visibility': tile.visibility[Owner.PLAYER].value,
        }
        for tile in game_state.battlefield.tiles()
    ]


def get_game_summary(game_state: GameState) -> Dict[str, Any]:
    """
    Read-only snapshot of the match for renderers and API responses.

    Args:
        game_state: Current game state

    Returns:
        Dictionary with turn, rosters, tiles and selection state
    """
    current = game_state.current_turn
    return {
        'game_id': game_state.game_id,
        'phase': game_state.phase.value,
        'current_turn': current.value if current else None,
        'winner': game_state.winner.value if game_state.winner else None,
        'turn_count': game_state.turn_count,
        'shrink_radius': game_state.shrink_radius,
        'enemies_destroyed_by_player': game_state.enemies_destroyed_by_player,
        'units': [unit_snapshot(u, game_state) for u in game_state.all_units()],
        'tiles': tile_snapshot(game_state),
        'selection': {
            'unit_id': game_state.selected_unit.id if game_state.selected_unit else None,
            'valid_moves': [hex_to_dict(h) for h in game_state.valid_move_hexes],
            'valid_attacks': [hex_to_dict(h) for h in game_state.valid_attack_hexes],
            'hovered': hex_to_dict(game_state.hovered_hex),
            'planned_path': [hex_to_dict(h) for h in game_state.planned_path],
        },
        'grid_radius': game_state.battlefield.radius,
    }
