# Models for the battlefield, its obstacles and the siege units fighting on it

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


class Owner(Enum):
    """The two factions of a match."""
    PLAYER = "player"
    AI = "ai"

    @property
    def opponent(self) -> "Owner":
        return Owner.AI if self is Owner.PLAYER else Owner.PLAYER


class VisibilityState(Enum):
    UNEXPLORED = "unexplored"  # Never seen
    EXPLORED = "explored"      # Seen before, not currently in sight
    VISIBLE = "visible"        # Currently in sight


@dataclass(frozen=True)
class Hex:
    """Cube hex coordinate. Only q and r are stored; s is derived so q + r + s = 0 always holds."""
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def cube_coords(self) -> Tuple[int, int, int]:
        return (self.q, self.r, self.s)

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"


class ObstacleType(Enum):
    ROCK_LARGE = "ROCK_LARGE"
    ROCK_SMALL = "ROCK_SMALL"
    TREE = "TREE"
    RUIN = "RUIN"
    CHURCH = "CHURCH"
    CASTLE = "CASTLE"


IMPASSABLE = math.inf
DIFFICULT_TERRAIN_COST = 0.5

# type -> (movement cost, blocks line of sight)
OBSTACLE_CATALOG: Dict[ObstacleType, Tuple[float, bool]] = {
    ObstacleType.ROCK_LARGE: (IMPASSABLE, True),
    ObstacleType.ROCK_SMALL: (DIFFICULT_TERRAIN_COST, False),
    ObstacleType.TREE: (DIFFICULT_TERRAIN_COST, True),
    ObstacleType.RUIN: (DIFFICULT_TERRAIN_COST, True),
    ObstacleType.CHURCH: (IMPASSABLE, False),
    ObstacleType.CASTLE: (IMPASSABLE, False),
}


@dataclass(frozen=True)
class Obstacle:
    """A fixed battlefield feature. Placed once at generation and never moved."""
    type: ObstacleType

    @property
    def movement_cost(self) -> float:
        return OBSTACLE_CATALOG[self.type][0]

    @property
    def blocks_line_of_sight(self) -> bool:
        return OBSTACLE_CATALOG[self.type][1]

    @property
    def is_impassable(self) -> bool:
        return self.movement_cost == IMPASSABLE


class WeaponType(Enum):
    CATAPULT = "catapult"
    BALLISTA = "ballista"
    TREBUCHET = "trebuchet"


@dataclass(frozen=True)
class WeaponStats:
    type: WeaponType
    display_name: str
    movement_range: int
    attack_range_min: int
    attack_range_max: int
    damage: int
    unlock_xp: int
    description: str


WEAPON_CONFIGS: Dict[WeaponType, WeaponStats] = {
    WeaponType.CATAPULT: WeaponStats(
        type=WeaponType.CATAPULT,
        display_name="Catapult",
        movement_range=3,
        attack_range_min=2,
        attack_range_max=5,
        damage=35,
        unlock_xp=0,
        description="Balanced siege weapon with medium range and damage",
    ),
    WeaponType.BALLISTA: WeaponStats(
        type=WeaponType.BALLISTA,
        display_name="Ballista",
        movement_range=4,
        attack_range_min=3,
        attack_range_max=6,
        damage=30,
        unlock_xp=100,
        description="Long-range precision weapon with high mobility",
    ),
    WeaponType.TREBUCHET: WeaponStats(
        type=WeaponType.TREBUCHET,
        display_name="Trebuchet",
        movement_range=2,
        attack_range_min=4,
        attack_range_max=8,
        damage=60,
        unlock_xp=300,
        description="Devastating long-range siege engine with limited mobility",
    ),
}


def get_weapon_stats(weapon: WeaponType) -> WeaponStats:
    return WEAPON_CONFIGS[weapon]


@dataclass(eq=False)
class Unit:
    """
    A siege weapon on the battlefield.

    Weapon stats are fixed at creation. Position, health and the three
    per-turn fields change over the match; health is clamped at 0 and a unit
    at 0 health is dead.
    """
    id: str
    weapon: WeaponType
    owner: Owner
    position: Hex
    max_health: int = 100
    health: Optional[int] = None  # None starts the unit at max_health
    has_moved: bool = False
    has_attacked: bool = False
    movement_points_used: float = 0

    def __post_init__(self) -> None:
        if self.health is None:
            self.health = self.max_health

    @property
    def stats(self) -> WeaponStats:
        return get_weapon_stats(self.weapon)

    def movement_range(self) -> int:
        return self.stats.movement_range

    def attack_range(self) -> Tuple[int, int]:
        return (self.stats.attack_range_min, self.stats.attack_range_max)

    def damage(self) -> int:
        return self.stats.damage

    def remaining_movement(self) -> float:
        return max(0, self.movement_range() - self.movement_points_used)

    def can_move(self) -> bool:
        # Attacking ends the unit's movement for the turn
        if self.has_attacked:
            return False
        return self.remaining_movement() > 0

    def can_attack(self) -> bool:
        return not self.has_attacked

    def take_damage(self, amount: int) -> None:
        self.health = max(0, self.health - amount)

    def is_alive(self) -> bool:
        return self.health > 0

    def reset_turn_actions(self) -> None:
        self.has_moved = False
        self.has_attacked = False
        self.movement_points_used = 0


@dataclass(eq=False)
class Tile:
    """One battlefield cell. Only occupant, in-bounds flag and visibility change after creation."""
    coordinate: Hex
    obstacle: Optional[Obstacle] = None
    occupant: Optional[Unit] = None
    is_in_bounds: bool = True
    visibility: Dict[Owner, VisibilityState] = field(
        default_factory=lambda: {owner: VisibilityState.UNEXPLORED for owner in Owner}
    )

    def is_empty(self) -> bool:
        return self.occupant is None
