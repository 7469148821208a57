"""
Battlefield generation for Siege Tactics.

Hex geometry uses cube coordinates (q, r, s) with q + r + s = 0 and the
origin at the battlefield center. The battlefield is a hexagon of
GRID_RADIUS rings; obstacles are scattered over a fixed fraction of it.
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np

from models import Hex, Obstacle, ObstacleType, Tile, Unit

logger = logging.getLogger(__name__)

GRID_RADIUS = 7
ORIGIN = Hex(0, 0)

# 6 cube directions as (dq, dr); ds follows from q + r + s = 0
HEX_DIRECTIONS = [(1, -1), (1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1)]


def create_hex(q: int, r: int) -> Hex:
    """Build a coordinate from q and r; s is derived as -q - r."""
    return Hex(q, r)


def hex_distance(a: Hex, b: Hex) -> int:
    """
    Calculate distance between two hexes in cube coordinates.

    Args:
        a: First hex
        b: Second hex

    Returns:
        Number of steps between the hexes
    """
    return (abs(a.q - b.q) + abs(a.r - b.r) + abs(a.s - b.s)) // 2


def get_hex_neighbors(h: Hex) -> List[Hex]:
    """Get the 6 neighboring hexes."""
    return [Hex(h.q + dq, h.r + dr) for dq, dr in HEX_DIRECTIONS]


def in_bounds(h: Hex, radius: int = GRID_RADIUS) -> bool:
    """Check if a hex lies inside the hexagon of the given radius around the origin."""
    return max(abs(h.q), abs(h.r), abs(h.s)) <= radius


def hexes_in_range(center: Hex, rng: int) -> List[Hex]:
    """
    Get every hex within rng steps of center (center included).

    Args:
        center: Center hex
        rng: Maximum distance

    Returns:
        List of hexes, 3*rng*(rng+1)+1 of them
    """
    results = []
    for dq in range(-rng, rng + 1):
        for dr in range(max(-rng, -dq - rng), min(rng, -dq + rng) + 1):
            results.append(Hex(center.q + dq, center.r + dr))
    return results


def to_key(h: Hex) -> str:
    """Stable string key for a hex. s is omitted since it is derivable."""
    return f"{h.q},{h.r}"


def from_key(key: str) -> Hex:
    q, r = key.split(",")
    return Hex(int(q), int(r))


class Battlefield:
    """
    Owns every tile of a match, keyed by coordinate key.

    Tiles are created once and never removed; services read the battlefield
    through these accessors and only the game state mutates occupancy.
    """

    def __init__(self, radius: int = GRID_RADIUS):
        self.radius = radius
        self._tiles: Dict[str, Tile] = {}
        for q in range(-radius, radius + 1):
            for r in range(-radius, radius + 1):
                coord = create_hex(q, r)
                if in_bounds(coord, radius):
                    self._tiles[to_key(coord)] = Tile(coordinate=coord)

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles.values())

    def __contains__(self, h: Hex) -> bool:
        return to_key(h) in self._tiles

    def get_tile(self, h: Hex) -> Optional[Tile]:
        return self._tiles.get(to_key(h))

    def get_tile_by_key(self, key: str) -> Optional[Tile]:
        return self._tiles.get(key)

    def require_tile(self, h: Hex) -> Tile:
        """Tile lookup for coordinates the caller knows were built; a miss means corrupted state."""
        tile = self._tiles.get(to_key(h))
        assert tile is not None, f"No tile at {h} on a radius {self.radius} battlefield"
        return tile

    def tiles(self) -> List[Tile]:
        return list(self._tiles.values())

    def place_obstacle(self, h: Hex, obstacle_type: ObstacleType) -> None:
        tile = self.require_tile(h)
        if tile.obstacle is not None:
            raise ValueError(f"Tile {h} already has an obstacle")
        tile.obstacle = Obstacle(obstacle_type)

    def movement_cost(self, h: Hex) -> float:
        """Extra cost of entering a hex: 0 when clear, 0.5 for difficult terrain, inf when impassable."""
        tile = self.get_tile(h)
        if tile is None or tile.obstacle is None:
            return 0
        return tile.obstacle.movement_cost

    def is_impassable(self, h: Hex) -> bool:
        tile = self.get_tile(h)
        return tile is not None and tile.obstacle is not None and tile.obstacle.is_impassable

    def is_occupied(self, h: Hex) -> bool:
        tile = self.get_tile(h)
        return tile is not None and tile.occupant is not None

    def get_occupant(self, h: Hex) -> Optional[Unit]:
        tile = self.get_tile(h)
        return tile.occupant if tile else None

    def set_occupant(self, h: Hex, unit: Unit) -> None:
        self.require_tile(h).occupant = unit

    def clear_occupant(self, h: Hex) -> None:
        self.require_tile(h).occupant = None

    def update_boundaries(self, shrink_radius: int) -> None:
        """Re-flag every tile as in or out of the playable zone."""
        for tile in self._tiles.values():
            tile.is_in_bounds = hex_distance(tile.coordinate, ORIGIN) <= shrink_radius


def place_obstacles(
    battlefield: Battlefield,
    seed: int,
    protected: Sequence[Hex] = (),
    fraction: float = 0.15,
    clear_radius: int = 2,
) -> int:
    """
    Scatter obstacles over a fixed fraction of the battlefield.

    The protected hexes (spawn points) and everything within clear_radius of
    the origin stay clear. Obstacle types are drawn uniformly from the catalog.

    Args:
        battlefield: Freshly built battlefield
        seed: Random seed for reproducible placement
        protected: Hexes that must stay free of obstacles
        fraction: Share of all tiles that receives an obstacle
        clear_radius: Radius around the origin kept clear

    Returns:
        Number of obstacles placed
    """
    rng = np.random.default_rng(seed)
    protected_keys = {to_key(h) for h in protected}

    candidates = [
        tile.coordinate for tile in battlefield
        if to_key(tile.coordinate) not in protected_keys
        and hex_distance(tile.coordinate, ORIGIN) > clear_radius
    ]
    target = min(int(len(battlefield) * fraction), len(candidates))
    if target <= 0:
        return 0

    chosen = rng.choice(len(candidates), size=target, replace=False)
    obstacle_types = list(ObstacleType)
    type_indexes = rng.integers(0, len(obstacle_types), size=target)

    for candidate_index, type_index in zip(chosen, type_indexes):
        battlefield.place_obstacle(candidates[int(candidate_index)], obstacle_types[int(type_index)])

    logger.debug("Placed %d obstacles (seed=%d)", target, seed)
    return target


def generate_battlefield(
    seed: int,
    radius: int = GRID_RADIUS,
    spawns: Sequence[Hex] = (),
    obstacle_fraction: float = 0.15,
    clear_radius: int = 2,
) -> Battlefield:
    """
    Generate a battlefield for a new match.

    Args:
        seed: Random seed for reproducible generation
        radius: Grid radius in rings around the origin
        spawns: Spawn hexes that must stay clear of obstacles
        obstacle_fraction: Share of tiles that receive an obstacle
        clear_radius: Radius around the origin kept clear

    Returns:
        Battlefield with obstacles placed
    """
    battlefield = Battlefield(radius)
    place_obstacles(battlefield, seed, spawns, obstacle_fraction, clear_radius)
    return battlefield


def print_map_stats(battlefield: Battlefield) -> None:
    """
    Print obstacle statistics about a generated battlefield.

    Args:
        battlefield: Generated battlefield
    """
    obstacle_counts: Dict[str, int] = {}
    for tile in battlefield:
        if tile.obstacle is not None:
            name = tile.obstacle.type.value
            obstacle_counts[name] = obstacle_counts.get(name, 0) + 1

    total = len(battlefield)
    print("\n" + "=" * 50)
    print("BATTLEFIELD STATISTICS")
    print("=" * 50)
    print(f"Total tiles: {total}")
    print(f"Grid radius: {battlefield.radius}")
    print("-" * 30)

    for name, count in sorted(obstacle_counts.items()):
        percentage = (count / total) * 100
        print(f"{name:12}: {count:3d} tiles ({percentage:5.1f}%)")

    coverage = sum(obstacle_counts.values()) / total
    print("-" * 30)
    print(f"Obstacle coverage: {coverage:.1%}")
    print("=" * 50)


if __name__ == "__main__":
    battlefield = generate_battlefield(42, spawns=[Hex(-3, 5), Hex(3, -5)])
    print_map_stats(battlefield)
