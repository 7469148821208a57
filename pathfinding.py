"""
Movement on the hex grid: reachable-hex flood fill and A* shortest paths.

Every step into a hex costs 1 plus the hex's obstacle cost (0.5 for
difficult terrain). Impassable hexes, hexes off the grid and hexes outside
the shrinking playable zone are never entered. Units may pass through
occupied hexes but never stop on one.
"""

from collections import deque
from typing import Dict, List, Sequence

from map_gen import ORIGIN, Battlefield, get_hex_neighbors, hex_distance
from models import Hex


def is_in_playable_area(h: Hex, shrink_radius: int) -> bool:
    return hex_distance(h, ORIGIN) <= shrink_radius


def get_step_cost(h: Hex, battlefield: Battlefield) -> float:
    """Cost of stepping into h: 1 + obstacle cost (inf when impassable)."""
    return 1 + battlefield.movement_cost(h)


def get_valid_neighbors(h: Hex, battlefield: Battlefield, shrink_radius: int) -> List[Hex]:
    """Neighbors that exist, lie in the playable zone and are not impassable. Occupied hexes stay in."""
    return [
        neighbor for neighbor in get_hex_neighbors(h)
        if neighbor in battlefield
        and is_in_playable_area(neighbor, shrink_radius)
        and not battlefield.is_impassable(neighbor)
    ]


def get_reachable_hexes(
    start: Hex,
    movement_range: float,
    battlefield: Battlefield,
    shrink_radius: int,
) -> List[Hex]:
    """
    Calculate all hexes a unit at start can end its move on.

    Breadth-first flood fill tracking the cheapest known cost per hex. A
    neighbor is re-queued only when reached more cheaply than before and
    within budget.

    Args:
        start: Starting hex
        movement_range: Movement points available
        battlefield: Battlefield for obstacle and occupancy checks
        shrink_radius: Current playable radius around the origin

    Returns:
        Reachable hexes in discovery order, excluding start and occupied hexes
    """
    best_cost: Dict[Hex, float] = {start: 0}
    order: List[Hex] = []
    queue = deque([(start, 0.0)])

    while queue:
        current, cost = queue.popleft()
        if cost > best_cost.get(current, float("inf")):
            continue  # Superseded by a cheaper entry
        if cost >= movement_range:
            continue

        for neighbor in get_valid_neighbors(current, battlefield, shrink_radius):
            new_cost = cost + get_step_cost(neighbor, battlefield)
            if new_cost <= movement_range and new_cost < best_cost.get(neighbor, float("inf")):
                if neighbor not in best_cost:
                    order.append(neighbor)
                best_cost[neighbor] = new_cost
                queue.append((neighbor, new_cost))

    return [h for h in order if h != start and not battlefield.is_occupied(h)]


def find_path(start: Hex, goal: Hex, battlefield: Battlefield, shrink_radius: int) -> List[Hex]:
    """
    A* pathfinding from start to goal.

    The heuristic is hex distance, which never overestimates since every
    step costs at least 1.

    Args:
        start: Starting hex
        goal: Goal hex
        battlefield: Battlefield for obstacle and occupancy checks
        shrink_radius: Current playable radius around the origin

    Returns:
        Path excluding start and including goal, or [] if the goal is occupied,
        off the playable zone, impassable or unreachable
    """
    if (goal not in battlefield
            or battlefield.is_occupied(goal)
            or not is_in_playable_area(goal, shrink_radius)
            or battlefield.is_impassable(goal)):
        return []

    open_set = {start}
    came_from: Dict[Hex, Hex] = {}
    g_score: Dict[Hex, float] = {start: 0}
    f_score: Dict[Hex, float] = {start: hex_distance(start, goal)}

    while open_set:
        current = min(open_set, key=lambda h: f_score.get(h, float("inf")))

        if current == goal:
            return reconstruct_path(came_from, current)

        open_set.remove(current)

        for neighbor in get_valid_neighbors(current, battlefield, shrink_radius):
            tentative_g_score = g_score[current] + get_step_cost(neighbor, battlefield)
            if tentative_g_score < g_score.get(neighbor, float("inf")):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g_score
                f_score[neighbor] = tentative_g_score + hex_distance(neighbor, goal)
                open_set.add(neighbor)

    return []


def reconstruct_path(came_from: Dict[Hex, Hex], current: Hex) -> List[Hex]:
    """Walk came_from back from the goal; the start hex is dropped."""
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path[1:]


def path_cost(path: Sequence[Hex], battlefield: Battlefield) -> float:
    """Total movement points spent walking path (start excluded)."""
    return sum(get_step_cost(h, battlefield) for h in path)


def is_valid_move(
    from_hex: Hex,
    to_hex: Hex,
    movement_range: float,
    battlefield: Battlefield,
    shrink_radius: int,
) -> bool:
    """Check if a unit at from_hex can end a move on to_hex."""
    if hex_distance(from_hex, to_hex) > movement_range:
        return False
    return to_hex in get_reachable_hexes(from_hex, movement_range, battlefield, shrink_radius)
