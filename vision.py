"""
Fog of war for Siege Tactics.

Each faction has a set of currently visible tile keys and a set of explored
tile keys. Vision is radial around every living unit with no occlusion, and
the explored set only ever grows during a match.
"""

import logging
from typing import Dict, Iterable, Set

from map_gen import Battlefield, hex_distance, to_key
from models import Hex, Owner, Unit, VisibilityState

logger = logging.getLogger(__name__)

DEFAULT_VISION_RANGE = 4
MIN_VISION_RANGE = 1
MAX_VISION_RANGE = 10


class VisionEngine:
    """Per-faction visible/explored tile sets, recomputed wholesale by update_vision()."""

    def __init__(self, vision_range: int = DEFAULT_VISION_RANGE):
        self.vision_range = vision_range
        self._visible: Dict[Owner, Set[str]] = {owner: set() for owner in Owner}
        self._explored: Dict[Owner, Set[str]] = {owner: set() for owner in Owner}

    def update_vision(
        self,
        player_units: Iterable[Unit],
        ai_units: Iterable[Unit],
        battlefield: Battlefield,
    ) -> None:
        """Recompute both factions' vision from the current unit positions."""
        for owner in Owner:
            self._explored[owner].update(self._visible[owner])
            self._visible[owner].clear()

        for owner, units in ((Owner.PLAYER, player_units), (Owner.AI, ai_units)):
            for unit in units:
                if not unit.is_alive():
                    continue
                seen = self.calculate_visible_tiles(unit.position, battlefield)
                self._visible[owner].update(seen)
                self._explored[owner].update(seen)

        logger.debug(
            "Vision updated: player sees %d tiles, ai sees %d tiles",
            len(self._visible[Owner.PLAYER]), len(self._visible[Owner.AI]),
        )

    def calculate_visible_tiles(self, origin: Hex, battlefield: Battlefield) -> Set[str]:
        """Keys of every tile within vision range of origin, plus origin itself."""
        visible = {to_key(origin)}
        for tile in battlefield:
            if hex_distance(origin, tile.coordinate) <= self.vision_range:
                visible.add(to_key(tile.coordinate))
        return visible

    def get_tile_visibility(self, owner: Owner, tile_key: str) -> VisibilityState:
        if tile_key in self._visible[owner]:
            return VisibilityState.VISIBLE
        if tile_key in self._explored[owner]:
            return VisibilityState.EXPLORED
        return VisibilityState.UNEXPLORED

    def is_unit_visible_to(self, owner: Owner, unit: Unit) -> bool:
        return to_key(unit.position) in self._visible[owner]

    def visible_tiles(self, owner: Owner) -> Set[str]:
        return set(self._visible[owner])

    def explored_tiles(self, owner: Owner) -> Set[str]:
        return set(self._explored[owner])

    def set_vision_range(self, rng: int) -> None:
        self.vision_range = max(MIN_VISION_RANGE, min(MAX_VISION_RANGE, rng))

    def reset(self) -> None:
        for owner in Owner:
            self._visible[owner].clear()
            self._explored[owner].clear()
