"""
Player progression between matches.

XP is earned only by winning: each AI unit the player destroyed is worth
xp_per_kill. Weapons unlock once total XP reaches their threshold; the
catapult is always available. Progress is stored as a small JSON file.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from models import WEAPON_CONFIGS, Owner, WeaponType
from state import GameState

logger = logging.getLogger(__name__)


@dataclass
class PlayerProgress:
    total_xp: int = 0
    unlocked_weapons: List[str] = field(default_factory=lambda: [WeaponType.CATAPULT.value])


def compute_battle_reward(game_state: GameState) -> int:
    """XP for a finished match: kills * xp_per_kill on a player win, 0 otherwise."""
    if game_state.winner != Owner.PLAYER:
        return 0
    return game_state.enemies_destroyed_by_player * game_state.config['xp_per_kill']


class ProgressManager:
    def __init__(self, progress: Optional[PlayerProgress] = None):
        self.progress = progress or PlayerProgress()

    def add_xp(self, amount: int) -> Optional[WeaponType]:
        """Add XP and return the weapon it unlocked, if any."""
        self.progress.total_xp += amount
        return self.check_for_unlock()

    def check_for_unlock(self) -> Optional[WeaponType]:
        for weapon, stats in WEAPON_CONFIGS.items():
            if not self.has_unlocked(weapon) and self.progress.total_xp >= stats.unlock_xp:
                self.progress.unlocked_weapons.append(weapon.value)
                logger.info("Unlocked %s at %d XP", weapon.value, self.progress.total_xp)
                return weapon
        return None

    def has_unlocked(self, weapon: WeaponType) -> bool:
        return weapon.value in self.progress.unlocked_weapons

    def get_next_unlock(self) -> Optional[Dict[str, object]]:
        locked = sorted(
            (stats for weapon, stats in WEAPON_CONFIGS.items() if not self.has_unlocked(weapon)),
            key=lambda stats: stats.unlock_xp,
        )
        if not locked:
            return None
        stats = locked[0]
        return {
            'weapon': stats.type.value,
            'xp_required': stats.unlock_xp,
            'xp_remaining': max(0, stats.unlock_xp - self.progress.total_xp),
        }

    def apply_battle_result(self, game_state: GameState) -> Dict[str, object]:
        """Credit a finished match's reward and report what changed."""
        xp_earned = compute_battle_reward(game_state)
        unlocked = self.add_xp(xp_earned) if xp_earned else None
        return {
            'xp_earned': xp_earned,
            'total_xp': self.progress.total_xp,
            'unlocked': unlocked.value if unlocked else None,
            'turns_taken': game_state.turn_count,
            'enemies_destroyed': game_state.enemies_destroyed_by_player,
        }


class ProgressRepository:
    """Loads and saves PlayerProgress as JSON at a fixed path."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> PlayerProgress:
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            progress = PlayerProgress(
                total_xp=int(data.get('total_xp', 0)),
                unlocked_weapons=list(data.get('unlocked_weapons', [WeaponType.CATAPULT.value])),
            )
        except (FileNotFoundError, json.JSONDecodeError, TypeError, ValueError, AttributeError):
            logger.debug("No usable progress at %s, starting fresh", self.path)
            return PlayerProgress()

        if WeaponType.CATAPULT.value not in progress.unlocked_weapons:
            progress.unlocked_weapons.insert(0, WeaponType.CATAPULT.value)
        return progress

    def save(self, progress: PlayerProgress) -> None:
        with open(self.path, 'w') as f:
            json.dump(asdict(progress), f, indent=2)
        logger.info("Progress saved: %d XP", progress.total_xp)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
