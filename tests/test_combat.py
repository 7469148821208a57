"""
Tests for attack ranges, attack legality, damage and unit destruction.
"""

import pytest

from combat import (
    can_attack,
    execute_attack,
    get_attack_range,
    get_enemy_at_hex,
    get_valid_targets,
)
from events import ATTACK_EXECUTED
from map_gen import hex_distance
from models import Hex, Owner, WeaponType

from conftest import make_duel, make_state, place_unit


class TestAttackRange:
    def test_ring_between_min_and_max(self):
        game_state, player, _ = make_duel(player_at=(0, 0), ai_at=(0, -3))
        hexes = get_attack_range(player, game_state.battlefield, game_state.shrink_radius)
        assert hexes
        assert all(2 <= hex_distance(player.position, h) <= 5 for h in hexes)
        # Rings 2..5 around the center: 6 * (2 + 3 + 4 + 5)
        assert len(hexes) == 84

    def test_excludes_hexes_outside_shrink_zone(self):
        game_state, player, _ = make_duel(player_at=(4, 0), ai_at=(0, -3))
        hexes = get_attack_range(player, game_state.battlefield, 5)
        assert all(hex_distance(h, Hex(0, 0)) <= 5 for h in hexes)

    def test_valid_targets_ignore_fog(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -5))
        assert not game_state.vision.is_unit_visible_to(Owner.PLAYER, ai)
        assert get_valid_targets(ai, game_state) == [player]
        assert get_valid_targets(player, game_state) == [ai]


class TestCanAttack:
    def test_in_range_and_visible(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        assert can_attack(player, ai, game_state.vision)

    @pytest.mark.parametrize("ai_at", [(0, -1), (0, -6)])
    def test_out_of_range(self, ai_at):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=ai_at)
        assert not can_attack(player, ai, game_state.vision)

    def test_only_once_per_turn(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        player.has_attacked = True
        assert not can_attack(player, ai, game_state.vision)

    def test_no_friendly_fire(self):
        game_state, player, _ = make_duel(player_at=(0, 0), ai_at=(0, -3))
        friend = place_unit(game_state, "player-2", Owner.PLAYER, 3, 0)
        assert not can_attack(player, friend, game_state.vision)

    def test_dead_target(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        ai.health = 0
        assert not can_attack(player, ai, game_state.vision)

    def test_player_cannot_fire_into_fog(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -5))
        assert not game_state.vision.is_unit_visible_to(Owner.PLAYER, ai)
        assert not can_attack(player, ai, game_state.vision)

    def test_ai_fires_into_fog(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -5))
        game_state.vision.set_vision_range(1)
        game_state.update_vision()
        assert not game_state.vision.is_unit_visible_to(Owner.AI, player)
        assert can_attack(ai, player, game_state.vision)


class TestExecuteAttack:
    def test_applies_damage_and_marks_attacker(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        result = execute_attack(player, ai, game_state)
        assert result.success
        assert result.damage == 35
        assert not result.target_destroyed
        assert ai.health == 65
        assert player.has_attacked
        assert not player.can_move()

    def test_illegal_attack_changes_nothing(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -1))
        result = execute_attack(player, ai, game_state)
        assert not result.success
        assert ai.health == 100
        assert not player.has_attacked

    def test_minimum_damage_applies(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        game_state.config['min_damage'] = 50
        execute_attack(player, ai, game_state)
        assert ai.health == 50

    def test_destruction_removes_unit_everywhere(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        ai.health = 20
        game_state.selected_unit = ai

        result = execute_attack(player, ai, game_state)

        assert result.target_destroyed
        assert ai.health == 0
        assert ai not in game_state.ai_units
        assert game_state.battlefield.get_occupant(Hex(0, -3)) is None
        assert game_state.enemies_destroyed_by_player == 1
        assert game_state.selected_unit is None

    def test_ai_kill_is_not_credited_to_player(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        player.health = 10
        execute_attack(ai, player, game_state)
        assert player not in game_state.player_units
        assert game_state.enemies_destroyed_by_player == 0

    def test_emits_attack_event(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        seen = []
        game_state.events.subscribe(ATTACK_EXECUTED, seen.append)
        execute_attack(player, ai, game_state)
        assert seen == [{
            'success': True,
            'damage': 35,
            'target_destroyed': False,
            'attacker_id': 'player-1',
            'target_id': 'ai-1',
        }]

    def test_trebuchet_damage(self):
        game_state = make_state()
        player = place_unit(game_state, "player-1", Owner.PLAYER, 0, 0, weapon=WeaponType.TREBUCHET)
        ai = place_unit(game_state, "ai-1", Owner.AI, 0, -4)
        execute_attack(player, ai, game_state)
        assert ai.health == 40


class TestEnemyAtHex:
    def test_finds_enemy(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        assert get_enemy_at_hex(Hex(0, -3), player, game_state) is ai
        assert get_enemy_at_hex(Hex(0, 0), player, game_state) is None
        assert get_enemy_at_hex(Hex(0, 0), ai, game_state) is player
