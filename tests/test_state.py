"""
Tests for match setup, configuration, state bookkeeping and snapshots.
"""

import json

import pytest

from events import EventBus, UNIT_MOVED
from models import Hex, Owner, Unit, VisibilityState, WeaponType
from state import (
    DEFAULT_CONFIG,
    ConfigError,
    Phase,
    get_game_summary,
    initialize_game,
    load_config,
    parse_weapon,
)

from conftest import OPEN_CONFIG, make_duel


class TestConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(str(tmp_path / "missing.json")) == DEFAULT_CONFIG

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"vision_range": 6}))
        config = load_config(str(path))
        assert config["vision_range"] == 6
        assert config["shrink_interval"] == 5

    def test_invalid_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("vision_range = 6")
        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_defaults_are_not_shared(self):
        config = load_config()
        config["player_spawn"][0] = 99
        assert DEFAULT_CONFIG["player_spawn"] == [-3, 5]

    def test_parse_weapon(self):
        assert parse_weapon("ballista") == WeaponType.BALLISTA
        assert parse_weapon(WeaponType.TREBUCHET) == WeaponType.TREBUCHET
        with pytest.raises(ConfigError):
            parse_weapon("longbow")

    def test_bad_spawn_is_rejected(self):
        with pytest.raises(ConfigError):
            initialize_game(config={"player_spawn": "nowhere"})


class TestInitializeGame:
    def test_initial_state(self, game):
        assert game.phase == Phase.PLAYER_TURN
        assert game.current_turn == Owner.PLAYER
        assert game.turn_count == 0
        assert game.shrink_radius == 7
        assert game.winner is None
        assert len(game.battlefield) == 169

    def test_one_unit_per_side(self, game):
        player, = game.player_units
        ai, = game.ai_units
        assert player.position == Hex(-3, 5)
        assert ai.position == Hex(3, -5)
        assert player.weapon == WeaponType.CATAPULT
        assert player.health == ai.health == 100
        assert game.battlefield.get_occupant(player.position) is player
        assert game.battlefield.get_occupant(ai.position) is ai

    def test_chosen_weapon(self):
        game_state = initialize_game(WeaponType.TREBUCHET, seed=1)
        assert game_state.player_units[0].weapon == WeaponType.TREBUCHET
        assert game_state.ai_units[0].weapon == WeaponType.CATAPULT

    def test_initial_vision(self, game):
        spawn_tile = game.battlefield.get_tile(Hex(-3, 5))
        assert spawn_tile.visibility[Owner.PLAYER] == VisibilityState.VISIBLE
        assert spawn_tile.visibility[Owner.AI] == VisibilityState.UNEXPLORED
        assert not game.vision.is_unit_visible_to(Owner.PLAYER, game.ai_units[0])

    def test_same_seed_same_obstacles(self):
        a = initialize_game(seed=9)
        b = initialize_game(seed=9)
        assert [t.obstacle for t in a.battlefield] == [t.obstacle for t in b.battlefield]
        assert a.game_id != b.game_id

    def test_open_config(self, open_game):
        assert all(t.obstacle is None for t in open_game.battlefield)
        assert open_game.config == OPEN_CONFIG

    def test_start_is_logged(self, game):
        assert game.log[0]['event'].startswith("Match started")
        assert game.log[0]['seed'] == 42


class TestGameState:
    def test_add_unit_to_occupied_tile(self):
        game_state, _, _ = make_duel(player_at=(0, 0))
        with pytest.raises(ValueError):
            game_state.add_unit(Unit("ai-2", WeaponType.CATAPULT, Owner.AI, Hex(0, 0)))

    def test_lookup(self):
        game_state, player, ai = make_duel(player_at=(0, 0), ai_at=(0, -3))
        assert game_state.get_unit_by_id("ai-1") is ai
        assert game_state.get_unit_by_id("ai-9") is None
        assert game_state.get_unit_at(Hex(0, 0)) is player
        assert game_state.all_units() == [player, ai]

    def test_move_unit_emits_event(self):
        game_state, player, _ = make_duel(player_at=(0, 0))
        seen = []
        game_state.events.subscribe(UNIT_MOVED, seen.append)
        game_state.move_unit(player, Hex(2, 0), [Hex(1, 0), Hex(2, 0)])
        assert seen == [{'unit_id': 'player-1', 'from': '0,0', 'to': '2,0', 'path': ['1,0', '2,0']}]

    def test_remove_unit(self):
        game_state, _, ai = make_duel(ai_at=(0, -3))
        game_state.remove_unit(ai)
        assert game_state.ai_units == []
        assert game_state.battlefield.get_occupant(Hex(0, -3)) is None

    def test_dead_unit_on_roster_is_caught(self):
        game_state, _, ai = make_duel()
        ai.health = 0
        with pytest.raises(AssertionError):
            game_state.assert_rosters_consistent()


class TestEventBus:
    def test_subscribe_and_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe("ping", seen.append)
        bus.emit("ping", {'n': 1})
        bus.unsubscribe("ping", seen.append)
        bus.emit("ping", {'n': 2})
        assert seen == [{'n': 1}]


class TestSummary:
    def test_summary_shape(self, game):
        summary = get_game_summary(game)
        assert summary['phase'] == 'player_turn'
        assert summary['current_turn'] == 'player'
        assert summary['winner'] is None
        assert summary['grid_radius'] == 7
        assert len(summary['tiles']) == 169
        assert {u['id'] for u in summary['units']} == {'player-1', 'ai-1'}
        assert summary['selection']['unit_id'] is None

    def test_summary_is_json_serialisable(self, game):
        json.dumps(get_game_summary(game))

    def test_enemy_visibility_flag(self, game):
        units = {u['id']: u for u in get_game_summary(game)['units']}
        assert units['player-1']['visible_to_player']
        assert not units['ai-1']['visible_to_player']
