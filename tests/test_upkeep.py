"""
Tests for turn switching, the shrinking battlefield and victory.
"""

from events import GAME_ENDED, TURN_SWITCHED
from map_gen import ORIGIN, hex_distance
from models import Owner
from state import Phase
from upkeep import (
    apply_shrink,
    check_victory_condition,
    end_player_turn,
    finish_ai_turn,
    resolve_victory,
    switch_turn,
)

from conftest import make_duel


class TestSwitchTurn:
    def test_player_to_ai(self):
        game_state, player, ai = make_duel()
        ai.has_moved = True
        game_state.selected_unit = player

        switch_turn(game_state, Owner.AI)

        assert game_state.phase == Phase.AI_TURN
        assert game_state.current_turn == Owner.AI
        assert game_state.turn_count == 0
        assert not ai.has_moved
        assert game_state.selected_unit is None

    def test_returning_to_player_advances_turn(self):
        game_state, player, _ = make_duel()
        player.has_attacked = True
        player.movement_points_used = 2

        switch_turn(game_state, Owner.AI)
        switch_turn(game_state, Owner.PLAYER)

        assert game_state.turn_count == 1
        assert game_state.phase == Phase.PLAYER_TURN
        assert not player.has_attacked
        assert player.movement_points_used == 0

    def test_emits_turn_event(self):
        game_state, _, _ = make_duel()
        seen = []
        game_state.events.subscribe(TURN_SWITCHED, seen.append)
        switch_turn(game_state, Owner.AI)
        assert seen == [{'owner': 'ai', 'turn_count': 0, 'shrink_radius': 7}]

    def test_failing_handler_does_not_break_turn(self):
        game_state, _, _ = make_duel()

        def broken(payload):
            raise RuntimeError("renderer crashed")

        game_state.events.subscribe(TURN_SWITCHED, broken)
        switch_turn(game_state, Owner.AI)
        assert game_state.phase == Phase.AI_TURN


class TestShrink:
    def test_shrinks_on_interval(self):
        game_state, _, _ = make_duel()
        game_state.turn_count = 4
        switch_turn(game_state, Owner.AI)
        switch_turn(game_state, Owner.PLAYER)

        assert game_state.turn_count == 5
        assert game_state.shrink_radius == 6
        for tile in game_state.battlefield:
            assert tile.is_in_bounds == (hex_distance(tile.coordinate, ORIGIN) <= 6)

    def test_no_shrink_between_intervals(self):
        game_state, _, _ = make_duel()
        game_state.turn_count = 3
        assert not apply_shrink(game_state)
        assert game_state.shrink_radius == 7

    def test_shrink_stops_at_floor(self):
        game_state, _, _ = make_duel()
        radii = []
        for turn in range(1, 31):
            game_state.turn_count = turn
            apply_shrink(game_state)
            radii.append(game_state.shrink_radius)

        assert radii[4] == 6   # turn 5
        assert radii[9] == 5   # turn 10
        assert min(radii) == 5
        assert game_state.shrink_radius == 5

    def test_turn_zero_does_not_shrink(self):
        game_state, _, _ = make_duel()
        assert not apply_shrink(game_state)
        assert game_state.shrink_radius == 7
        assert all(tile.is_in_bounds for tile in game_state.battlefield)
        assert not any('shrink_radius' in entry for entry in game_state.log)

    def test_logs_shrink(self):
        game_state, _, _ = make_duel()
        game_state.turn_count = 5
        apply_shrink(game_state)
        assert game_state.log[-1]['shrink_radius'] == 6


class TestVictory:
    def test_no_winner_while_both_sides_stand(self):
        game_state, _, _ = make_duel()
        assert check_victory_condition(game_state) is None
        assert resolve_victory(game_state) is None
        assert game_state.phase == Phase.PLAYER_TURN

    def test_player_wins_when_ai_wiped_out(self):
        game_state, _, ai = make_duel()
        game_state.remove_unit(ai)
        assert check_victory_condition(game_state) == Owner.PLAYER

    def test_ai_wins_when_player_wiped_out(self):
        game_state, player, _ = make_duel()
        game_state.remove_unit(player)
        assert check_victory_condition(game_state) == Owner.AI

    def test_resolve_victory_ends_match(self):
        game_state, _, ai = make_duel()
        seen = []
        game_state.events.subscribe(GAME_ENDED, seen.append)
        game_state.remove_unit(ai)

        assert resolve_victory(game_state) == Owner.PLAYER
        assert game_state.phase == Phase.ENDED
        assert game_state.winner == Owner.PLAYER
        assert game_state.current_turn is None
        assert len(seen) == 1
        assert seen[0]['winner'] == 'player'
        assert seen[0]['state']['phase'] == 'ended'

    def test_resolve_victory_is_idempotent(self):
        game_state, _, ai = make_duel()
        seen = []
        game_state.events.subscribe(GAME_ENDED, seen.append)
        game_state.remove_unit(ai)
        resolve_victory(game_state)
        resolve_victory(game_state)
        assert len(seen) == 1


class TestTurnTransitions:
    def test_end_player_turn(self):
        game_state, _, _ = make_duel()
        assert end_player_turn(game_state)
        assert game_state.phase == Phase.AI_TURN
        assert not end_player_turn(game_state)

    def test_finish_ai_turn(self):
        game_state, _, _ = make_duel()
        assert not finish_ai_turn(game_state)
        end_player_turn(game_state)
        assert finish_ai_turn(game_state)
        assert game_state.phase == Phase.PLAYER_TURN
        assert game_state.turn_count == 1

    def test_no_transitions_after_match_ends(self):
        game_state, _, ai = make_duel()
        game_state.remove_unit(ai)
        resolve_victory(game_state)
        assert not end_player_turn(game_state)
        assert not finish_ai_turn(game_state)
        assert game_state.phase == Phase.ENDED
