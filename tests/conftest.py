"""Shared test fixtures and helpers."""

import pytest

from map_gen import Battlefield
from models import Hex, Owner, Unit, WeaponType
from state import DEFAULT_CONFIG, GameState, initialize_game

OPEN_CONFIG = {**DEFAULT_CONFIG, "obstacle_fraction": 0}


# --- Fixtures ---


@pytest.fixture
def game():
    """Fresh match with obstacles (seed=42)."""
    return initialize_game(seed=42)


@pytest.fixture
def open_game():
    """Fresh match on an obstacle-free battlefield."""
    return initialize_game(seed=42, config=OPEN_CONFIG)


@pytest.fixture
def tmp_progress(tmp_path):
    """Path for a throwaway progress file."""
    return str(tmp_path / "progress.json")


@pytest.fixture
def api_client(tmp_progress):
    """Flask test client with progress stored under tmp_path."""
    import app as app_module

    app_module.app.config["TESTING"] = True
    app_module.app.config["PROGRESS_PATH"] = tmp_progress
    with app_module.app.test_client() as client:
        yield client
    app_module.games.clear()
    app_module.ai_turns.clear()
    app_module.rewarded.clear()
    app_module.app.config.pop("PROGRESS_PATH", None)


# --- Helper functions ---


def make_open_battlefield(radius=7):
    """Battlefield with no obstacles."""
    return Battlefield(radius)


def make_state(battlefield=None, **config_overrides):
    """Bare GameState with no units, for placing units by hand."""
    battlefield = battlefield or make_open_battlefield()
    return GameState(
        game_id="test",
        battlefield=battlefield,
        config={**DEFAULT_CONFIG, **config_overrides},
        shrink_radius=battlefield.radius,
    )


def place_unit(game_state, unit_id, owner, q, r, weapon=WeaponType.CATAPULT, health=None):
    """Add a unit to the match and refresh vision."""
    unit = Unit(unit_id, weapon, owner, Hex(q, r))
    if health is not None:
        unit.health = health
    game_state.add_unit(unit)
    game_state.update_vision()
    return unit


def make_duel(player_at=(0, 0), ai_at=(0, -3), player_weapon=WeaponType.CATAPULT):
    """Open battlefield with one unit per side."""
    game_state = make_state()
    player = place_unit(game_state, "player-1", Owner.PLAYER, *player_at, weapon=player_weapon)
    ai = place_unit(game_state, "ai-1", Owner.AI, *ai_at)
    return game_state, player, ai


def create_api_game(client, seed=42, **body):
    """Create a new game via API, return game_id."""
    resp = client.post("/api/game/new", json={"seed": seed, **body})
    assert resp.status_code == 200
    return resp.json["game_id"]
