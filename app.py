from flask import Flask, request, jsonify
from flask_cors import CORS
from state import initialize_game, get_game_summary, load_config, parse_weapon, ConfigError, GameState, Phase
from orders import select_unit, hover_hex, move_selected_unit, attack_at, end_turn
from ai_policy import AITurnRunner, run_ai_turn
from progress import ProgressManager, ProgressRepository
from models import Hex
from typing import Dict, Optional, Tuple

app = Flask(__name__)
CORS(app)  # Enable CORS for all routes
games: Dict[str, GameState] = {}  # In-memory storage for game states
ai_turns: Dict[str, AITurnRunner] = {}  # Paced AI turns in progress
rewarded: set = set()  # Games whose XP has been credited


def get_progress_repository() -> ProgressRepository:
    path = app.config.get('PROGRESS_PATH') or load_config()['progress_path']
    return ProgressRepository(path)


def parse_hex(data: Optional[dict]) -> Optional[Hex]:
    """Read {'q': .., 'r': ..} from a request body; None if malformed."""
    if not isinstance(data, dict) or 'q' not in data or 'r' not in data:
        return None
    try:
        return Hex(int(data['q']), int(data['r']))
    except (ValueError, TypeError):
        return None


def lookup_game(game_id: str) -> Tuple[Optional[GameState], Optional[tuple]]:
    if game_id not in games:
        return None, (jsonify({'error': 'Game not found'}), 404)
    return games[game_id], None


def intent_response(game_state: GameState, success: bool, **extra):
    return jsonify({'success': success, 'state': get_game_summary(game_state), **extra})


@app.route('/api/game/new', methods=['POST'])
def new_game():
    """Create a new match with the chosen (unlocked) weapon."""
    try:
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Invalid JSON data'}), 400

        seed = data.get('seed', 42)
        try:
            seed = int(seed)
        except (ValueError, TypeError):
            return jsonify({'error': 'Seed must be an integer'}), 400

        try:
            weapon = parse_weapon(data.get('weapon', 'catapult'))
        except ConfigError as e:
            return jsonify({'error': str(e)}), 400

        manager = ProgressManager(get_progress_repository().load())
        if not manager.has_unlocked(weapon):
            return jsonify({'error': f'Weapon {weapon.value} is locked'}), 400

        game_state = initialize_game(weapon, seed)
        games[game_state.game_id] = game_state

        return jsonify({'game_id': game_state.game_id})

    except Exception as e:
        return jsonify({'error': f'Failed to create game: {str(e)}'}), 500


@app.route('/api/game/<game_id>/state', methods=['GET'])
def get_game_state(game_id: str):
    """Retrieve the current snapshot for the given game ID."""
    game_state, error = lookup_game(game_id)
    if error:
        return error
    return jsonify(get_game_summary(game_state))


@app.route('/api/game/<game_id>/select', methods=['POST'])
def select(game_id: str):
    game_state, error = lookup_game(game_id)
    if error:
        return error

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or 'unit_id' not in data:
        return jsonify({'error': 'unit_id is required'}), 400

    return intent_response(game_state, select_unit(game_state, str(data['unit_id'])))


@app.route('/api/game/<game_id>/hover', methods=['POST'])
def hover(game_id: str):
    game_state, error = lookup_game(game_id)
    if error:
        return error

    data = request.get_json(silent=True)
    target = parse_hex(data) if data else None
    if data and target is None:
        return jsonify({'error': 'Body must be an object with q and r coordinates'}), 400

    return intent_response(game_state, hover_hex(game_state, target))


@app.route('/api/game/<game_id>/move', methods=['POST'])
def move(game_id: str):
    game_state, error = lookup_game(game_id)
    if error:
        return error

    target = parse_hex(request.get_json(silent=True))
    if target is None:
        return jsonify({'error': 'Body must be an object with q and r coordinates'}), 400

    return intent_response(game_state, move_selected_unit(game_state, target))


@app.route('/api/game/<game_id>/attack', methods=['POST'])
def attack(game_id: str):
    game_state, error = lookup_game(game_id)
    if error:
        return error

    target = parse_hex(request.get_json(silent=True))
    if target is None:
        return jsonify({'error': 'Body must be an object with q and r coordinates'}), 400

    return intent_response(game_state, attack_at(game_state, target))


@app.route('/api/game/<game_id>/end-turn', methods=['POST'])
def end_player_turn(game_id: str):
    """
    End the player's turn. The AI then plays its whole turn, unless the body
    asks for {"paced": true}, in which case the client drives it via /ai/step.
    """
    try:
        game_state, error = lookup_game(game_id)
        if error:
            return error

        data = request.get_json(silent=True) or {}
        if not end_turn(game_state):
            return intent_response(game_state, False)

        if game_state.phase != Phase.AI_TURN:
            # Match ended before the AI got to act
            return intent_response(game_state, True, ai_actions=[])

        if data.get('paced'):
            ai_turns[game_id] = AITurnRunner(game_state)
            return intent_response(
                game_state, True, paced=True,
                step_delay_ms=game_state.config['ai_step_delay_ms'],
            )

        reports = run_ai_turn(game_state)
        return intent_response(game_state, True, ai_actions=[r.to_dict() for r in reports])

    except Exception as e:
        return jsonify({'error': f'Failed to end turn: {str(e)}'}), 500


@app.route('/api/game/<game_id>/ai/step', methods=['POST'])
def ai_step(game_id: str):
    """Advance a paced AI turn by one unit; the last call hands the turn back."""
    game_state, error = lookup_game(game_id)
    if error:
        return error

    runner = ai_turns.get(game_id)
    if runner is None:
        return jsonify({'error': 'No AI turn in progress'}), 400

    report = runner.step()
    done = runner.done
    if done:
        runner.finish()
        ai_turns.pop(game_id, None)

    return intent_response(
        game_state, report is not None,
        action=report.to_dict() if report else None,
        done=done,
    )


@app.route('/api/game/<game_id>/log', methods=['GET'])
def get_game_log(game_id: str):
    """Retrieve the full game log for analysis."""
    game_state, error = lookup_game(game_id)
    if error:
        return error

    return jsonify({
        'game_id': game_id,
        'turn': game_state.turn_count,
        'phase': game_state.phase.value,
        'log': game_state.log,
    })


@app.route('/api/game/<game_id>/reward', methods=['POST'])
def claim_reward(game_id: str):
    """Credit the XP of a finished match to the stored progress, once."""
    try:
        game_state, error = lookup_game(game_id)
        if error:
            return error

        if not game_state.is_over:
            return jsonify({'error': 'Match is still in progress'}), 400
        if game_id in rewarded:
            return jsonify({'error': 'Reward already claimed'}), 400

        repository = get_progress_repository()
        manager = ProgressManager(repository.load())
        result = manager.apply_battle_result(game_state)
        repository.save(manager.progress)
        rewarded.add(game_id)

        return jsonify({'game_id': game_id, 'winner': game_state.winner.value, **result})

    except Exception as e:
        return jsonify({'error': f'Failed to apply reward: {str(e)}'}), 500


@app.route('/api/progress', methods=['GET'])
def get_progress():
    manager = ProgressManager(get_progress_repository().load())
    return jsonify({
        'total_xp': manager.progress.total_xp,
        'unlocked_weapons': manager.progress.unlocked_weapons,
        'next_unlock': manager.get_next_unlock(),
    })


if __name__ == '__main__':
    from state import setup_logging
    setup_logging()
    app.run(debug=True)
