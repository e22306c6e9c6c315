from flask import Blueprint, jsonify, request, current_app
from oche import socketio
from oche.services.games import GameMachine, GameError, GameFinished, NoActivePlayers
from oche.services.games.persistence import SqlSlotStore
import re
import time


games = Blueprint('games', __name__)

# No single turn comes anywhere near this many digits
MAX_SCORE_DIGITS = 6


def load_machine() -> GameMachine:
    """Build a machine from app config and resume it from the save slot."""
    machine = GameMachine.from_config(current_app.config, store=SqlSlotStore())
    machine.load()
    return machine

def _min_players() -> int:
    try:
        return int(current_app.config.get('MIN_PLAYERS', 2))
    except (TypeError, ValueError):
        return 2

def state_payload(machine: GameMachine) -> dict:
    # Include message duration so clients know how long to show turn messages
    try:
        message_sec = int(current_app.config.get('MESSAGE_DURATION_SEC', 3))
    except (TypeError, ValueError):
        message_sec = 3
    payload = machine.to_dict()
    payload['durations'] = {'message': message_sec}
    payload['min_players'] = _min_players()
    return payload

def _emit_state(machine: GameMachine) -> None:
    socketio.emit('state_update', {'slot': machine.slot}, to=f"board:{machine.slot}", namespace='/ws')

def _parse_score(value):
    """Accept an int or a string of digits; anything else (negatives included) is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        # ASCII digits only; int() rejects superscripts and oversized strings
        if len(text) > MAX_SCORE_DIGITS or not re.fullmatch(r'\d+', text, re.ASCII):
            return None
        try:
            return int(text)
        except ValueError:
            return None
    return None

def _parse_bool(value, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(value, int):
        return value != 0
    return default

def _is_debounced(slot: str) -> bool:
    try:
        debounce_ms = int(current_app.config.get('SUBMIT_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    last_action = current_app.extensions.setdefault('oche_last_submit', {})
    key = f"score:{slot}"
    now = time.time() * 1000.0
    if now - last_action.get(key, 0) < debounce_ms:
        return True
    last_action[key] = now
    return False


@games.route('/state', methods=['GET'])
def get_game_state():
    return jsonify(state_payload(load_machine()))


@games.route('/players', methods=['POST'])
def add_player():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        return jsonify({'error': 'Player name is required'}), 400

    machine = load_machine()
    if machine.has_started:
        return jsonify({'error': 'Players can only be added before the first score'}), 403

    player = machine.add_player(name)
    current_app.logger.info(f"[join] slot={machine.slot} player={player.name!r} seat={len(machine.players) - 1}")
    _emit_state(machine)
    return jsonify(player.to_dict()), 201


@games.route('/score', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True) or {}
    score = _parse_score(data.get('score'))
    if score is None:
        return jsonify({'error': 'Score must be a non-negative integer'}), 400

    machine = load_machine()
    if _is_debounced(machine.slot):
        return jsonify({'message': 'debounced'}), 202

    min_players = _min_players()
    if len(machine.players) < min_players:
        return jsonify({'error': f'At least {min_players} players are required to start'}), 400

    try:
        result = machine.submit_score(score)
    except (GameFinished, NoActivePlayers) as e:
        return jsonify({'error': str(e)}), 409
    except GameError as e:
        return jsonify({'error': str(e)}), 400

    current_app.logger.info(
        f"[score] slot={machine.slot} score={score} round={machine.current_round} result={result.to_dict()}"
    )
    _emit_state(machine)
    return jsonify({'result': result.to_dict(), 'state': state_payload(machine)})


@games.route('/reset', methods=['POST'])
def reset_game():
    data = request.get_json(silent=True) or {}
    keep_players = _parse_bool(data.get('keep_players'), default=False)
    machine = load_machine()
    machine.reset_game(keep_players)
    _emit_state(machine)
    return jsonify(state_payload(machine))
