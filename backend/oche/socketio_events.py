from flask_socketio import join_room, leave_room, emit
from flask import current_app


def _board_room(data) -> str:
    slot = data.get('slot') if isinstance(data, dict) else None
    return f"board:{slot or current_app.config.get('SAVE_SLOT', 'dartsGame')}"


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_board(data=None):
    room = _board_room(data)
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_board(data=None):
    room = _board_room(data)
    leave_room(room)
    emit('left', {'room': room})


def handle_request_state(data=None):
    # Late import: the API module pulls in the SQL store
    from oche.api.games import load_machine, state_payload
    emit('state', state_payload(load_machine()))


def handle_ping(data=None):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from oche import socketio

    handlers = {
        'connect': handle_connect,
        'join_board': handle_join_board,
        'leave_board': handle_leave_board,
        'request_state': handle_request_state,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
