from flask_socketio import join_room, leave_room, emit
from qrhunt import socketio, get_engine
from qrhunt.services.hunt.broadcaster import LEADERBOARD_UPDATE, team_scope


def _team_id(data):
    team_id = (data or {}).get('team_id') or (data or {}).get('teamId')
    return str(team_id) if team_id else None


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join(data):
    team_id = _team_id(data)
    if not team_id:
        emit('error', {'message': 'team_id is required'})
        return
    room = team_scope(team_id)
    # join_room is a no-op when the session is already in the room
    join_room(room)
    emit('joined', {'room': room})


def handle_leave(data):
    team_id = _team_id(data)
    if not team_id:
        emit('error', {'message': 'team_id is required'})
        return
    room = team_scope(team_id)
    leave_room(room)
    emit('left', {'room': room})


def handle_request_leaderboard(data=None):
    # Reply to the asking session only, e.g. after a reconnect
    entries = get_engine().leaderboard()
    emit(LEADERBOARD_UPDATE, [entry.to_dict() for entry in entries])


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('join', handle_join, namespace=namespace)
    socketio.on_event('leave', handle_leave, namespace=namespace)
    socketio.on_event('request_leaderboard', handle_request_leaderboard, namespace=namespace)
    socketio.on_event('ping', handle_ping, namespace=namespace)
