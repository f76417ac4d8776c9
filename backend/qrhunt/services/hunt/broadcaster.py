import logging
from typing import Any

GLOBAL = 'global'

LEVEL_STARTED = 'level_started'
TEAM_UPDATE = 'team:update'
LEADERBOARD_UPDATE = 'leaderboard:update'

TEAM_SCOPED_EVENTS = frozenset({LEVEL_STARTED, TEAM_UPDATE})
GLOBAL_EVENTS = frozenset({LEADERBOARD_UPDATE})


def team_scope(team_id: str) -> str:
    """Socket.IO room holding the sessions that joined ``team_id``."""
    return f"team:{team_id}"


class SocketIOBroadcaster:
    """Fire-and-forget delivery of engine events over Flask-SocketIO.

    With ``deferred`` set, each emit runs as a Socket.IO background task so
    the HTTP request that caused it does not wait on clients. Emit failures
    are logged and dropped: clients recover by pulling state.
    """

    def __init__(self, socketio, namespace: str = '/ws', deferred: bool = True, logger=None):
        self.socketio = socketio
        self.namespace = namespace
        self.deferred = deferred
        self.logger = logger or logging.getLogger(__name__)

    def broadcast(self, scope: str, event: str, payload: Any) -> None:
        if scope == GLOBAL:
            if event not in GLOBAL_EVENTS:
                raise ValueError(f"{event!r} cannot be sent to every client")
            room = None
        else:
            if event not in TEAM_SCOPED_EVENTS:
                raise ValueError(f"{event!r} cannot be sent to a team room")
            room = scope

        if self.deferred:
            try:
                self.socketio.start_background_task(self._emit, event, payload, room)
            except Exception as exc:
                self.logger.warning(f"[broadcast-drop] event={event} scope={scope} error={exc}")
            return
        self._emit(event, payload, room)

    def _emit(self, event: str, payload: Any, room) -> None:
        try:
            self.socketio.emit(event, payload, to=room, namespace=self.namespace)
        except Exception as exc:
            self.logger.warning(f"[broadcast-drop] event={event} room={room} error={exc}")
