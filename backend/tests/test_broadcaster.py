import pytest

from qrhunt.services.hunt.broadcaster import (
    GLOBAL,
    LEADERBOARD_UPDATE,
    LEVEL_STARTED,
    TEAM_UPDATE,
    SocketIOBroadcaster,
    team_scope,
)


class RecordingSocketIO:
    """Stands in for flask_socketio.SocketIO; keeps emits and background tasks."""

    def __init__(self, fail_emit=False, fail_tasks=False):
        self.fail_emit = fail_emit
        self.fail_tasks = fail_tasks
        self.emitted = []
        self.tasks = []

    def emit(self, event, payload, to=None, namespace=None):
        if self.fail_emit:
            raise OSError('transport closed')
        self.emitted.append((event, payload, to, namespace))

    def start_background_task(self, target, *args):
        if self.fail_tasks:
            raise RuntimeError('no worker available')
        self.tasks.append((target, args))

    def run_tasks(self):
        for target, args in self.tasks:
            target(*args)


def test_deferred_broadcast_runs_as_background_task():
    sio = RecordingSocketIO()
    broadcaster = SocketIOBroadcaster(sio, namespace='/ws', deferred=True)
    broadcaster.broadcast(team_scope('team1'), LEVEL_STARTED, {'level': 1})

    assert sio.emitted == []
    assert len(sio.tasks) == 1

    sio.run_tasks()
    assert sio.emitted == [(LEVEL_STARTED, {'level': 1}, 'team:team1', '/ws')]


def test_inline_broadcast_emits_immediately():
    sio = RecordingSocketIO()
    broadcaster = SocketIOBroadcaster(sio, deferred=False)
    broadcaster.broadcast(GLOBAL, LEADERBOARD_UPDATE, [])
    assert sio.tasks == []
    assert sio.emitted == [(LEADERBOARD_UPDATE, [], None, '/ws')]


@pytest.mark.parametrize('deferred', [True, False])
def test_emit_failures_are_dropped(deferred):
    sio = RecordingSocketIO(fail_emit=True)
    broadcaster = SocketIOBroadcaster(sio, deferred=deferred)
    broadcaster.broadcast(team_scope('team2'), TEAM_UPDATE, {'progress': 3})
    sio.run_tasks()
    assert sio.emitted == []


def test_background_task_failure_is_dropped():
    sio = RecordingSocketIO(fail_tasks=True)
    broadcaster = SocketIOBroadcaster(sio, deferred=True)
    broadcaster.broadcast(GLOBAL, LEADERBOARD_UPDATE, [])
    assert sio.tasks == []
    assert sio.emitted == []


@pytest.mark.parametrize('scope, event', [
    (GLOBAL, LEVEL_STARTED),
    (GLOBAL, TEAM_UPDATE),
    (team_scope('team1'), LEADERBOARD_UPDATE),
    (team_scope('team1'), 'chat'),
])
def test_event_must_match_scope(scope, event):
    sio = RecordingSocketIO()
    broadcaster = SocketIOBroadcaster(sio, deferred=False)
    with pytest.raises(ValueError):
        broadcaster.broadcast(scope, event, {})
    assert sio.emitted == []


def test_correct_answer_survives_broken_socket(engine, issue):
    sio = RecordingSocketIO(fail_emit=True)
    engine.broadcaster = SocketIOBroadcaster(sio, deferred=False, logger=engine.logger)

    token = issue(1)
    engine.scan(token, 'team1')
    result = engine.answer(token, 'team1', 'Answer 1')

    assert result.correct is True
    assert result.to_dict()['correct'] is True
    assert engine.team_snapshot('team1')['progress'] == 2
