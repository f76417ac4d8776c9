import json
import os
import sys
import pytest

# Ensure the backend root (containing the `qrhunt` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from qrhunt import create_app, db, socketio, get_engine


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    QR_SECRET = 'test-qr-secret'
    LOCK_COOLDOWN_MS = 30000
    TOKEN_MAX_AGE_SEC = 0
    SAVE_RETRY_LIMIT = 3
    CORS_ORIGINS = []
    LOG_LEVEL = 'DEBUG'


TEAMS = [
    ('team1', 'Team Red'),
    ('team2', 'Team Yellow'),
    ('team3', 'Team Green'),
]


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import qrhunt.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def seeded(flask_app):
    from qrhunt.models import Question, Team
    for level in range(1, 11):
        db.session.add(Question(
            level=level,
            text=f"Question for level {level}?",
            options=json.dumps([f"Answer {level}", 'Wrong A', 'Wrong B']),
            correct_answer=f"Answer {level}",
        ))
    for team_id, name in TEAMS:
        db.session.add(Team(id=team_id, name=name))
    db.session.commit()
    return flask_app


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def engine(seeded, clock):
    hunt_engine = get_engine(seeded)
    hunt_engine.clock = clock
    return hunt_engine


@pytest.fixture()
def issue(engine):
    """Issue a token for ``level`` with the app's codec."""
    def _issue(level):
        return engine.codec.issue(level, f"Q{level}")
    return _issue


@pytest.fixture()
def set_team(seeded):
    """Overwrite stored team columns directly, bypassing the engine."""
    from qrhunt.models import Team

    def _set(team_id, **values):
        team = db.session.get(Team, team_id)
        for key, value in values.items():
            setattr(team, key, value)
        db.session.commit()
    return _set


@pytest.fixture()
def client(seeded):
    return seeded.test_client()


@pytest.fixture()
def sio_client(seeded):
    test_client = socketio.test_client(
        seeded,
        flask_test_client=seeded.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
