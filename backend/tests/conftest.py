import os
import random
import sys
import pytest

# Ensure the backend root (containing the `racer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from racer import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    LEADERBOARD_LIMIT = 50
    LEADERBOARD_TIMEZONE = 'UTC'
    SCORE_RETENTION_DAYS = 30
    RETENTION_INTERVAL_SEC = 0


class FakeClock:
    """Manually advanced monotonic clock for the race engine."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def tick(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import racer.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
    )
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def add_score(flask_app):
    """Insert a score row directly, bypassing validation."""
    from racer.models import Score, utcnow

    def _add(name='Player', wpm=50, accuracy=100, time=60.0, difficulty='medium', timestamp=None):
        record = Score(
            name=name,
            wpm=wpm,
            accuracy=accuracy,
            time=time,
            difficulty=difficulty,
            timestamp=timestamp or utcnow(),
        )
        db.session.add(record)
        db.session.commit()
        return record

    return _add
