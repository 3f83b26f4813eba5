import dataclasses

import pytest

from lab_panic.leaderboard import create_app, db
from lab_panic.panic_core.config_loader import load_config


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCORE_STORE = 'sql'
    SESSION_TTL_SEC = 7200
    REAPER_INTERVAL_SEC = 0
    LEADERBOARD_DEFAULT_LIMIT = 25
    LEADERBOARD_MAX_LIMIT = 100
    AVAILABLE_WEEKS_CAP = 52
    PUBLIC_BASE_URL = 'http://lab.test'
    APP_ENV = 'test'
    APP_VERSION = '1.0.0'


class MemoryTestConfig(TestConfig):
    SCORE_STORE = 'memory'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import lab_panic.leaderboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def memory_app():
    return create_app(MemoryTestConfig)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def quiet_config(config):
    """Default config with spawning pushed out of reach."""
    return dataclasses.replace(
        config,
        difficulty=dataclasses.replace(
            config.difficulty,
            spawn_interval_start_ms=1e12,
            spawn_interval_min_ms=1e12,
        ),
    )
