from datetime import timedelta

import click
from flask import Flask, current_app, jsonify
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

from lab_panic.leaderboard.config import Config
from lab_panic.leaderboard.errors import ScoreServiceError, StorageFailure

db = SQLAlchemy()


def get_service():
    """ScoreService bound to the current app."""
    return current_app.extensions['lab_panic']


def create_app(config_class=Config, store=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    CORS(flask_app)

    from lab_panic.leaderboard.service import ScoreService
    from lab_panic.leaderboard.store import InMemoryStore, SqlAlchemyStore

    if store is None:
        if flask_app.config.get('SCORE_STORE', 'sql') == 'memory':
            store = InMemoryStore()
        else:
            from lab_panic.leaderboard import models  # noqa: F401
            # Unrecoverable at startup: let it propagate
            with flask_app.app_context():
                db.create_all()
            store = SqlAlchemyStore(db)

    service = ScoreService(
        store,
        session_ttl=timedelta(seconds=int(flask_app.config.get('SESSION_TTL_SEC', 7200))),
        default_limit=int(flask_app.config.get('LEADERBOARD_DEFAULT_LIMIT', 25)),
        max_limit=int(flask_app.config.get('LEADERBOARD_MAX_LIMIT', 100)),
        weeks_cap=int(flask_app.config.get('AVAILABLE_WEEKS_CAP', 52)),
    )
    flask_app.extensions['lab_panic'] = service

    from lab_panic.leaderboard.api import api, share
    flask_app.register_blueprint(api, url_prefix='/api')
    flask_app.register_blueprint(share)

    @flask_app.errorhandler(ScoreServiceError)
    def handle_service_error(exc):
        if isinstance(exc, StorageFailure):
            flask_app.logger.error(f"[store-error] {exc.message}")
        else:
            flask_app.logger.warning(f"[rejected] code={exc.code} message={exc.message}")
        return jsonify(exc.to_dict()), exc.status

    from lab_panic.leaderboard.reaper import start_reaper
    start_reaper(flask_app)

    @click.command('reap-sessions')
    def reap_sessions_command():
        """Deletes expired sessions once."""
        with flask_app.app_context():
            deleted = service.reap_expired_sessions()
            print(f'Deleted {deleted} expired sessions.')

    @click.command('init-db')
    def init_db_command():
        """Creates the database tables."""
        from lab_panic.leaderboard import models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
            print('Database tables created.')

    flask_app.cli.add_command(reap_sessions_command)
    flask_app.cli.add_command(init_db_command)

    return flask_app
