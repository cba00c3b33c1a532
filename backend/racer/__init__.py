from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    raw = config.get('CORS_ORIGINS', '*') or '*'
    if raw.strip() == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = _allowed_origins(flask_app.config)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from racer.main import main
    flask_app.register_blueprint(main)

    from racer.api.leaderboard import leaderboard
    # Mount leaderboard routes under /api to match the game client
    flask_app.register_blueprint(leaderboard, url_prefix='/api')

    # Register Socket.IO event handlers on the initialized socketio instance
    from racer.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the score tables."""
        import racer.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('purge-scores')
    def purge_scores_command():
        """Deletes scores older than the retention window."""
        from racer.services.leaderboard.retention import purge_old_scores
        with flask_app.app_context():
            removed = purge_old_scores()
            print(f'Removed {removed} old scores')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(purge_scores_command)

    return flask_app
