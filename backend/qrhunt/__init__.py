from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import json
import click
from qrhunt.config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SOCKET_NAMESPACE = '/ws'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Build the progression engine once; requests reach it through app.extensions
    from qrhunt.services.hunt import ProgressionEngine, TokenCodec
    from qrhunt.services.hunt.broadcaster import SocketIOBroadcaster
    from qrhunt.services.hunt.repository import SqlAlchemyTeamRepository

    testing = flask_app.config.get('TESTING', False)
    codec = TokenCodec(
        flask_app.config['QR_SECRET'],
        max_age_ms=int(flask_app.config.get('TOKEN_MAX_AGE_SEC', 0)) * 1000,
    )
    flask_app.extensions['progression_engine'] = ProgressionEngine(
        repository=SqlAlchemyTeamRepository(db),
        codec=codec,
        # In tests, emit inline for deterministic delivery to the test client
        broadcaster=SocketIOBroadcaster(
            socketio, namespace=SOCKET_NAMESPACE, deferred=not testing, logger=flask_app.logger
        ),
        cooldown_ms=int(flask_app.config.get('LOCK_COOLDOWN_MS', 30000)),
        retry_limit=int(flask_app.config.get('SAVE_RETRY_LIMIT', 3)),
        logger=flask_app.logger,
    )

    # Import and register blueprints here
    from qrhunt.main import main
    flask_app.register_blueprint(main)

    from qrhunt.api.hunt import hunt
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(hunt, url_prefix='/api')

    from qrhunt.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=SOCKET_NAMESPACE)

    @click.command('init-db')
    def init_db_command():
        """Drops and recreates the database tables."""
        import qrhunt.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
        click.echo('Database tables have been recreated.')

    @click.command('generate-tokens')
    @click.option('--output', type=click.Path(dir_okay=False, writable=True), default=None,
                  help='Write the tokens to this JSON file instead of stdout.')
    def generate_tokens_command(output):
        """Issues one signed level token per stored question."""
        from qrhunt.models import Question
        tokens = []
        with flask_app.app_context():
            for question in Question.query.order_by(Question.level).all():
                tokens.append({
                    'level': question.level,
                    'qid': question.public_id,
                    'token': codec.issue(question.level, question.public_id),
                })
        rendered = json.dumps(tokens, indent=2)
        if output:
            with open(output, 'w', encoding='utf-8') as fh:
                fh.write(rendered)
            click.echo(f"Wrote {len(tokens)} tokens to {output}")
        else:
            click.echo(rendered)

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(generate_tokens_command)

    return flask_app


def get_engine(flask_app=None):
    from flask import current_app
    return (flask_app or current_app).extensions['progression_engine']
