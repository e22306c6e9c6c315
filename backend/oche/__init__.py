from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import json
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    # Models must be registered on the metadata before create_all / migrations
    from oche import models  # noqa: F401
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from oche.main import main
    flask_app.register_blueprint(main)

    from oche.api.games import games
    # Mount game routes under /api/game to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/game')

    # Register Socket.IO event handlers
    from oche.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import oche.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('game-reset')
    @click.option('--keep-players', is_flag=True, help='Keep the roster and seating order.')
    def game_reset_command(keep_players):
        """Resets the saved game."""
        from oche.api.games import load_machine
        with flask_app.app_context():
            machine = load_machine()
            machine.reset_game(keep_players)
            print(f'Game reset ({len(machine.players)} players kept).')

    @click.command('game-show')
    @click.option('--raw', is_flag=True, help='Print the stored save-slot row instead of the game state.')
    def game_show_command(raw):
        """Prints the saved game state as JSON."""
        from oche.api.games import load_machine
        from oche.models import SaveSlot
        with flask_app.app_context():
            if raw:
                row = SaveSlot.query.filter_by(slot=flask_app.config.get('SAVE_SLOT', 'dartsGame')).first()
                data = row.to_dict() if row else None
            else:
                data = load_machine().to_dict()
            print(json.dumps(data, indent=2, ensure_ascii=False))

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(game_reset_command)
    flask_app.cli.add_command(game_show_command)

    return flask_app
