import logging
import sys
from typing import Optional, Tuple

from flask import Flask
from flask_socketio import SocketIO
from pymongo.errors import ConnectionFailure

from .config import settings
from .utils.logging_config import setup_logging
from .database.db_manager import get_db, close_db_connection
from .database.store import GameStore
from .game.services.game_service import GameService
from .web.routes import main_bp
from .web.sockets import GameNamespace

log = logging.getLogger(__name__)


def build_game_service() -> Optional[GameService]:
    """Connect to MongoDB and wire the engine. Returns None when the database is unreachable."""
    try:
        db = get_db()
        log.info("Database connection successful on startup.")
    except ConnectionFailure as e:
        log.critical(f"CRITICAL: Failed to connect to database on startup: {e}")
        return None

    store = GameStore(db)
    store.ensure_indexes()
    game_service = GameService.create(store, spawn_points=settings.SPAWN_POINTS)
    if settings.SEED_ON_STARTUP:
        game_service.seed_defaults()
    return game_service


def create_app(game_service: Optional[GameService] = None) -> Tuple[Flask, SocketIO]:
    """Build the Flask app and its Socket.IO server around a GameService.

    Without an injected service one is built against the configured MongoDB.
    If that fails the app still serves /health, in degraded mode.
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.SECRET_KEY
    app.config['DEBUG'] = settings.DEBUG

    socketio = SocketIO(app, cors_allowed_origins="*", async_mode=None)

    if game_service is None:
        game_service = build_game_service()
    if game_service is None:
        log.error("Running in degraded mode: Database connection failed. Game service not initialized.")
    app.extensions['game_service'] = game_service

    app.register_blueprint(main_bp)
    log.info("Registered main blueprint.")

    if game_service:
        socketio.on_namespace(GameNamespace('/game', game_service))
        log.info("Registered GameNamespace.")
    else:
        log.warning("GameNamespace not registered due to GameService initialization failure.")

    return app, socketio


def run_app():
    """Runs the Flask-SocketIO server."""
    setup_logging()
    app, socketio = create_app()
    log.info(f"Starting Flask-SocketIO server on {settings.HOST}:{settings.PORT} (Debug: {settings.DEBUG})...")
    sys.stdout.flush()
    try:
        socketio.run(app, host=settings.HOST, port=settings.PORT, debug=settings.DEBUG,
                     allow_unsafe_werkzeug=True)
    finally:
        close_db_connection()


if __name__ == '__main__':
    run_app()
