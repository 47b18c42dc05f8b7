from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

# The orchestrator serializes on a threading.RLock, so pin the threading
# server instead of letting eventlet or gevent be picked up when installed.
socketio = SocketIO(async_mode='threading')


def _allowed_origins(value):
    origins = [o.strip() for o in (value or '').split(',') if o.strip()]
    if '*' in origins:
        return '*'
    return origins


def create_app(config_class=Config, scheduler=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from duel.main import main
    flask_app.register_blueprint(main)

    # One orchestrator per app; tests get a fresh one with a manual clock
    from duel.services.match import (BackgroundScheduler, MatchOrchestrator,
                                     MatchSettings, SocketIOTransport)
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    orchestrator = MatchOrchestrator(
        transport=SocketIOTransport(socketio, namespace=namespace),
        scheduler=scheduler or BackgroundScheduler(socketio, logger=flask_app.logger),
        settings=MatchSettings.from_config(flask_app.config),
        logger=flask_app.logger,
    )
    flask_app.extensions['duel.orchestrator'] = orchestrator

    from duel.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    return flask_app
