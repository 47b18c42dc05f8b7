import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated; '*' allows any origin
    CORS_ORIGINS = os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    )
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Match timers (seconds)
    ROUND_DURATION_SEC = float(os.environ.get('ROUND_DURATION_SEC', '10'))
    ROUND_TRANSITION_SEC = float(os.environ.get('ROUND_TRANSITION_SEC', '3'))
    REMATCH_WINDOW_SEC = float(os.environ.get('REMATCH_WINDOW_SEC', '15'))
    RECONNECT_GRACE_SEC = float(os.environ.get('RECONNECT_GRACE_SEC', '30'))
    # Rounds a player must win to take the match
    WIN_SCORE = int(os.environ.get('WIN_SCORE', '2'))
    CHAT_MAX_LENGTH = int(os.environ.get('CHAT_MAX_LENGTH', '200'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', '3000'))
