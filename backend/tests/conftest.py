import os
import sys
import itertools
import pytest

# Ensure the backend root (containing the `duel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from duel import create_app, socketio
from duel.services.match import (MatchOrchestrator, MatchSettings, RoomStore,
                                 TimerHandle)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/ws'
    ROUND_DURATION_SEC = 10
    ROUND_TRANSITION_SEC = 3
    REMATCH_WINDOW_SEC = 15
    RECONNECT_GRACE_SEC = 30
    WIN_SCORE = 2
    CHAT_MAX_LENGTH = 200
    LOG_LEVEL = 'DEBUG'


class ManualScheduler:
    """Fake clock: timers only fire when a test calls ``advance``."""

    def __init__(self, start=1000.0):
        self._now = start
        self._timers = []

    def now(self):
        return self._now

    def call_later(self, delay, callback, *args):
        handle = TimerHandle(self._now + delay, callback, args)
        self._timers.append(handle)
        return handle

    def pending(self):
        return [t for t in self._timers if t.active]

    def advance(self, seconds):
        target = self._now + seconds
        while True:
            due = [t for t in self.pending() if t.deadline <= target]
            if not due:
                break
            handle = min(due, key=lambda t: t.deadline)
            self._now = max(self._now, handle.deadline)
            handle.fire()
        self._now = target

    def skip(self, seconds):
        """Move the clock forward without firing anything that came due."""
        self._now += seconds


class RecordingTransport:
    """Keeps every outbound event and the room membership it was sent under."""

    def __init__(self):
        self.sent = []
        self.rooms = {}

    def send(self, event, payload=None, to=None, skip=None):
        if to in self.rooms:
            recipients = [sid for sid in self.rooms[to] if sid != skip]
        else:
            recipients = [to] if to != skip else []
        self.sent.append({'event': event, 'payload': payload, 'to': to, 'recipients': recipients})

    def enter_room(self, sid, room):
        self.rooms.setdefault(room, [])
        if sid not in self.rooms[room]:
            self.rooms[room].append(sid)

    def close_room(self, room):
        self.rooms.pop(room, None)

    def received(self, sid, event=None):
        return [
            m['payload'] for m in self.sent
            if sid in m['recipients'] and (event is None or m['event'] == event)
        ]

    def events(self, sid):
        return [m['event'] for m in self.sent if sid in m['recipients']]

    def seat_token(self, sid):
        """The most recent private rejoin token sent to sid."""
        return self.received(sid, 'seatToken')[-1]['token']

    def clear(self):
        self.sent = []


def sequential_codes(*codes):
    """Room code factory yielding fixed codes, then numbered fallbacks."""
    fallback = (f'ROOM{i:02d}' for i in itertools.count(1))
    queue = iter(codes)

    def _factory(taken=(), anonymous=False, length=6):
        for code in queue:
            return code
        return next(fallback)

    return _factory


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def orchestrator(scheduler, transport):
    return MatchOrchestrator(
        transport=transport,
        scheduler=scheduler,
        store=RoomStore(code_factory=sequential_codes('AB12CD', 'EF34GH', 'IJ56KL')),
        settings=MatchSettings(),
    )


@pytest.fixture()
def playing(orchestrator):
    """A direct-mode room AB12CD with A as player1 and B as player2, round 1 running."""
    orchestrator.create_game('A')
    orchestrator.join_game('B', 'AB12CD')
    return orchestrator.store.get('AB12CD')


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    """Factory for Socket.IO test clients on the /ws namespace."""
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
