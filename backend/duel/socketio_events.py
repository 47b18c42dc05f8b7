from flask import current_app, request
from flask_socketio import emit

from duel import socketio
from duel.protocol import ProtocolError, parse_inbound


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _orchestrator():
    return current_app.extensions['duel.orchestrator']


def _parse(event, data):
    """Parse an inbound payload, replying ``error`` to the sender if it is malformed."""
    try:
        return parse_inbound(event, data)
    except ProtocolError as exc:
        current_app.logger.info(f"[protocol-error] sid={_get_sid()} event={event} message={exc}")
        emit('error', str(exc))
        return None


def handle_connect(auth=None):
    emit('connected', {'id': _get_sid()})


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
    _orchestrator().handle_disconnect(_get_sid())


def handle_create_game(data=None):
    if _parse('createGame', data) is not None:
        _orchestrator().create_game(_get_sid())


def handle_join_game(data=None):
    msg = _parse('joinGame', data)
    if msg is not None:
        _orchestrator().join_game(_get_sid(), msg.room_code)


def handle_join_random(data=None):
    if _parse('joinRandom', data) is not None:
        _orchestrator().join_random(_get_sid())


def handle_cancel_waiting(data=None):
    if _parse('cancelWaiting', data) is not None:
        _orchestrator().cancel_waiting(_get_sid())


def handle_move(data=None):
    msg = _parse('move', data)
    if msg is not None:
        _orchestrator().submit_move(_get_sid(), msg.room_code, msg.move)


def handle_request_rematch(data=None):
    msg = _parse('requestRematch', data)
    if msg is not None:
        _orchestrator().request_rematch(_get_sid(), msg.room_code)


def handle_leave_room(data=None):
    msg = _parse('leaveRoom', data)
    if msg is not None:
        _orchestrator().leave_room(_get_sid(), msg.room_code)


def handle_chat(data=None):
    msg = _parse('chat', data)
    if msg is not None:
        _orchestrator().chat(_get_sid(), msg.room_code, msg.message)


def handle_attempt_rejoin(data=None):
    msg = _parse('attemptRejoin', data)
    if msg is not None:
        _orchestrator().attempt_rejoin(
            _get_sid(), msg.room_code, game_mode=msg.game_mode, rejoin_token=msg.rejoin_token
        )


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'createGame': handle_create_game,
    'joinGame': handle_join_game,
    'joinRandom': handle_join_random,
    'cancelWaiting': handle_cancel_waiting,
    'move': handle_move,
    'requestRematch': handle_request_rematch,
    'leaveRoom': handle_leave_room,
    'chat': handle_chat,
    'attemptRejoin': handle_attempt_rejoin,
}


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register the match protocol's Socket.IO event handlers on ``namespace``."""
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
