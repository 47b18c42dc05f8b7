"""Inbound Socket.IO messages.

Every client event is parsed into one of the message types below before it
reaches the orchestrator. Parsing failures raise ``ProtocolError`` whose
message is sent back to the sender as an ``error`` event.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from duel.models import LEGAL_MOVES


class ProtocolError(ValueError):
    pass


@dataclass(frozen=True)
class CreateGame:
    pass


@dataclass(frozen=True)
class JoinGame:
    room_code: str


@dataclass(frozen=True)
class JoinRandom:
    pass


@dataclass(frozen=True)
class CancelWaiting:
    pass


@dataclass(frozen=True)
class SubmitMove:
    room_code: str
    move: str


@dataclass(frozen=True)
class RequestRematch:
    room_code: str


@dataclass(frozen=True)
class LeaveRoom:
    room_code: str


@dataclass(frozen=True)
class Chat:
    room_code: str
    message: str


@dataclass(frozen=True)
class AttemptRejoin:
    room_code: str
    game_mode: Optional[str] = None
    rejoin_token: Optional[str] = None


InboundMessage = Union[
    CreateGame, JoinGame, JoinRandom, CancelWaiting, SubmitMove,
    RequestRematch, LeaveRoom, Chat, AttemptRejoin,
]

GAME_MODES = ('direct', 'random')


def _room_code(data: Any, error: str = 'roomCode is required') -> str:
    # Some events send the bare code, others wrap it in an object
    if isinstance(data, dict):
        data = data.get('roomCode')
    if not isinstance(data, str) or not data.strip():
        raise ProtocolError(error)
    return data.strip()


def _fields(data: Any) -> dict:
    if not isinstance(data, dict):
        raise ProtocolError('payload must be an object')
    return data


def parse_create_game(data=None) -> CreateGame:
    return CreateGame()


def parse_join_game(data) -> JoinGame:
    return JoinGame(room_code=_room_code(data, 'Room not found or full'))


def parse_join_random(data=None) -> JoinRandom:
    return JoinRandom()


def parse_cancel_waiting(data=None) -> CancelWaiting:
    return CancelWaiting()


def parse_move(data) -> SubmitMove:
    fields = _fields(data)
    move = fields.get('move')
    if move not in LEGAL_MOVES:
        raise ProtocolError('Invalid move')
    return SubmitMove(room_code=_room_code(fields), move=move)


def parse_request_rematch(data) -> RequestRematch:
    return RequestRematch(room_code=_room_code(data))


def parse_leave_room(data) -> LeaveRoom:
    return LeaveRoom(room_code=_room_code(data))


def parse_chat(data) -> Chat:
    fields = _fields(data)
    message = fields.get('message')
    if not isinstance(message, str):
        raise ProtocolError('message is required')
    return Chat(room_code=_room_code(fields), message=message)


def parse_attempt_rejoin(data) -> AttemptRejoin:
    fields = _fields(data)
    game_mode = fields.get('gameMode')
    if game_mode is not None and game_mode not in GAME_MODES:
        raise ProtocolError('Invalid gameMode')
    token = fields.get('rejoinToken')
    if token is not None and not isinstance(token, str):
        raise ProtocolError('Invalid rejoinToken')
    return AttemptRejoin(room_code=_room_code(fields), game_mode=game_mode, rejoin_token=token)


PARSERS = {
    'createGame': parse_create_game,
    'joinGame': parse_join_game,
    'joinRandom': parse_join_random,
    'cancelWaiting': parse_cancel_waiting,
    'move': parse_move,
    'requestRematch': parse_request_rematch,
    'leaveRoom': parse_leave_room,
    'chat': parse_chat,
    'attemptRejoin': parse_attempt_rejoin,
}


def parse_inbound(event: str, data: Any = None) -> InboundMessage:
    parser = PARSERS.get(event)
    if parser is None:
        raise ProtocolError(f'Unknown event {event}')
    return parser(data)
