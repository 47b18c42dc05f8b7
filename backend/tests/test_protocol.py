import pytest

from duel.protocol import (AttemptRejoin, Chat, CreateGame, JoinGame,
                           ProtocolError, SubmitMove, parse_inbound)


def test_join_game_accepts_bare_code_or_object():
    assert parse_inbound('joinGame', 'AB12CD') == JoinGame('AB12CD')
    assert parse_inbound('joinGame', {'roomCode': ' AB12CD '}) == JoinGame('AB12CD')


def test_join_game_without_code_reports_room_error():
    with pytest.raises(ProtocolError, match='Room not found or full'):
        parse_inbound('joinGame', None)


def test_move_must_be_legal():
    assert parse_inbound('move', {'roomCode': 'AB12CD', 'move': 'rock'}) == SubmitMove('AB12CD', 'rock')
    for bad in ('lizard', 'none', None, 3):
        with pytest.raises(ProtocolError, match='Invalid move'):
            parse_inbound('move', {'roomCode': 'AB12CD', 'move': bad})
    with pytest.raises(ProtocolError):
        parse_inbound('move', 'rock')


def test_chat_requires_text_message():
    assert parse_inbound('chat', {'roomCode': 'AB12CD', 'message': 'gg'}) == Chat('AB12CD', 'gg')
    with pytest.raises(ProtocolError, match='message is required'):
        parse_inbound('chat', {'roomCode': 'AB12CD', 'message': {'x': 1}})


def test_attempt_rejoin_fields():
    msg = parse_inbound('attemptRejoin', {'roomCode': 'AB12CD', 'gameMode': 'random', 'rejoinToken': 'secret'})
    assert msg == AttemptRejoin('AB12CD', game_mode='random', rejoin_token='secret')
    assert parse_inbound('attemptRejoin', {'roomCode': 'AB12CD'}).rejoin_token is None
    with pytest.raises(ProtocolError, match='Invalid rejoinToken'):
        parse_inbound('attemptRejoin', {'roomCode': 'AB12CD', 'rejoinToken': 42})
    with pytest.raises(ProtocolError, match='Invalid gameMode'):
        parse_inbound('attemptRejoin', {'roomCode': 'AB12CD', 'gameMode': 'ranked'})


def test_events_without_payload():
    assert parse_inbound('createGame') == CreateGame()
    with pytest.raises(ProtocolError, match='Unknown event'):
        parse_inbound('dance', {})
