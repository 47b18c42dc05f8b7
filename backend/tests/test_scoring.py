import pytest

from duel.models import NULL_MOVE, Player
from duel.services.match.scoring import check_match_winner, determine_winner


@pytest.mark.parametrize('move1,move2,expected', [
    ('rock', 'scissors', 'player1'),
    ('scissors', 'paper', 'player1'),
    ('paper', 'rock', 'player1'),
    ('scissors', 'rock', 'player2'),
    ('paper', 'scissors', 'player2'),
    ('rock', 'paper', 'player2'),
    ('rock', 'rock', 'tie'),
    ('paper', 'paper', 'tie'),
    ('scissors', 'scissors', 'tie'),
])
def test_dominance_table(move1, move2, expected):
    assert determine_winner(move1, move2) == expected


@pytest.mark.parametrize('move', ['rock', 'paper', 'scissors'])
def test_null_move_loses_to_any_real_move(move):
    assert determine_winner(NULL_MOVE, move) == 'player2'
    assert determine_winner(move, NULL_MOVE) == 'player1'
    assert determine_winner(None, move) == 'player2'


def test_two_null_moves_tie():
    assert determine_winner(NULL_MOVE, NULL_MOVE) == 'tie'
    assert determine_winner(None, None) == 'tie'


def test_match_winner_only_at_threshold():
    a, b = Player('A', score=1), Player('B', score=1)
    assert check_match_winner([a, b], 2) is None
    b.score = 2
    assert check_match_winner([a, b], 2) == 'B'
