from typing import Iterable, Optional

from duel.models import NULL_MOVE, Player

# move -> the move it beats
BEATS = {
    'rock': 'scissors',
    'scissors': 'paper',
    'paper': 'rock',
}


def determine_winner(move1: Optional[str], move2: Optional[str]) -> str:
    """Resolve one round between player1 and player2.

    Returns 'player1', 'player2' or 'tie'. A missing (null) move loses to
    any real move and ties only against another null move.
    """
    move1 = move1 or NULL_MOVE
    move2 = move2 or NULL_MOVE
    if move1 == NULL_MOVE and move2 == NULL_MOVE:
        return 'tie'
    if move1 == NULL_MOVE:
        return 'player2'
    if move2 == NULL_MOVE:
        return 'player1'
    if move1 == move2:
        return 'tie'
    return 'player1' if BEATS[move1] == move2 else 'player2'


def check_match_winner(players: Iterable[Player], win_score: int) -> Optional[str]:
    for p in players:
        if p.score >= win_score:
            return p.connection_id
    return None
