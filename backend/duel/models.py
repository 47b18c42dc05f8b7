from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set
import random
import secrets
import string

LEGAL_MOVES = ('rock', 'paper', 'scissors')
# Backfilled for a player who did not submit before the round deadline
NULL_MOVE = 'none'

ANONYMOUS_CODE_PREFIX = 'R-'


class SessionState(str, Enum):
    WAITING = 'waiting'
    PLAYING = 'playing'
    ROUND_END = 'roundEnd'
    MATCH_END = 'matchEnd'


def new_rejoin_token() -> str:
    return secrets.token_urlsafe(16)


@dataclass
class Player:
    connection_id: str
    score: int = 0
    # Private to this seat; never part of a broadcast payload
    rejoin_token: str = field(default_factory=new_rejoin_token, repr=False)

    def to_dict(self):
        return {
            'id': self.connection_id,
            'score': self.score,
        }


@dataclass
class MatchSession:
    """State for a single room. Lives in the RoomStore until destroyed."""

    room_code: str
    players: List[Player] = field(default_factory=list)
    moves: Dict[str, str] = field(default_factory=dict)
    current_round: int = 1
    state: SessionState = SessionState.WAITING
    round_deadline: Optional[float] = None
    rematch_deadline: Optional[float] = None
    rematch_votes: Set[str] = field(default_factory=set)
    is_anonymous: bool = False
    # The one active phase timer (round, transition or rematch)
    timer: Any = None
    timer_epoch: int = 0

    @property
    def player_ids(self) -> List[str]:
        return [p.connection_id for p in self.players]

    @property
    def is_full(self) -> bool:
        return len(self.players) >= 2

    def has_player(self, connection_id: str) -> bool:
        return connection_id in self.player_ids

    def get_player(self, connection_id: str) -> Optional[Player]:
        for p in self.players:
            if p.connection_id == connection_id:
                return p
        return None

    def player_by_token(self, token: Optional[str]) -> Optional[Player]:
        if not token:
            return None
        for p in self.players:
            if secrets.compare_digest(p.rejoin_token.encode(), token.encode()):
                return p
        return None

    def opponent_of(self, connection_id: str) -> Optional[Player]:
        for p in self.players:
            if p.connection_id != connection_id:
                return p
        return None

    def scores(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.players]

    def rebind_player(self, old_id: str, new_id: str) -> None:
        """Swap a player's connection identifier, keeping seat, score, move and vote."""
        player = self.get_player(old_id)
        if player is None:
            return
        player.connection_id = new_id
        if old_id in self.moves:
            self.moves[new_id] = self.moves.pop(old_id)
        if old_id in self.rematch_votes:
            self.rematch_votes.discard(old_id)
            self.rematch_votes.add(new_id)

    def to_dict(self):
        return {
            'roomCode': self.room_code,
            'round': self.current_round,
            'state': self.state.value,
            'scores': self.scores(),
            'moves': dict(self.moves),
            'isAnonymous': self.is_anonymous,
            'roundDeadline': self.round_deadline,
            'rematchDeadline': self.rematch_deadline,
            'rematchVotes': sorted(self.rematch_votes),
        }


def generate_room_code(taken=(), anonymous=False, length=6):
    """Generate a short room code that is not currently in use."""
    prefix = ANONYMOUS_CODE_PREFIX if anonymous else ''
    while True:
        code = prefix + ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code
