from collections import deque
from typing import Callable, Dict, Iterator, Optional

from duel.models import MatchSession, Player, generate_room_code

# How many destroyed codes are held back before they may be issued again
RETIRED_CODE_LIMIT = 4096


class RoomStore:
    """Room code -> MatchSession. The single source of truth for live rooms.

    Codes of destroyed rooms stay retired for the last ``retired_limit``
    removals and are not issued again in that window.
    """

    def __init__(self, code_factory: Optional[Callable[..., str]] = None,
                 retired_limit: int = RETIRED_CODE_LIMIT):
        self._rooms: Dict[str, MatchSession] = {}
        self._retired = deque(maxlen=retired_limit)
        self._retired_set = set()
        self._code_factory = code_factory or generate_room_code

    @property
    def taken_codes(self):
        """Live and recently retired codes; none of them may be issued."""
        return self._rooms.keys() | self._retired_set

    def create(self, player_ids, anonymous: bool = False) -> MatchSession:
        code = self._code_factory(taken=self.taken_codes, anonymous=anonymous)
        if code in self._rooms or code in self._retired_set:
            raise ValueError(f"room code {code} is already taken")
        session = MatchSession(
            room_code=code,
            players=[Player(connection_id=pid) for pid in player_ids],
            is_anonymous=anonymous,
        )
        self._rooms[code] = session
        return session

    def get(self, room_code: Optional[str]) -> Optional[MatchSession]:
        if not room_code:
            return None
        return self._rooms.get(room_code)

    def remove(self, room_code: str) -> Optional[MatchSession]:
        session = self._rooms.pop(room_code, None)
        if session is not None:
            self._retire(room_code)
        return session

    def _retire(self, room_code: str) -> None:
        if self._retired.maxlen == 0:
            return
        if len(self._retired) == self._retired.maxlen:
            self._retired_set.discard(self._retired[0])
        self._retired.append(room_code)
        self._retired_set.add(room_code)

    def find_by_player(self, connection_id: str) -> Optional[MatchSession]:
        for session in self._rooms.values():
            if session.has_player(connection_id):
                return session
        return None

    def __contains__(self, room_code) -> bool:
        return room_code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[MatchSession]:
        return iter(list(self._rooms.values()))
