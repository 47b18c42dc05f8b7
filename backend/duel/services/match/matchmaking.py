from typing import Dict, Optional


class MatchmakingPool:
    """Connection ids waiting for an anonymous opponent, in arrival order."""

    def __init__(self):
        # dict keeps insertion order; values unused
        self._waiting: Dict[str, None] = {}

    def add(self, connection_id: str) -> None:
        self._waiting.setdefault(connection_id, None)

    def discard(self, connection_id: str) -> bool:
        if connection_id not in self._waiting:
            return False
        del self._waiting[connection_id]
        return True

    def pair(self, requester: str) -> Optional[str]:
        """Take the first waiting id other than ``requester``.

        Both ids leave the pool before this returns, so neither can be
        handed out again by a later call.
        """
        for candidate in self._waiting:
            if candidate != requester:
                self._waiting.pop(candidate)
                self._waiting.pop(requester, None)
                return candidate
        return None

    def __contains__(self, connection_id) -> bool:
        return connection_id in self._waiting

    def __len__(self) -> int:
        return len(self._waiting)
