from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class DisconnectEntry:
    connection_id: str
    room_code: str
    deadline: float
    timer: Any = None


class DisconnectTracker:
    """Players who dropped mid-match and may still rejoin before ``deadline``."""

    def __init__(self):
        self._entries: Dict[str, DisconnectEntry] = {}

    def add(self, connection_id: str, room_code: str, deadline: float, timer=None) -> DisconnectEntry:
        previous = self._entries.get(connection_id)
        if previous is not None and previous.timer is not None:
            previous.timer.cancel()
        entry = DisconnectEntry(connection_id, room_code, deadline, timer)
        self._entries[connection_id] = entry
        return entry

    def get(self, connection_id: Optional[str]) -> Optional[DisconnectEntry]:
        if not connection_id:
            return None
        return self._entries.get(connection_id)

    def pop(self, connection_id: str) -> Optional[DisconnectEntry]:
        entry = self._entries.pop(connection_id, None)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()
        return entry

    def for_room(self, room_code: str) -> List[DisconnectEntry]:
        return [e for e in self._entries.values() if e.room_code == room_code]

    def discard_room(self, room_code: str) -> None:
        for entry in self.for_room(room_code):
            self.pop(entry.connection_id)

    def __contains__(self, connection_id) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
