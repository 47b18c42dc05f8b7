"""Match services: matchmaking, the round state machine and its timers.

The orchestrator here is transport-agnostic; socket handlers translate
inbound events into orchestrator calls and the transport carries the
outbound events back, keeping connection concerns out of the game rules.
"""

from .matchmaking import MatchmakingPool
from .orchestrator import MatchOrchestrator, MatchSettings
from .reconnect import DisconnectTracker
from .scheduler import BackgroundScheduler, TimerHandle
from .store import RoomStore
from .transport import SocketIOTransport

__all__ = [
    'BackgroundScheduler',
    'DisconnectTracker',
    'MatchOrchestrator',
    'MatchSettings',
    'MatchmakingPool',
    'RoomStore',
    'SocketIOTransport',
    'TimerHandle',
]
