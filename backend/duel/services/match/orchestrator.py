import logging
import threading
from dataclasses import dataclass
from typing import Optional

from duel.models import (NULL_MOVE, MatchSession, Player, SessionState,
                         new_rejoin_token)
from .matchmaking import MatchmakingPool
from .reconnect import DisconnectEntry, DisconnectTracker
from .scoring import check_match_winner, determine_winner
from .store import RoomStore


ROOM_NOT_FOUND_OR_FULL = 'Room not found or full'
ROOM_NOT_FOUND = 'Room not found'
ALREADY_IN_GAME = 'Already in a game'
REMATCH_NOT_AVAILABLE = 'Rematch not available'


@dataclass
class MatchSettings:
    round_duration: float = 10.0
    round_transition: float = 3.0
    rematch_window: float = 15.0
    reconnect_grace: float = 30.0
    win_score: int = 2
    chat_max_length: int = 200

    @classmethod
    def from_config(cls, config) -> 'MatchSettings':
        return cls(
            round_duration=float(config.get('ROUND_DURATION_SEC', 10)),
            round_transition=float(config.get('ROUND_TRANSITION_SEC', 3)),
            rematch_window=float(config.get('REMATCH_WINDOW_SEC', 15)),
            reconnect_grace=float(config.get('RECONNECT_GRACE_SEC', 30)),
            win_score=int(config.get('WIN_SCORE', 2)),
            chat_max_length=int(config.get('CHAT_MAX_LENGTH', 200)),
        )


class MatchOrchestrator:
    """Owns every live room: matchmaking, the round state machine, rematches
    and the reconnect grace window.

    Inbound events and timer callbacks all go through one re-entrant lock, so
    a timer firing can never interleave with a move that completes the same
    round. Timer callbacks also carry the session's ``timer_epoch`` and are
    dropped when it no longer matches.
    """

    def __init__(self, transport, scheduler, store: Optional[RoomStore] = None,
                 pool: Optional[MatchmakingPool] = None,
                 tracker: Optional[DisconnectTracker] = None,
                 settings: Optional[MatchSettings] = None, logger=None):
        self.transport = transport
        self.scheduler = scheduler
        self.store = store if store is not None else RoomStore()
        self.pool = pool if pool is not None else MatchmakingPool()
        self.tracker = tracker if tracker is not None else DisconnectTracker()
        self.settings = settings or MatchSettings()
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()

    # ---- Matchmaking ----

    def create_game(self, sid: str) -> Optional[MatchSession]:
        with self._lock:
            if self._is_busy(sid):
                self._send_error(sid, ALREADY_IN_GAME)
                return None
            self.pool.discard(sid)
            session = self.store.create([sid])
            self.transport.enter_room(sid, session.room_code)
            self.transport.send('gameCreated', session.room_code, to=sid)
            self.logger.info(f"[room-created] room={session.room_code} host={sid}")
            return session

    def join_game(self, sid: str, room_code: str) -> Optional[MatchSession]:
        with self._lock:
            session = self.store.get(room_code)
            if session is None or session.is_full or session.is_anonymous or session.has_player(sid):
                self._send_error(sid, ROOM_NOT_FOUND_OR_FULL)
                return None
            if self._is_busy(sid):
                self._send_error(sid, ALREADY_IN_GAME)
                return None
            self.pool.discard(sid)
            session.players.append(Player(connection_id=sid))
            self.transport.enter_room(sid, session.room_code)
            self._begin_match(session)
            return session

    def join_random(self, sid: str) -> Optional[MatchSession]:
        with self._lock:
            if self._is_busy(sid):
                self._send_error(sid, ALREADY_IN_GAME)
                return None
            self.pool.add(sid)
            opponent = self.pool.pair(sid)
            if opponent is None:
                self.transport.send('waiting', to=sid)
                self.logger.info(f"[pool-wait] sid={sid} waiting={len(self.pool)}")
                return None
            session = self.store.create([opponent, sid], anonymous=True)
            for pid in session.player_ids:
                self.transport.enter_room(pid, session.room_code)
            self.logger.info(f"[pool-pair] room={session.room_code} players={opponent},{sid}")
            self._begin_match(session)
            return session

    def cancel_waiting(self, sid: str) -> None:
        with self._lock:
            if self.pool.discard(sid):
                self.logger.info(f"[pool-cancel] sid={sid}")
            session = self.store.find_by_player(sid)
            if session is not None and session.state == SessionState.WAITING and len(session.players) == 1:
                self._destroy(session, 'cancelled')

    def _begin_match(self, session: MatchSession) -> None:
        self.transport.send('gameStart', session.room_code, to=session.room_code)
        for player in session.players:
            self._send_seat_token(session, player)
        self.logger.info(f"[match-start] room={session.room_code} players={','.join(session.player_ids)}")
        self._start_round(session)

    # ---- Rounds ----

    def submit_move(self, sid: str, room_code: str, move: str) -> None:
        with self._lock:
            session = self.store.get(room_code)
            if session is None or not session.has_player(sid):
                self._send_error(sid, ROOM_NOT_FOUND)
                return
            if session.state != SessionState.PLAYING:
                self.logger.debug(f"[move-ignored] room={room_code} sid={sid} state={session.state.value}")
                return
            session.moves[sid] = move
            if session.is_full and all(pid in session.moves for pid in session.player_ids):
                self._resolve_round(session)

    def _start_round(self, session: MatchSession) -> None:
        session.moves = {}
        session.state = SessionState.PLAYING
        session.rematch_deadline = None
        self.transport.send('roundStart', {
            'round': session.current_round,
            'scores': session.scores(),
        }, to=session.room_code)
        self.logger.info(f"[round-start] room={session.room_code} round={session.current_round}")
        self._arm_phase_timer(session)

    def _resolve_round(self, session: MatchSession) -> None:
        self._cancel_timer(session)
        p1, p2 = session.players
        move1 = session.moves.get(p1.connection_id, NULL_MOVE)
        move2 = session.moves.get(p2.connection_id, NULL_MOVE)
        result = determine_winner(move1, move2)
        if result == 'player1':
            p1.score += 1
        elif result == 'player2':
            p2.score += 1

        session.state = SessionState.ROUND_END
        session.round_deadline = None
        match_winner = check_match_winner(session.players, self.settings.win_score)
        self.transport.send('roundResult', {
            'moves': {p1.connection_id: move1, p2.connection_id: move2},
            'result': result,
            'scores': session.scores(),
            'matchWinner': match_winner,
        }, to=session.room_code)
        self.logger.info(
            f"[round-result] room={session.room_code} round={session.current_round} "
            f"moves={move1}/{move2} result={result} score={p1.score}-{p2.score}"
        )

        if match_winner:
            session.state = SessionState.MATCH_END
            session.rematch_votes.clear()
            self.logger.info(f"[match-end] room={session.room_code} winner={match_winner}")
        else:
            session.current_round += 1
        self._arm_phase_timer(session)

    def _on_round_timeout(self, room_code: str, epoch: int) -> None:
        with self._lock:
            session = self._live_session(room_code, epoch)
            if session is None or session.state != SessionState.PLAYING:
                return
            self.logger.info(f"[timer-fire] room={room_code} round={session.current_round} kind=round")
            for pid in session.player_ids:
                session.moves.setdefault(pid, NULL_MOVE)
            self._resolve_round(session)

    def _on_transition_elapsed(self, room_code: str, epoch: int) -> None:
        with self._lock:
            session = self._live_session(room_code, epoch)
            if session is None or session.state != SessionState.ROUND_END:
                return
            self._start_round(session)

    # ---- Rematch ----

    def request_rematch(self, sid: str, room_code: str) -> None:
        with self._lock:
            session = self.store.get(room_code)
            if session is None or not session.has_player(sid):
                self._send_error(sid, ROOM_NOT_FOUND)
                return
            if session.state != SessionState.MATCH_END:
                self._send_error(sid, REMATCH_NOT_AVAILABLE)
                return
            if sid in session.rematch_votes:
                self.logger.debug(f"[rematch-dup] room={room_code} sid={sid}")
                return
            session.rematch_votes.add(sid)
            self.transport.send('rematchRequested', {
                'requesterId': sid,
                'votes': sorted(session.rematch_votes),
            }, to=session.room_code)
            self.logger.info(f"[rematch-vote] room={room_code} sid={sid} votes={len(session.rematch_votes)}")

            if all(pid in session.rematch_votes for pid in session.player_ids):
                self._cancel_timer(session)
                self._reset_match(session)
                self.transport.send('rematchStarting', to=session.room_code)
                self.logger.info(f"[rematch] room={room_code} starting")
                self._start_round(session)

    def _reset_match(self, session: MatchSession) -> None:
        for p in session.players:
            p.score = 0
        session.current_round = 1
        session.moves = {}
        session.rematch_votes.clear()
        session.rematch_deadline = None

    def _on_rematch_timeout(self, room_code: str, epoch: int) -> None:
        with self._lock:
            session = self._live_session(room_code, epoch)
            if session is None or session.state != SessionState.MATCH_END:
                return
            self.logger.info(f"[timer-fire] room={room_code} kind=rematch votes={len(session.rematch_votes)}")
            self.transport.send('matchTimeout', to=session.room_code)
            self._destroy(session, 'rematch-timeout')

    # ---- Leaving, chat ----

    def leave_room(self, sid: str, room_code: str) -> None:
        with self._lock:
            session = self.store.get(room_code)
            if session is None or not session.has_player(sid):
                self.logger.debug(f"[leave-ignored] room={room_code} sid={sid}")
                return
            self._notify_departure(session, reason='left', skip=sid)
            self._destroy(session, 'left')

    def chat(self, sid: str, room_code: str, message: str) -> None:
        with self._lock:
            session = self.store.get(room_code)
            if session is None or not session.has_player(sid):
                self._send_error(sid, ROOM_NOT_FOUND)
                return
            self.transport.send('chat', {
                'message': message[:self.settings.chat_max_length],
                'senderId': sid,
            }, to=session.room_code)

    # ---- Disconnect / reconnect ----

    def handle_disconnect(self, sid: str) -> None:
        with self._lock:
            self.pool.discard(sid)
            session = self.store.find_by_player(sid)
            if session is None:
                return
            if session.state == SessionState.WAITING:
                self._destroy(session, 'host-disconnected')
                return
            remaining = [pid for pid in session.player_ids if pid != sid and pid not in self.tracker]
            if not remaining:
                self._destroy(session, 'abandoned')
                return

            grace = self.settings.reconnect_grace
            timer = self.scheduler.call_later(grace, self._on_grace_expired, sid, session.room_code)
            self.tracker.add(sid, session.room_code, self.scheduler.now() + grace, timer)
            # Hold the round/rematch clock until the player is back
            self._arm_phase_timer(session)
            self.transport.send('opponentTemporaryDisconnect', {
                'playerId': sid,
                'graceSeconds': grace,
            }, to=session.room_code, skip=sid)
            self.logger.info(f"[grace-start] room={session.room_code} sid={sid} state={session.state.value} grace={grace}s")

    def attempt_rejoin(self, sid: str, room_code: str, game_mode: Optional[str] = None,
                       rejoin_token: Optional[str] = None) -> Optional[MatchSession]:
        """Put a returning connection back in its seat.

        The seat is found by the private token sent with ``seatToken``, never
        by the public player id. A successful rejoin rotates the token.
        """
        with self._lock:
            session = self.store.get(room_code)
            player = session.player_by_token(rejoin_token) if session is not None else None
            entry = self.tracker.get(player.connection_id) if player is not None else None
            reason = None
            if session is None:
                reason = 'room-not-found'
            elif player is None:
                reason = 'invalid-token'
            elif entry is None or entry.room_code != room_code:
                reason = 'not-disconnected'
            elif self.scheduler.now() > entry.deadline:
                reason = 'expired'
                self._expire_grace(entry)
            elif game_mode and (game_mode == 'random') != session.is_anonymous:
                reason = 'mode-mismatch'
            elif player.connection_id != sid and self._is_busy(sid):
                reason = 'already-in-game'
            if reason:
                self.transport.send('rejoinFailed', {'reason': reason}, to=sid)
                self.logger.info(f"[rejoin-failed] room={room_code} sid={sid} reason={reason}")
                return None

            previous = player.connection_id
            self.tracker.pop(previous)
            self.pool.discard(sid)
            session.rebind_player(previous, sid)
            player.rejoin_token = new_rejoin_token()
            self.transport.enter_room(sid, session.room_code)
            self._arm_phase_timer(session)
            self.transport.send('rejoinSuccess', session.to_dict(), to=sid)
            self._send_seat_token(session, player)
            self.transport.send('opponentReconnected', {
                'playerId': sid,
                'previousId': previous,
            }, to=session.room_code, skip=sid)
            self.logger.info(f"[rejoin] room={room_code} sid={sid} previous={previous} state={session.state.value}")
            return session

    def _on_grace_expired(self, sid: str, room_code: str) -> None:
        with self._lock:
            entry = self.tracker.get(sid)
            if entry is None or entry.room_code != room_code:
                return
            self._expire_grace(entry)

    def _expire_grace(self, entry: DisconnectEntry) -> None:
        self.tracker.pop(entry.connection_id)
        session = self.store.get(entry.room_code)
        if session is None:
            return
        self.logger.info(f"[grace-expired] room={entry.room_code} sid={entry.connection_id}")
        self._notify_departure(session, reason='timeout', skip=entry.connection_id)
        self._destroy(session, 'grace-expired')

    def snapshot(self, room_code: str) -> Optional[dict]:
        with self._lock:
            session = self.store.get(room_code)
            return session.to_dict() if session is not None else None

    # ---- Internals ----

    def _is_busy(self, sid: str) -> bool:
        return self.store.find_by_player(sid) is not None

    def _is_paused(self, session: MatchSession) -> bool:
        return bool(self.tracker.for_room(session.room_code))

    def _send_seat_token(self, session: MatchSession, player: Player) -> None:
        self.transport.send('seatToken', {
            'roomCode': session.room_code,
            'token': player.rejoin_token,
        }, to=player.connection_id)

    def _send_error(self, sid: str, message: str) -> None:
        self.transport.send('error', message, to=sid)
        self.logger.info(f"[protocol-error] sid={sid} message={message!r}")

    def _notify_departure(self, session: MatchSession, reason: str, skip: str) -> None:
        self.transport.send('playerDisconnected', {
            'roomCode': session.room_code,
            'during': session.state.value,
            'reason': reason,
        }, to=session.room_code, skip=skip)

    def _live_session(self, room_code: str, epoch: int) -> Optional[MatchSession]:
        session = self.store.get(room_code)
        if session is None or session.timer_epoch != epoch:
            self.logger.debug(f"[timer-abort] room={room_code} epoch={epoch} stale")
            return None
        return session

    def _cancel_timer(self, session: MatchSession) -> None:
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None
        session.timer_epoch += 1

    def _arm(self, session: MatchSession, delay: float, callback) -> None:
        self._cancel_timer(session)
        session.timer = self.scheduler.call_later(delay, callback, session.room_code, session.timer_epoch)

    def _arm_phase_timer(self, session: MatchSession) -> None:
        """Arm the single timer that belongs to the session's current state."""
        if self._is_paused(session):
            self._cancel_timer(session)
            return
        now = self.scheduler.now()
        if session.state == SessionState.PLAYING:
            session.round_deadline = now + self.settings.round_duration
            self._arm(session, self.settings.round_duration, self._on_round_timeout)
        elif session.state == SessionState.ROUND_END:
            self._arm(session, self.settings.round_transition, self._on_transition_elapsed)
        elif session.state == SessionState.MATCH_END:
            session.rematch_deadline = now + self.settings.rematch_window
            self._arm(session, self.settings.rematch_window, self._on_rematch_timeout)
        else:
            self._cancel_timer(session)

    def _destroy(self, session: MatchSession, reason: str) -> None:
        self._cancel_timer(session)
        self.tracker.discard_room(session.room_code)
        self.store.remove(session.room_code)
        self.transport.close_room(session.room_code)
        self.logger.info(f"[room-destroyed] room={session.room_code} reason={reason}")
