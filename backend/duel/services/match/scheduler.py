import logging
import time
from typing import Any, Callable


class TimerHandle:
    """A scheduled callback. Cancelling it before it fires makes it a no-op."""

    def __init__(self, deadline: float, callback: Callable[..., Any], args=()):
        self.deadline = deadline
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def fire(self) -> None:
        if not self.active:
            return
        self.fired = True
        self.callback(*self.args)


class BackgroundScheduler:
    """Run deferred callbacks as Socket.IO background tasks.

    Each timer sleeps with ``socketio.sleep`` so it cooperates with whatever
    async mode the server runs under, then fires unless it was cancelled.
    """

    def __init__(self, socketio, logger=None):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(self.now() + delay, callback, args)
        self.socketio.start_background_task(self._worker, handle, delay)
        return handle

    def _worker(self, handle: TimerHandle, delay: float) -> None:
        if delay > 0:
            self.socketio.sleep(delay)
        if handle.cancelled:
            return
        try:
            handle.fire()
        except Exception:
            # Scoped to the one room the timer belonged to
            self.logger.exception(f"[timer-error] callback={getattr(handle.callback, '__name__', handle.callback)}")
