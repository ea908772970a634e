from __future__ import annotations

import threading
from typing import Optional, Sequence

from playlist_creator.config import STATUS_MESSAGES


class StatusTicker:
    """Cycles a display message on a fixed interval until cancelled.

    Each tick schedules the next one on a ``threading.Timer``; ``cancel`` stops
    the chain and no message change happens after it returns. Usable as a
    context manager so every exit path releases the timer.
    """

    def __init__(self, interval: float, messages: Sequence[str] = STATUS_MESSAGES):
        if not messages:
            raise ValueError("StatusTicker needs at least one message")
        self.interval = interval
        self._messages = tuple(messages)
        self._index = 0
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False
        self._started = False

    @property
    def message(self) -> str:
        with self._lock:
            return self._messages[self._index]

    @property
    def active(self) -> bool:
        with self._lock:
            return self._started and not self._cancelled

    def start(self) -> "StatusTicker":
        with self._lock:
            if self._started:
                return self
            self._started = True
            self._schedule()
        return self

    def advance(self) -> str:
        """Move to the next message, wrapping around. No-op once cancelled."""
        with self._lock:
            if not self._cancelled:
                self._index = (self._index + 1) % len(self._messages)
            return self._messages[self._index]

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    def _tick(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._index = (self._index + 1) % len(self._messages)
            self._schedule()

    def _schedule(self) -> None:
        # caller holds self._lock
        timer = threading.Timer(self.interval, self._tick)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def __enter__(self) -> "StatusTicker":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.cancel()
