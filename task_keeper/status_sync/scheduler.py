"""Debounced processing of modified documents."""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.4


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def daemon_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


class ChangeScheduler:
    """Coalesces modify notifications into one pass per debounce window.

    Idle until the first ``notify``; that arms a single timer. Notifications
    arriving while it is armed only join the pending set. When the timer
    fires the pending set is swapped out and each document is handed to
    ``handler`` in first-notified order, one at a time. A flush armed while
    another is still running waits for it to finish.
    """

    def __init__(
        self,
        handler: Callable[[str], Any],
        *,
        delay: float = DEBOUNCE_SECONDS,
        timer_factory: TimerFactory = daemon_timer,
    ) -> None:
        self.handler = handler
        self.delay = delay
        self.timer_factory = timer_factory
        self._lock = threading.Lock()
        # Held for a whole flush so batches never overlap.
        self._flush_lock = threading.Lock()
        self._pending: dict[str, str] = {}
        self._timer: TimerHandle | None = None

    @property
    def pending(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    @property
    def is_armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def notify(self, document_id: str) -> None:
        if not document_id:
            return
        with self._lock:
            self._pending[document_id] = document_id
            if self._timer is not None:
                return
            self._timer = self.timer_factory(self.delay, self._flush)
            self._timer.start()

    def _flush(self) -> None:
        with self._flush_lock:
            with self._lock:
                batch = list(self._pending.values())
                self._pending = {}
                self._timer = None
            for document_id in batch:
                try:
                    self.handler(document_id)
                except Exception:
                    logger.exception("Failed to process %s", document_id)

    def shutdown(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            dropped = len(self._pending)
            self._pending = {}
        if dropped:
            logger.debug("Dropped %d pending document(s) on shutdown", dropped)
