"""Background expiry of holds that were never paid for."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from django.conf import settings  # type: ignore
from django.db import close_old_connections, connections  # type: ignore
from django.utils import timezone  # type: ignore

from .services import ReservationManager, TransitionOutcome

logger = logging.getLogger(__name__)


class HoldSweeper:
    """
    Expires active holds whose expires_at has passed.

    ``tick()`` runs a single sweep and can be called directly (the Celery
    task does exactly that). ``start()``/``stop()`` run ticks on a daemon
    thread: one immediately, then every ``interval`` seconds. Both are
    idempotent. The sweeper keeps no state between ticks.

    ``clock`` returns the current time; ``wait(seconds)`` blocks between
    ticks and returns True when the loop should stop. Both are injectable.
    """

    def __init__(
        self,
        manager: Optional[ReservationManager] = None,
        interval: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self.manager = manager or ReservationManager()
        self.interval = interval if interval is not None else settings.RESERVATION_SWEEP_INTERVAL_SECONDS
        self.clock = clock or timezone.now
        self._wait = wait
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self, now: Optional[datetime] = None) -> dict[str, int]:
        now = now or self.clock()
        expired = 0
        failed = 0

        for reservation_id in self.manager.expired_hold_ids(now):
            try:
                outcome = self.manager.expire(reservation_id, now=now)
            except Exception:
                failed += 1
                logger.error(f"Failed to expire hold {reservation_id}", exc_info=True)
                continue
            if outcome is TransitionOutcome.APPLIED:
                expired += 1

        if expired or failed:
            logger.info(f"Hold sweep: {expired} expired, {failed} failed")
        return {"expired": expired, "failed": failed}

    def start(self) -> bool:
        """
        Start the background loop. Returns False when a loop is already
        alive, including one that was asked to stop but has not exited yet.
        """
        with self._lock:
            if self.running:
                return False
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="hold-sweeper",
                daemon=True,
            )
            self._thread.start()
        logger.info(f"Hold sweeper started (every {self.interval}s)")
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            thread = self._thread
            if thread is None or not thread.is_alive():
                return False
            self._stop_event.set()
        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"Hold sweeper still finishing a sweep after {timeout}s")
        else:
            logger.info("Hold sweeper stopped")
        return True

    def join(self, timeout: Optional[float] = None):
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, stop_event: threading.Event):
        wait = self._wait or stop_event.wait
        try:
            while not stop_event.is_set():
                close_old_connections()
                try:
                    self.tick()
                except Exception:
                    logger.error("Hold sweep failed", exc_info=True)
                if wait(self.interval) or stop_event.is_set():
                    break
        finally:
            connections.close_all()
