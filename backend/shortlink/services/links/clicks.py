# shortlink/services/links/clicks.py
"""Asynchronous click accounting.

The redirect path hands a :class:`ClickEvent` to :meth:`ClickRecorder.submit`
and returns immediately. A single daemon worker drains the bounded queue
and calls the handler. When the queue is full the event is dropped and
counted; the redirect never blocks on it.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from shortlink.models.base import utcnow

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClickEvent:
    link_id: UUID
    clicked_at: datetime = field(default_factory=utcnow)


ClickHandler = Callable[[ClickEvent], None]

_STOP = object()


class ClickRecorder:
    """
    Bounded queue plus one worker thread.

    Parameters
    ----------
    handler : Callable[[ClickEvent], None]
        Persists one event. Exceptions are logged and counted, never raised
        into the worker loop.
    maxsize : int, optional
        Queue capacity; submissions beyond it are dropped.
    """

    def __init__(self, handler: ClickHandler, *, maxsize: int = 10_000) -> None:
        self.handler = handler
        self._queue: queue.Queue[object] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.processed = 0
        self.failed = 0
        self.dropped = 0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._thread = threading.Thread(
                target=self._run, name="click-recorder", daemon=True
            )
            self._thread.start()
        log.info("clicks.worker_started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Let the worker finish queued events, then join it."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._thread = None
        self._queue.put(_STOP)
        thread.join(timeout)
        log.info("clicks.worker_stopped")

    # ------------------------------------------------------------------ #
    # Producer side
    # ------------------------------------------------------------------ #

    def submit(self, event: ClickEvent) -> bool:
        """Enqueue ``event`` without blocking; ``False`` when it was dropped."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._lock:
                self.dropped += 1
            log.warning("clicks.dropped", extra={"link_id": str(event.link_id)})
            return False
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    # ------------------------------------------------------------------ #
    # Consumer side
    # ------------------------------------------------------------------ #

    def drain(self) -> int:
        """Process every queued event in the calling thread.

        Used when no worker is running (tests, CLI). Returns the number of
        events handled.
        """
        handled = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return handled
            if item is _STOP:
                self._queue.task_done()
                continue
            self._handle(item)  # type: ignore[arg-type]
            handled += 1

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._queue.task_done()
                return
            self._handle(item)  # type: ignore[arg-type]

    def _handle(self, event: ClickEvent) -> None:
        try:
            self.handler(event)
        except Exception:
            with self._lock:
                self.failed += 1
            log.exception("clicks.record_failed", extra={"link_id": str(event.link_id)})
        else:
            with self._lock:
                self.processed += 1
        finally:
            self._queue.task_done()
