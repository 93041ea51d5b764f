"""
Snapshot Channel - Single-slot latest-value channel.

``publish`` replaces the latest snapshot and resolves every waiter that was
registered before the publish. A waiter registered afterwards is bound to
the *next* publish, never to one that already happened.
"""

from concurrent.futures import Future
from typing import List, Optional
import logging
import threading

from resight.layers.sense.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotChannel:
    """
    Example:
        >>> channel = SnapshotChannel()
        >>> future = channel.wait_for_next()
        >>> channel.publish(snapshot)
        >>> future.result() is snapshot
        True
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Optional[Snapshot] = None
        self._waiters: List[Future] = []
        self._error: Optional[BaseException] = None

    @property
    def latest(self) -> Optional[Snapshot]:
        with self._lock:
            return self._latest

    def publish(self, snapshot: Snapshot) -> bool:
        """
        Publish a snapshot.

        Returns:
            False if ``snapshot`` is not newer than the current latest value
            (it is dropped and no waiter is resolved)
        """
        with self._lock:
            if self._latest is not None and snapshot.version <= self._latest.version:
                logger.debug(
                    f"[Channel] Dropping v{snapshot.version}, latest is v{self._latest.version}"
                )
                return False
            self._latest = snapshot
            waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(snapshot)
        return True

    def wait_for_next(self) -> "Future[Snapshot]":
        """Register a waiter for the next publish."""
        future: Future = Future()
        with self._lock:
            if self._error is not None:
                future.set_exception(self._error)
                return future
            self._waiters.append(future)
        return future

    def fail(self, error: BaseException) -> None:
        """Fail all current and future waiters (the surface is gone)."""
        with self._lock:
            self._error = error
            waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._waiters)
