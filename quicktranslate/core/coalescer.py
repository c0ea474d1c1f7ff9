"""
In-flight request deduplication.

While a request for a fingerprint is running, every other submit for the same
fingerprint attaches to it instead of starting a new network call. Entries
live only for the duration of the call: this is deduplication, not caching.
"""

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


class _InFlightEntry:
    """Shared pending outcome for one fingerprint"""

    __slots__ = ("fingerprint", "task", "waiters")

    def __init__(self, fingerprint: str, task: asyncio.Future):
        self.fingerprint = fingerprint
        self.task = task
        self.waiters = 0


class RequestCoalescer:
    """Ensures at most one in-flight producer call per fingerprint.

    Each caller gets its own handle. Cancelling a handle detaches that caller
    only; the underlying call is abandoned once its last caller detaches.
    """

    def __init__(self):
        self._in_flight: Dict[str, _InFlightEntry] = {}
        # Lookup and registration happen under one lock with no suspension
        # point in between, so concurrent first submits start one producer.
        self._lock = threading.Lock()

    def submit(self, fingerprint: str, producer: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """
        Get a handle on the outcome of the request identified by `fingerprint`.

        Args:
            fingerprint: Request key
            producer: Zero-argument callable returning the awaitable that
                performs the request. Only called if nothing is in flight.

        Returns:
            Task resolving with the producer's result or raising its error
        """
        with self._lock:
            entry = self._in_flight.get(fingerprint)
            if entry is None:
                task = asyncio.ensure_future(producer())
                entry = _InFlightEntry(fingerprint, task)
                self._in_flight[fingerprint] = entry
                task.add_done_callback(lambda t, e=entry: self._settle(e))
                logger.debug(f"Started request {fingerprint[:12]}")
            else:
                logger.debug(f"Attached to in-flight request {fingerprint[:12]}")
            entry.waiters += 1

        handle = asyncio.ensure_future(self._wait(entry))
        handle.add_done_callback(lambda h, e=entry: self._release(e))
        return handle

    async def _wait(self, entry: _InFlightEntry) -> Any:
        return await asyncio.shield(entry.task)

    def _settle(self, entry: _InFlightEntry) -> None:
        with self._lock:
            if self._in_flight.get(entry.fingerprint) is entry:
                del self._in_flight[entry.fingerprint]
        if not entry.task.cancelled():
            # Mark the outcome as retrieved even if every caller detached
            entry.task.exception()

    def _release(self, entry: _InFlightEntry) -> None:
        with self._lock:
            entry.waiters -= 1
            if entry.waiters > 0 or entry.task.done():
                return
            # Nobody is waiting any more: later submits must start fresh
            # rather than attach to a call that is being abandoned.
            if self._in_flight.get(entry.fingerprint) is entry:
                del self._in_flight[entry.fingerprint]
        logger.debug(f"Abandoning request {entry.fingerprint[:12]}, no callers left")
        entry.task.cancel()

    def is_in_flight(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._in_flight

    @property
    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)
