"""
Run lock: keeps two lifecycle invocations off the same instance.

The lifecycle only needs one capability: acquire(instance_dir) returning a
context manager held for the whole generation attempt. Backends:
- NoopRunLock: single scheduler per instance (local runs, tests)
- StoreMarkerRunLock: a marker object in the shared store, by convention

The store marker is re-touched by a heartbeat thread while held, so only a
marker whose owner has died goes stale.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol

from computation.errors import StoreIOError
from computation.store import Store
from computation.store import namespaces

logger = logging.getLogger(__name__)

# A running marker untouched for this long belongs to a dead process.
RUNNING_MARKER_STALE_SECONDS = 6 * 60 * 60


class RunLock(Protocol):
    """Protocol for the "no other job is running on this instance" capability."""

    def acquire(self, instance_dir: str) -> ContextManager[None]:
        """Block until this process may run the instance; release on exit."""
        ...


class NoopRunLock:
    """Run lock that always succeeds immediately."""

    @contextmanager
    def acquire(self, instance_dir: str) -> Iterator[None]:
        yield


class StoreMarkerRunLock:
    """
    Run lock based on an <instance>/.running marker in the store.

    Waits while a fresh marker exists; a marker older than stale_seconds is
    taken over. While held, the marker is touched every refresh_seconds
    (default a quarter of stale_seconds). Not atomic: two processes polling at the same moment can both
    proceed, so deployments still schedule one runner per instance.
    """

    def __init__(
        self,
        store: Store,
        stale_seconds: float = RUNNING_MARKER_STALE_SECONDS,
        poll_seconds: float = 60.0,
        refresh_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.stale_seconds = stale_seconds
        self.poll_seconds = poll_seconds
        self.refresh_seconds = refresh_seconds if refresh_seconds is not None else stale_seconds / 4
        self._clock = clock
        self._sleep = sleep

    @contextmanager
    def acquire(self, instance_dir: str) -> Iterator[None]:
        key = namespaces.running_key(instance_dir)
        while self.store.exists(key):
            age = self._clock() - self.store.last_modified(key)
            if age > self.stale_seconds:
                logger.warning("Taking over stale run marker %s (%ds old)", key, int(age))
                break
            logger.info("Another job is running on %s; waiting", instance_dir)
            self._sleep(self.poll_seconds)
        self.store.touch(key)
        done = threading.Event()
        heartbeat = threading.Thread(
            target=self._refresh, args=(key, done), name="RunMarkerRefresh", daemon=True
        )
        heartbeat.start()
        try:
            yield
        finally:
            done.set()
            heartbeat.join()
            self.store.delete(key)

    def _refresh(self, key: str, done: threading.Event) -> None:
        while not done.wait(self.refresh_seconds):
            try:
                self.store.touch(key)
            except StoreIOError as e:
                logger.warning("Could not refresh run marker %s: %s", key, e)
