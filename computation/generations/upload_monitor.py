"""
Upload monitor — decides when a generation's inbound data has settled.

A generation may run once the *next* generation's inbound area is old enough
(uploads have moved on) and nothing is still being written into its own
inbound area. The store has no change notifications, so both checks poll.

In-progress markers (".inprogress" for our uploads, "_COPYING_" for Hadoop
copies) count as live transfers until they are older than
STALE_MULTIPLIER x wait; after that they are orphaned and deleted.
"""

import logging
import time
from typing import Callable, Optional

from computation.errors import StoreIOError
from computation.store import Store
from computation.store import namespaces

logger = logging.getLogger(__name__)

# Default time the next generation's inbound area must be idle.
GENERATION_WAIT_SECONDS = 4 * 60

# Sleep between checks while an upload is in progress.
UPLOAD_POLL_SECONDS = 60

# Markers older than STALE_MULTIPLIER * wait are treated as abandoned.
STALE_MULTIPLIER = 3

IN_PROGRESS_SUFFIXES = (".inprogress", "_COPYING_")


class UploadMonitor:
    """Polls the store for upload activity in generation inbound areas."""

    def __init__(
        self,
        store: Store,
        instance_dir: str,
        wait_seconds: float = GENERATION_WAIT_SECONDS,
        poll_seconds: float = UPLOAD_POLL_SECONDS,
        skip_wait: bool = False,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.instance_dir = instance_dir
        self.wait_seconds = wait_seconds
        self.poll_seconds = poll_seconds
        self.skip_wait = skip_wait
        self._clock = clock
        self._sleep = sleep

    def is_generation_old_enough(self, inbound: str) -> bool:
        """True if inbound was last modified more than wait_seconds ago."""
        return self._clock() > self.store.last_modified(inbound) + self.wait_seconds

    def is_upload_in_progress(self, inbound: str) -> bool:
        """
        True if any object under inbound looks like a live upload.

        Stale markers are deleted as a side effect; failure to delete one is
        logged and otherwise ignored.
        """
        now = self._clock()
        for key in self.store.list(inbound, recursive=True):
            modified = self.store.last_modified(key)
            if key.endswith(IN_PROGRESS_SUFFIXES):
                if modified > now - STALE_MULTIPLIER * self.wait_seconds:
                    logger.info("At least one upload is in progress (%s)", key)
                    return True
                logger.warning("Stale upload to %s? Deleting and continuing", key)
                try:
                    self.store.delete(key)
                except StoreIOError as e:
                    logger.info("Could not delete %s: %s", key, e)
            elif modified > now - self.wait_seconds:
                # Side-loaded data files count only while very recent
                logger.info("At least one upload is in progress (%s)", key)
                return True
        return False

    def wait_to_run(self, wait_for: Optional[int], run: Optional[int]) -> None:
        """Block until generation `run` may execute, unless skip_wait is set."""
        if wait_for is None or run is None:
            logger.info("No need to wait for a generation")
            return

        if run == 0:
            logger.info("Generation 0 may run immediately")
        else:
            next_inbound = namespaces.inbound_prefix(self.instance_dir, wait_for)
            if self.is_generation_old_enough(next_inbound):
                logger.info("Generation %s is old enough to proceed", wait_for)
            elif self.skip_wait:
                logger.info("Skipping waiting for uploads to start")
            else:
                to_sleep = self.store.last_modified(next_inbound) + self.wait_seconds - self._clock()
                logger.info(
                    "Waiting %ds for data to start uploading to generation %s and then move to %s...",
                    int(to_sleep), run, wait_for,
                )
                self._sleep(to_sleep)

        uploading = namespaces.inbound_prefix(self.instance_dir, run)
        if self.skip_wait:
            logger.info("Skipping waiting for uploads to finish")
            return
        while self.is_upload_in_progress(uploading):
            logger.info("Waiting for uploads to finish in %s", uploading)
            self._sleep(self.poll_seconds)
