"""
Periodic scheduler.

Each cycle is independent: a failed generation is logged and retried on the
next cycle from whatever the store then holds.
"""

import logging
import threading
from typing import Optional

from computation.errors import ComputationError
from computation.generations import GenerationRunner
from computation.models import RunOutcome

logger = logging.getLogger(__name__)


def run_periodically(
    runner: GenerationRunner,
    interval_seconds: float,
    stop: Optional[threading.Event] = None,
) -> Optional[RunOutcome]:
    """
    Call runner every interval_seconds.

    Returns COMPLETED_AND_STOP when a run asks the process to stop, or None
    when stop is set from outside.
    """
    stop = stop or threading.Event()
    while not stop.is_set():
        try:
            outcome = runner.call()
        except ComputationError:
            logger.exception("Generation run failed; will retry")
        else:
            if outcome is RunOutcome.COMPLETED_AND_STOP:
                return outcome
        stop.wait(interval_seconds)
    return None
