"""Application state: the generation runner and the outcome of its last run."""

import logging
import threading
from typing import Optional

from computation.cli import build_runner
from computation.config import ComputationConfig, get_config
from computation.errors import ComputationError
from computation.generations import GenerationRunner
from computation.models import RunOutcome
from computation.scheduler import run_periodically

logger = logging.getLogger(__name__)


class AppState:
    """Global application state."""

    def __init__(self, config: ComputationConfig, runner: GenerationRunner):
        self.config = config
        self.runner = runner

        # Result of the last triggered run, or the run that stopped the scheduler
        self.last_outcome: Optional[RunOutcome] = None
        self.last_error: Optional[str] = None

        self._lock = threading.Lock()
        self._run_thread: Optional[threading.Thread] = None
        self._scheduler_thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @property
    def is_running(self) -> bool:
        thread = self._run_thread
        return self.runner.is_running or (thread is not None and thread.is_alive())

    def trigger_run(self) -> bool:
        """Start one lifecycle invocation in the background. False if one is already running."""
        with self._lock:
            if self.is_running:
                return False
            self._run_thread = threading.Thread(target=self._run_once, name="GenerationRun", daemon=True)
            self._run_thread.start()
        return True

    def wait_for_run(self, timeout: Optional[float] = None) -> None:
        thread = self._run_thread
        if thread is not None:
            thread.join(timeout)

    def _run_once(self) -> None:
        try:
            self.last_outcome = self.runner.call()
            self.last_error = None
        except ComputationError as e:
            logger.exception("Triggered run failed")
            self.last_outcome = None
            self.last_error = str(e)

    @property
    def scheduler_running(self) -> bool:
        thread = self._scheduler_thread
        return thread is not None and thread.is_alive()

    def start_scheduler(self) -> None:
        """Run generations every run_interval_seconds on a background thread."""
        if self.scheduler_running:
            return
        self._stop.clear()
        self._scheduler_thread = threading.Thread(
            target=self._schedule,
            name="GenerationScheduler",
            daemon=True,
        )
        self._scheduler_thread.start()

    def _schedule(self) -> None:
        outcome = run_periodically(self.runner, self.config.run_interval_seconds, self._stop)
        if outcome is RunOutcome.COMPLETED_AND_STOP:
            self.last_outcome = outcome
            self.last_error = None
            logger.info("Scheduler stopped after a run for specific users; API stays up")

    def stop_scheduler(self) -> None:
        self._stop.set()
        if self._scheduler_thread is not None:
            self._scheduler_thread.join()
            self._scheduler_thread = None


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config, build_runner(config))
    return _state


def set_state(state: Optional[AppState]) -> None:
    global _state
    _state = state
