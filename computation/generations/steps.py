"""
Step tracking.

Runners register StepTracker instances as state sources; get_state() gathers
their step states while the steps run on another thread.
"""

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Protocol, Sequence

from computation.models import StepState, StepStatus


class HasState(Protocol):
    def get_step_states(self) -> List[StepState]:
        ...


class StepTracker:
    """Holds the StepState of each named step, in order."""

    def __init__(self, names: Sequence[str] = ()):
        self._lock = threading.Lock()
        self._states: Dict[str, StepState] = {name: StepState(name=name) for name in names}

    def get_step_states(self) -> List[StepState]:
        with self._lock:
            return [s.model_copy() for s in self._states.values()]

    def reset(self) -> None:
        with self._lock:
            self._states = {name: StepState(name=name) for name in self._states}

    def set_progress(self, name: str, progress: float) -> None:
        with self._lock:
            state = self._states[name]
            state.progress = min(max(progress, 0.0), 1.0)

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        """Mark name RUNNING for the body, then COMPLETED or FAILED."""
        with self._lock:
            state = self._states.setdefault(name, StepState(name=name))
            state.status = StepStatus.RUNNING
            state.start_time = datetime.now(timezone.utc)
            state.end_time = None
        try:
            yield
        except BaseException:
            with self._lock:
                state.status = StepStatus.FAILED
                state.end_time = datetime.now(timezone.utc)
            raise
        with self._lock:
            state.status = StepStatus.COMPLETED
            state.progress = 1.0
            state.end_time = datetime.now(timezone.utc)
