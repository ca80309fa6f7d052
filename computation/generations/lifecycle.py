"""
Generation lifecycle — one cycle of make / wait / run for an instance.

GenerationRunner recomputes its plan from the store on every call():

1. List generations, delete the oldest beyond the retention limit.
2. Find the newest done generation and plan make / run / wait_for.
3. Cancel an empty run, open the generation to make, wait for uploads.
4. Run the subclass's steps, then mark done, drop tmp/, record stats.

Nothing is marked done until every step has returned, so a failed generation
stays open and the next call() retries it from the same store state.
"""

import abc
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from computation.config import ComputationConfig
from computation.errors import ComputationStepError, StoreIOError
from computation.models import GenerationPlan, GenerationRunnerState, RunOutcome, StepState
from computation.store import Store
from computation.store import namespaces

from .catalog import GenerationCatalog, parse_generation_id
from .planner import plan_generations
from .run_lock import NoopRunLock, RunLock
from .stats import StatsRecorder
from .steps import HasState
from .upload_monitor import UploadMonitor

logger = logging.getLogger(__name__)


class GenerationRunner(abc.ABC):
    """Base class for runners; subclasses supply run_steps()."""

    def __init__(
        self,
        config: ComputationConfig,
        store: Store,
        run_lock: Optional[RunLock] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.store = store
        self.instance_dir = config.instance_dir
        self.run_lock = run_lock or NoopRunLock()
        self.catalog = GenerationCatalog(store, self.instance_dir)
        self.monitor = UploadMonitor(
            store,
            self.instance_dir,
            wait_seconds=config.generation_wait_seconds,
            poll_seconds=config.upload_poll_seconds,
            skip_wait=config.skip_wait,
            clock=clock,
            sleep=sleep,
        )
        self.stats_recorder = StatsRecorder(store, self.instance_dir)
        self._exclusive = threading.Lock()
        self._state_sources: List[HasState] = []
        self._generation_id = -1
        self._last_generation_id = -1
        self._running = False
        self._start_time: Optional[datetime] = None
        self._end_time: Optional[datetime] = None
        self.start_size = 0
        self.end_size = 0

    @property
    def generation_id(self) -> int:
        return self._generation_id

    @property
    def last_generation_id(self) -> int:
        return self._last_generation_id

    @property
    def is_running(self) -> bool:
        return self._running

    def generation_prefix(self) -> str:
        return namespaces.generation_prefix(self.instance_dir, self._generation_id)

    def add_state_source(self, source: HasState) -> None:
        self._state_sources.append(source)

    def get_state(self) -> Optional[GenerationRunnerState]:
        """Current state, or None before any generation has been run. Never blocks."""
        if self._generation_id < 0:
            return None
        step_states: List[StepState] = []
        for source in list(self._state_sources):
            step_states.extend(source.get_step_states())
        return GenerationRunnerState(
            generation_id=self._generation_id,
            last_generation_id=self._last_generation_id,
            step_states=step_states,
            running=self._running,
            start_time=self._start_time,
            end_time=self._end_time,
        )

    def call(self) -> RunOutcome:
        """Overall entry point: take the run lock and run one generation cycle."""
        with self._exclusive:
            self._running = True
            self._start_time = datetime.now(timezone.utc)
            self._end_time = None
            try:
                # Checked before the run lock, which may create the instance root
                instance_exists = self.catalog.instance_exists()
                with self.run_lock.acquire(self.instance_dir):
                    logger.info("Starting run for instance %s", self.instance_dir)
                    return self._run_generation(instance_exists)
            finally:
                self._running = False
                self._end_time = datetime.now(timezone.utc)

    def plan(self) -> GenerationPlan:
        """Apply retention and derive this cycle's plan from the catalog."""
        generations = self.catalog.list_generations()
        generations = self.catalog.enforce_retention(generations, self.config.generations_keep)
        last_done = self.catalog.find_last_done(generations)
        if last_done is None:
            logger.info("No complete generations")
            self._last_generation_id = -1
            last_done_index = None
        else:
            logger.info("Last complete generation is %s", last_done[0])
            self._last_generation_id, last_done_index = last_done
        ids = [parse_generation_id(g) for g in generations]
        return plan_generations(ids, last_done_index)

    def _run_generation(self, instance_exists: bool = True) -> RunOutcome:
        plan = self.plan()

        if plan.run is not None and not self.catalog.has_input(plan.run):
            logger.info("No data in generation %s, so not running", plan.run)
            plan = GenerationPlan()

        if plan.make is None:
            logger.info("No need to make a new generation")
        else:
            logger.info("Making new generation %s", plan.make)
            self.catalog.make_generation(plan.make, instance_exists=instance_exists)

        self.monitor.wait_to_run(plan.wait_for, plan.run)

        # Check again: maybe an upload was in progress but failed
        if plan.run is not None and not self.catalog.has_input(plan.run):
            logger.info("No data in generation %s, so not running", plan.run)
            plan = plan.cancel_run()

        if plan.run is None:
            logger.info("No generation to run")
            return RunOutcome.IDLE

        self._execute(plan.run)
        if self.config.stop_after_run:
            logger.info("Run for specific users complete; requesting stop")
            return RunOutcome.COMPLETED_AND_STOP
        return RunOutcome.COMPLETED

    def _execute(self, generation_id: int) -> None:
        self._generation_id = generation_id
        logger.info("Running generation %s", generation_id)
        prefix = self.generation_prefix()
        self.start_size = self.store.size_recursive(prefix)
        self._store_config()
        try:
            self.run_steps()
        except (ComputationStepError, StoreIOError):
            raise
        except Exception as e:
            raise ComputationStepError(f"Generation {generation_id} failed: {e}") from e

        logger.info("Signaling completion of generation %s", generation_id)
        self.store.touch(namespaces.done_key(self.instance_dir, generation_id))
        self.store.recursive_delete(namespaces.temp_prefix(self.instance_dir, generation_id))
        self.end_size = self.store.size_recursive(prefix)
        self.stats_recorder.record(generation_id, self.start_size, self.end_size, self.collect_stats())
        logger.info("Generation %s complete", generation_id)

    def _store_config(self) -> None:
        key = namespaces.config_key(self.instance_dir, self._generation_id)
        with self.store.stream_to(key) as out:
            out.write(self.config.render_concise().encode("utf-8"))

    @abc.abstractmethod
    def run_steps(self) -> None:
        """Run the ordered computation steps for generation_id."""

    def collect_stats(self) -> Optional[Mapping[str, Any]]:
        """Override to add metrics to stats.json."""
        return None
