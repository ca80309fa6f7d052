"""Generation lifecycle: catalog, planning, upload monitoring, locking, stats."""

from .catalog import GenerationCatalog, parse_generation_id
from .lifecycle import GenerationRunner
from .planner import next_generation_id, plan_generations
from .run_lock import NoopRunLock, RunLock, StoreMarkerRunLock
from .stats import StatsRecorder
from .steps import HasState, StepTracker
from .upload_monitor import UploadMonitor

__all__ = [
    "GenerationCatalog",
    "parse_generation_id",
    "GenerationRunner",
    "next_generation_id",
    "plan_generations",
    "NoopRunLock",
    "RunLock",
    "StoreMarkerRunLock",
    "StatsRecorder",
    "HasState",
    "StepTracker",
    "UploadMonitor",
]
