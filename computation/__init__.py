"""
Generation runner and batch recommendation core.

- config: ComputationConfig and loaders
- store/: Store protocol, LocalStore, InMemoryStore, key layout
- generations/: catalog, planning, upload monitor, run lock, lifecycle, stats
- stages/: scoring, top-N, user filter, recommend worker pool, model loading
- recommend_runner: the runner that loads a model and makes recommendations
"""

from computation.config import ComputationConfig, get_config, load_config, reload_config
from computation.errors import (
    ComputationError,
    ComputationStepError,
    GenerationPlanError,
    StoreIOError,
    UserFilterError,
    WorkerFailure,
)
from computation.models import GenerationRunnerState, RunOutcome, StepState, StepStatus

__all__ = [
    "ComputationConfig",
    "get_config",
    "load_config",
    "reload_config",
    "ComputationError",
    "ComputationStepError",
    "GenerationPlanError",
    "StoreIOError",
    "UserFilterError",
    "WorkerFailure",
    "GenerationRunnerState",
    "RunOutcome",
    "StepState",
    "StepStatus",
]
