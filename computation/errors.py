"""
Error taxonomy for the generation runner and its computation steps.

StoreIOError aborts the current generation attempt. ComputationStepError (and
its subclasses) abort the remaining steps; the done marker is never written.
Nothing here is retried internally: the next scheduled invocation re-derives
the same decision from store state.
"""


class ComputationError(Exception):
    """Base class for all errors raised by the computation core."""


class StoreIOError(ComputationError, OSError):
    """A store operation (list, stat, delete, write, ...) failed."""

    def __init__(self, message: str, key: str = ""):
        super().__init__(message)
        self.key = key


class GenerationPlanError(ComputationError):
    """The generation decision violated its wait-for/run invariant."""


class ComputationStepError(ComputationError):
    """A computation step failed for a generation."""

    def __init__(self, message: str, step_name: str = ""):
        super().__init__(message)
        self.step_name = step_name


class WorkerFailure(ComputationStepError):
    """A recommendation worker failed; sibling workers were stopped."""

    def __init__(self, message: str, worker_index: int = -1):
        super().__init__(message, step_name="recommend")
        self.worker_index = worker_index


class UserFilterError(ComputationStepError):
    """The user filter is enabled but its file is unreadable or malformed."""

    def __init__(self, message: str):
        super().__init__(message, step_name="recommend")

