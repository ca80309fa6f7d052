"""
Runner state model — what an observer sees of a generation run.

GenerationRunnerState is assembled on demand from the runner's fields and the
step states of its state sources; it is never persisted.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class StepStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StepState(BaseModel):
    """Observable state of one computation step."""

    name: str
    status: StepStatus = StepStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    progress: float = Field(default=0.0, ge=0.0, le=1.0)


class GenerationRunnerState(BaseModel):
    """Snapshot of a runner: current and last completed generation, steps, timing."""

    generation_id: int
    last_generation_id: int = -1
    step_states: List[StepState] = Field(default_factory=list)
    running: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class RunOutcome(str, Enum):
    """Result of one lifecycle invocation, returned to the caller."""

    # Nothing was executed this cycle (only make/wait/cleanup, or nothing at all).
    IDLE = "IDLE"
    # A generation ran to completion; keep scheduling.
    COMPLETED = "COMPLETED"
    # A generation ran to completion and configuration asks the process to stop.
    COMPLETED_AND_STOP = "COMPLETED_AND_STOP"
