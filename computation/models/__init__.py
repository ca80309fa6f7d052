"""Data models for generation runs and recommendation passes."""

from .factors import FactorMatrix, ModelFactors, Recommendation
from .plan import GenerationPlan
from .state import GenerationRunnerState, RunOutcome, StepState, StepStatus

__all__ = [
    "FactorMatrix",
    "ModelFactors",
    "Recommendation",
    "GenerationPlan",
    "GenerationRunnerState",
    "RunOutcome",
    "StepState",
    "StepStatus",
]
