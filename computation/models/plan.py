"""Generation plan: which generation to make, run and wait for in one cycle."""

from typing import NamedTuple, Optional


class GenerationPlan(NamedTuple):
    make: Optional[int] = None
    run: Optional[int] = None
    wait_for: Optional[int] = None

    def cancel_run(self) -> "GenerationPlan":
        """Drop run and wait_for, keeping make."""
        return GenerationPlan(make=self.make)
