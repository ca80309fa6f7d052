"""
Generation planning — the decision table that drives each lifecycle cycle.

Given the live generation IDs (ascending) and the index of the newest done
generation, decide which generation to make (open for uploads), which to run,
and which to wait for before running. The plan is derived, never stored: the
same catalog state always yields the same plan.
"""

from typing import List, Optional

from computation.errors import GenerationPlanError
from computation.models import GenerationPlan
from computation.store.namespaces import MAX_GENERATION


def next_generation_id(generation_id: int) -> int:
    """Following generation ID, wrapping to 0 after MAX_GENERATION."""
    return 0 if generation_id == MAX_GENERATION else generation_id + 1


def plan_generations(generation_ids: List[int], last_done_index: Optional[int]) -> GenerationPlan:
    """
    Decide make / run / wait_for.

    - Newest generation done: make the next one.
    - Second-newest done: run the newest, make and wait for the one after it.
    - Older done: run the one after it, wait for the one after that.
    - None done and no generations: make generation 0.
    - None done and two or more: run the first, wait for the second.
    - None done and exactly one: run it, make and wait for the next.
    """
    count = len(generation_ids)
    if last_done_index is not None:
        if not 0 <= last_done_index < count:
            raise GenerationPlanError(f"Done index {last_done_index} out of range for {count} generations")
        last_done = generation_ids[last_done_index]
        if last_done_index == count - 1:
            plan = GenerationPlan(make=next_generation_id(last_done))
        elif last_done_index == count - 2:
            run = generation_ids[last_done_index + 1]
            make = next_generation_id(run)
            plan = GenerationPlan(make=make, run=run, wait_for=make)
        else:
            plan = GenerationPlan(
                run=generation_ids[last_done_index + 1],
                wait_for=generation_ids[last_done_index + 2],
            )
    elif count == 0:
        plan = GenerationPlan(make=0)
    elif count >= 2:
        plan = GenerationPlan(run=generation_ids[0], wait_for=generation_ids[1])
    else:
        run = generation_ids[0]
        make = next_generation_id(run)
        plan = GenerationPlan(make=make, run=run, wait_for=make)

    if (plan.wait_for is None) != (plan.run is None):
        raise GenerationPlanError(
            "There must either be both a generation to wait for and generation to run, or neither"
        )
    return plan
