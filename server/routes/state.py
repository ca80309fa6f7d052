"""Runner state and manual run endpoints."""

from fastapi import APIRouter, HTTPException

from ..state import get_state

router = APIRouter()


@router.get("/state")
def get_runner_state():
    """Current generation, step states and the last triggered outcome."""
    state = get_state()
    runner_state = state.runner.get_state()
    return {
        "instance": state.config.instance_dir,
        "running": state.is_running,
        "scheduler_running": state.scheduler_running,
        "last_outcome": state.last_outcome.value if state.last_outcome else None,
        "last_error": state.last_error,
        "state": runner_state.model_dump(mode="json") if runner_state else None,
    }


@router.post("/run", status_code=202)
def trigger_run():
    """Start one lifecycle invocation in the background."""
    state = get_state()
    if not state.trigger_run():
        raise HTTPException(status_code=409, detail="A generation run is already in progress")
    return {"started": True, "instance": state.config.instance_dir}
