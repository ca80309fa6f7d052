"""Root and health endpoints."""

from fastapi import APIRouter

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Generation Runner API",
        "version": "1.0.0",
        "instance": state.config.instance_dir,
        "running": state.is_running,
        "endpoints": {
            "state": ["/api/state"],
            "run": ["/api/run"],
            "health": ["/api/health"],
        },
    }


@router.get("/api/health")
def health():
    return {"status": "healthy"}
