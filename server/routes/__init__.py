"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .state import router as state_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(state_router, prefix="/api", tags=["state"])
