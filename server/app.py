"""
Generation runner status API — FastAPI app factory.

Use: uvicorn server.app:app
Or:  python -m computation serve
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import register_routes
from .state import AppState, set_state


def create_app(state: Optional[AppState] = None) -> FastAPI:
    """Build FastAPI app with CORS and routes. state replaces the global AppState when given."""
    if state is not None:
        set_state(state)
    app = FastAPI(
        title="Generation Runner API",
        description="Status and manual triggering of generation runs",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app


app = create_app()
