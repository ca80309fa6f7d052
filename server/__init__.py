"""
Generation Runner Status Server

Usage: uvicorn server:app --port 8090
"""

from .app import app, create_app
from .state import AppState, get_state, set_state

__all__ = [
    "app",
    "create_app",
    "AppState",
    "get_state",
    "set_state",
]
