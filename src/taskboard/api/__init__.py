"""HTTP API for Taskboard."""

from taskboard.api.routes import router

__all__ = ["router"]
