"""API routers for all endpoints."""

from opsmetrics.routers import analysis, exports, views

__all__ = [
    "analysis",
    "views",
    "exports",
]
