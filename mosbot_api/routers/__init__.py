"""Routers package."""

from . import health, openclaw, tasks

__all__ = [
    "health",
    "openclaw",
    "tasks",
]
