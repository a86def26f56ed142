"""Database access helpers."""

from .tasks import TaskStore

__all__ = ["TaskStore"]
