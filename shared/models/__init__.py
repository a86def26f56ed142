"""Database models package."""

from .base import Base
from .task import Task, TaskStatus

__all__ = [
    "Base",
    "Task",
    "TaskStatus",
]
