"""Task model - the durable record subagents work on."""

from enum import Enum

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TaskStatus(str, Enum):
    """Board column of a task."""

    PLANNING = "PLANNING"
    TO_DO = "TO DO"
    IN_PROGRESS = "IN PROGRESS"
    IN_REVIEW = "IN REVIEW"
    DONE = "DONE"
    ARCHIVE = "ARCHIVE"


class Task(Base):
    """Task model.

    Subagent runtime files reference tasks by ``id``; dashboards show the
    human readable ``task_number`` instead.
    """

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    task_number: Mapped[int | None] = mapped_column(Integer, unique=True, nullable=True)
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default=TaskStatus.PLANNING.value, index=True)
    preferred_model: Mapped[str | None] = mapped_column(String(255), nullable=True)
