"""Task schemas."""

from datetime import datetime

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from .subagent import CamelModel


class TaskRead(CamelModel):
    """Schema for reading a task."""

    id: str
    task_number: int | None = None
    title: str
    description: str | None = None
    status: str
    preferred_model: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class TaskListResponse(CamelModel):
    data: list[TaskRead]


class TaskResponse(CamelModel):
    data: TaskRead
