"""Read access to the tasks table."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from shared.models import Task

logger = structlog.get_logger()


class TaskStore:
    """Task lookups used by the subagent views."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup_task(self, task_id: str) -> tuple[str, int | None] | None:
        """``(id, task_number)`` of the task, or None when it does not exist."""
        result = await self.db.execute(
            select(Task.id, Task.task_number).where(Task.id == task_id)
        )
        row = result.one_or_none()
        return (row.id, row.task_number) if row is not None else None

    async def find_task_numbers(self, task_ids: Iterable[str]) -> dict[str, int]:
        """Map task ids to task numbers in a single query.

        Ids without a row (or without a number) are absent from the result.
        """
        ids = sorted({task_id for task_id in task_ids if task_id})
        if not ids:
            return {}

        result = await self.db.execute(select(Task.id, Task.task_number).where(Task.id.in_(ids)))
        numbers = {row.id: row.task_number for row in result if row.task_number is not None}
        logger.debug("task_numbers_resolved", requested=len(ids), found=len(numbers))
        return numbers

    async def get_task(self, task_id: str) -> Task | None:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        """List tasks, newest first."""
        query = select(Task)
        if status:
            query = query.where(Task.status == status)
        query = query.order_by(Task.created_at.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())
