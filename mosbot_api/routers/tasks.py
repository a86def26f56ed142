"""Tasks router."""

from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from shared.clients import GatewayClient, WorkspaceClient

from ..config import Settings, get_settings
from ..dependencies import (
    CurrentUser,
    get_current_user,
    get_gateway_client,
    get_task_store,
    get_workspace_client,
)
from ..repositories import TaskStore
from ..schemas import TaskListResponse, TaskRead, TaskResponse, TaskSubagentsResponse
from ..services.task_subagents import TaskNotFoundError, get_task_subagents

logger = structlog.get_logger()

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status: str | None = None,
    user: CurrentUser = Depends(get_current_user),
    task_store: TaskStore = Depends(get_task_store),
) -> TaskListResponse:
    """List tasks, newest first, optionally filtered by status."""
    tasks = await task_store.list_tasks(status=status)
    return TaskListResponse(data=[TaskRead.model_validate(t) for t in tasks])


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    task_store: TaskStore = Depends(get_task_store),
) -> TaskResponse:
    """Get task by ID."""
    task = await task_store.get_task(task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return TaskResponse(data=TaskRead.model_validate(task))


@router.get("/{task_id}/subagents", response_model=TaskSubagentsResponse)
async def list_task_subagents(
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    task_store: TaskStore = Depends(get_task_store),
    workspace: WorkspaceClient = Depends(get_workspace_client),
    gateway: GatewayClient | None = Depends(get_gateway_client),
    settings: Settings = Depends(get_settings),
) -> TaskSubagentsResponse:
    """Subagent attempts of one task, merged from runtime files and gateway sessions."""
    try:
        result = await get_task_subagents(
            task_id,
            task_store,
            workspace,
            gateway,
            runtime_dir=settings.runtime_dir,
        )
    except TaskNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        ) from e

    logger.info(
        "task_subagents_listed",
        task_id=task_id,
        total=result.meta.total,
        running=result.meta.running,
        failed=result.meta.failed,
    )

    return result
