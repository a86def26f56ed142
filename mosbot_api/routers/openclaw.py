"""OpenClaw runtime router."""

from fastapi import APIRouter, Depends
import structlog

from shared.clients import WorkspaceClient

from ..config import Settings, get_settings
from ..dependencies import CurrentUser, get_current_user, get_task_store, get_workspace_client
from ..repositories import TaskStore
from ..schemas import SubagentOverviewResponse
from ..services.subagent_status import get_subagent_overview

logger = structlog.get_logger()

router = APIRouter(prefix="/openclaw", tags=["openclaw"])


@router.get("/subagents", response_model=SubagentOverviewResponse)
async def list_subagents(
    user: CurrentUser = Depends(get_current_user),
    task_store: TaskStore = Depends(get_task_store),
    workspace: WorkspaceClient = Depends(get_workspace_client),
    settings: Settings = Depends(get_settings),
) -> SubagentOverviewResponse:
    """Running, queued and completed subagents across all tasks."""
    overview = await get_subagent_overview(workspace, task_store, settings)

    logger.info(
        "subagents_listed",
        running=len(overview.running),
        queued=len(overview.queued),
        completed=len(overview.completed),
    )

    return SubagentOverviewResponse(data=overview)
