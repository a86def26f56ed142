"""Fleet-wide subagent status with retention metadata."""

from datetime import UTC, datetime, timedelta, timezone

from shared.clients.workspace import WorkspaceClient

from ..config import Settings
from ..schemas import RetentionInfo, SubagentOverview
from .subagents_runtime import TaskNumberLookup, collect_runtime_subagents

DEFAULT_PURGE_HOUR = 3
DEFAULT_PURGE_UTC_OFFSET_HOURS = 8  # Asia/Singapore, no DST


def format_utc(moment: datetime) -> str:
    """``2026-02-10T19:00:00.000Z``"""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_purge_at(
    now: datetime | None = None,
    purge_hour: int = DEFAULT_PURGE_HOUR,
    utc_offset_hours: int = DEFAULT_PURGE_UTC_OFFSET_HOURS,
) -> datetime:
    """Next daily purge instant, in UTC.

    The purge runs at ``purge_hour``:00 in a timezone with a constant offset.
    At exactly the purge instant the next day's run is returned.
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    local_tz = timezone(timedelta(hours=utc_offset_hours))
    local_now = now.astimezone(local_tz)
    today_purge = local_now.replace(hour=purge_hour, minute=0, second=0, microsecond=0)
    if local_now >= today_purge:
        today_purge += timedelta(hours=24)
    return today_purge.astimezone(UTC)


def retention_info(settings: Settings, now: datetime | None = None) -> RetentionInfo:
    return RetentionInfo(
        completed_retention_days=settings.subagent_retention_days,
        activity_log_retention_days=settings.activity_log_retention_days,
        next_purge_at=format_utc(
            next_purge_at(
                now,
                purge_hour=settings.purge_hour,
                utc_offset_hours=settings.purge_utc_offset_hours,
            )
        ),
    )


async def get_subagent_overview(
    workspace: WorkspaceClient,
    task_store: TaskNumberLookup,
    settings: Settings,
    now: datetime | None = None,
) -> SubagentOverview:
    """Running, queued and completed subagents across all tasks.

    Raises:
        WorkspaceServiceError: The workspace service is not configured or unreachable.
    """
    runtime = await collect_runtime_subagents(
        workspace, task_store, runtime_dir=settings.runtime_dir
    )
    return SubagentOverview(
        running=runtime.running,
        queued=runtime.queued,
        completed=runtime.completed,
        retention=retention_info(settings, now),
    )
