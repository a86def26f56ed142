"""Subagent schemas.

Responses use camelCase keys, the shape the dashboard consumes.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubagentStatus(str, Enum):
    """Execution status of a subagent attempt."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class RunningSubagent(CamelModel):
    """Entry of spawn-active.jsonl."""

    session_key: str | None = None
    session_label: str | None = None
    task_id: str | None = None
    task_number: int | None = None
    status: Literal[SubagentStatus.RUNNING] = SubagentStatus.RUNNING
    model: str | None = None
    started_at: str | None = None
    timeout_minutes: int | None = None


class QueuedSubagent(CamelModel):
    """Pending request from spawn-requests.json."""

    task_id: str | None = None
    task_number: int | None = None
    title: str | None = None
    status: Literal[SubagentStatus.QUEUED] = SubagentStatus.QUEUED
    model: str | None = None
    queued_at: str | None = None


class CompletedSubagent(CamelModel):
    """Deduplicated entry of results-cache.jsonl."""

    session_label: str
    task_id: str | None = None
    task_number: int | None = None
    status: Literal[SubagentStatus.COMPLETED] = SubagentStatus.COMPLETED
    outcome: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    duration_seconds: int | None = None


class RuntimeSubagents(CamelModel):
    """Classified runtime state."""

    running: list[RunningSubagent] = Field(default_factory=list)
    queued: list[QueuedSubagent] = Field(default_factory=list)
    completed: list[CompletedSubagent] = Field(default_factory=list)


class RetentionInfo(CamelModel):
    completed_retention_days: int
    activity_log_retention_days: int
    next_purge_at: str


class SubagentOverview(RuntimeSubagents):
    """Fleet-wide view returned by GET /openclaw/subagents."""

    retention: RetentionInfo


class SubagentOverviewResponse(CamelModel):
    data: SubagentOverview


class SubagentAttempt(CamelModel):
    """One execution attempt of a subagent on a task, merged across sources."""

    task_id: str | None = None
    task_number: int | None = None
    session_key: str | None = None
    session_label: str | None = None
    status: SubagentStatus = SubagentStatus.UNKNOWN
    model: str | None = None
    started_at: str | None = None
    queued_at: str | None = None
    completed_at: str | None = None
    outcome: str | None = None
    tokens_used: int | None = None
    duration_seconds: int | None = None
    source: Literal["runtime", "gateway"] = "runtime"


class TaskSubagentsMeta(CamelModel):
    """Status counts for UI badges."""

    total: int = 0
    running: int = 0
    completed: int = 0
    failed: int = 0
    queued: int = 0


class TaskSubagentsResponse(CamelModel):
    data: list[SubagentAttempt]
    meta: TaskSubagentsMeta
