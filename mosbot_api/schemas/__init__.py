"""Response schemas."""

from .subagent import (
    CompletedSubagent,
    QueuedSubagent,
    RetentionInfo,
    RunningSubagent,
    RuntimeSubagents,
    SubagentAttempt,
    SubagentOverview,
    SubagentOverviewResponse,
    SubagentStatus,
    TaskSubagentsMeta,
    TaskSubagentsResponse,
)
from .task import TaskListResponse, TaskRead, TaskResponse

__all__ = [
    "CompletedSubagent",
    "QueuedSubagent",
    "RetentionInfo",
    "RunningSubagent",
    "RuntimeSubagents",
    "SubagentAttempt",
    "SubagentOverview",
    "SubagentOverviewResponse",
    "SubagentStatus",
    "TaskListResponse",
    "TaskRead",
    "TaskResponse",
    "TaskSubagentsMeta",
    "TaskSubagentsResponse",
]
