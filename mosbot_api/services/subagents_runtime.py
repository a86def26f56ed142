"""Runtime subagent collector.

Classifies subagent executions recorded in the workspace runtime directory:

- ``spawn-active.jsonl``   running spawns
- ``spawn-requests.json``  spawn requests waiting in the queue
- ``results-cache.jsonl``  completed results, possibly repeated per session
- ``activity-log.jsonl``   orchestration events, used for start times

Task numbers are resolved from the database in one batched query.
"""

from __future__ import annotations

from dataclasses import dataclass
import posixpath
from typing import Any, Protocol

import structlog

from shared.clients.workspace import WorkspaceClient

from ..schemas import CompletedSubagent, QueuedSubagent, RunningSubagent, RuntimeSubagents
from .concurrency import run_concurrently
from .runtime_files import duration_seconds, read_json_lines, read_json_object

logger = structlog.get_logger()

SPAWN_ACTIVE_FILE = "spawn-active.jsonl"
SPAWN_REQUESTS_FILE = "spawn-requests.json"
RESULTS_CACHE_FILE = "results-cache.jsonl"
ACTIVITY_LOG_FILE = "activity-log.jsonl"

DEFAULT_RUNTIME_DIR = "/runtime/mosbot"

SPAWN_QUEUED = "SPAWN_QUEUED"
SPAWN_CATEGORY = "orchestration:spawn"
LEGACY_START_EVENTS = frozenset({"agent_start", "subagent_start"})


class TaskNumberLookup(Protocol):
    async def find_task_numbers(self, task_ids: set[str]) -> dict[str, int]: ...


@dataclass(frozen=True)
class SpawnEvent:
    """Normalized activity log entry marking the start of a subagent."""

    session_label: str
    task_id: str | None
    timestamp: str


def _str_or_none(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


# --- activity log adapters ---------------------------------------------------


def _spawn_event_from_categorized(entry: dict[str, Any]) -> SpawnEvent | None:
    """``{"category": "orchestration:spawn", "metadata": {"session_label": ...}, ...}``"""
    if entry.get("category") != SPAWN_CATEGORY:
        return None
    metadata = entry.get("metadata") if isinstance(entry.get("metadata"), dict) else {}
    label = _str_or_none(metadata.get("session_label")) or _str_or_none(entry.get("sessionLabel"))
    timestamp = _str_or_none(entry.get("timestamp"))
    if not label or not timestamp:
        return None
    task_id = _str_or_none(entry.get("task_id")) or _str_or_none(metadata.get("task_id"))
    return SpawnEvent(session_label=label, task_id=task_id, timestamp=timestamp)


def _spawn_event_from_legacy(entry: dict[str, Any]) -> SpawnEvent | None:
    """``{"sessionLabel": ..., "timestamp": ..., "event": "subagent_start"}``"""
    event = entry.get("event")
    if event is not None and event not in LEGACY_START_EVENTS:
        return None
    label = _str_or_none(entry.get("sessionLabel"))
    timestamp = _str_or_none(entry.get("timestamp"))
    if not label or not timestamp:
        return None
    task_id = _str_or_none(entry.get("taskId")) or _str_or_none(entry.get("task_id"))
    return SpawnEvent(session_label=label, task_id=task_id, timestamp=timestamp)


def to_spawn_event(entry: dict[str, Any]) -> SpawnEvent | None:
    """Normalize one activity log line; the ``category`` key selects the shape."""
    if "category" in entry:
        return _spawn_event_from_categorized(entry)
    return _spawn_event_from_legacy(entry)


def index_spawn_events(entries: list[dict[str, Any]]) -> dict[str, SpawnEvent]:
    """First spawn event per session label, in file order."""
    index: dict[str, SpawnEvent] = {}
    for entry in entries:
        event = to_spawn_event(entry)
        if event is not None and event.session_label not in index:
            index[event.session_label] = event
    return index


# --- runtime file parsing ------------------------------------------------------


def parse_running(entries: list[dict[str, Any]]) -> list[RunningSubagent]:
    return [
        RunningSubagent(
            session_key=_str_or_none(entry.get("sessionKey")),
            session_label=_str_or_none(entry.get("sessionLabel")),
            task_id=_str_or_none(entry.get("taskId")),
            model=_str_or_none(entry.get("model")),
            started_at=_str_or_none(entry.get("startedAt")),
            timeout_minutes=_int_or_none(entry.get("timeoutMinutes")),
        )
        for entry in entries
    ]


def parse_queued(spawn_requests: dict[str, Any]) -> list[QueuedSubagent]:
    """Requests still waiting to spawn.

    Entries without a status are treated as queued; any other status means
    the request has already been picked up.
    """
    requests = spawn_requests.get("requests")
    if not isinstance(requests, list):
        return []

    queued = []
    for request in requests:
        if not isinstance(request, dict):
            continue
        status = request.get("status")
        if status is not None and status != SPAWN_QUEUED:
            continue
        queued.append(
            QueuedSubagent(
                task_id=_str_or_none(request.get("taskId")),
                title=_str_or_none(request.get("title")),
                model=_str_or_none(request.get("model")),
                queued_at=_str_or_none(request.get("queuedAt")),
            )
        )
    return queued


def _cached_at(entry: dict[str, Any]) -> str:
    return _str_or_none(entry.get("cachedAt")) or _str_or_none(entry.get("timestamp")) or ""


def dedupe_results(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep the latest entry per session label.

    The entry with the greatest ``cachedAt`` replaces earlier ones entirely,
    ties keep the first one seen. ISO-8601 UTC strings of one format compare
    correctly as strings.
    """
    latest: dict[str, dict[str, Any]] = {}
    for entry in entries:
        label = _str_or_none(entry.get("sessionLabel"))
        if not label:
            logger.debug("results_cache_entry_without_label", task_id=entry.get("taskId"))
            continue
        existing = latest.get(label)
        if existing is None or _cached_at(entry) > _cached_at(existing):
            latest[label] = entry
    return list(latest.values())


def build_completed(
    entries: list[dict[str, Any]], spawn_events: dict[str, SpawnEvent]
) -> list[CompletedSubagent]:
    completed = []
    for entry in dedupe_results(entries):
        label = str(entry["sessionLabel"])
        completed_at = _str_or_none(entry.get("cachedAt")) or _str_or_none(entry.get("timestamp"))
        spawn = spawn_events.get(label)
        started_at = spawn.timestamp if spawn else None
        completed.append(
            CompletedSubagent(
                session_label=label,
                task_id=_str_or_none(entry.get("taskId")),
                outcome=_str_or_none(entry.get("outcome")),
                started_at=started_at,
                completed_at=completed_at,
                duration_seconds=duration_seconds(started_at, completed_at),
            )
        )
    return completed


# --- collection -------------------------------------------------------------


async def enrich_with_task_numbers(
    subagents: RuntimeSubagents, task_store: TaskNumberLookup
) -> RuntimeSubagents:
    """Fill ``task_number`` on every entry from one batched lookup."""
    entries = [*subagents.running, *subagents.queued, *subagents.completed]
    task_ids = {entry.task_id for entry in entries if entry.task_id}
    if not task_ids:
        return subagents

    numbers = await task_store.find_task_numbers(task_ids)
    for entry in entries:
        entry.task_number = numbers.get(entry.task_id) if entry.task_id else None
    return subagents


async def collect_runtime_subagents(
    workspace: WorkspaceClient,
    task_store: TaskNumberLookup,
    task_id: str | None = None,
    runtime_dir: str = DEFAULT_RUNTIME_DIR,
) -> RuntimeSubagents:
    """Read the runtime files and classify subagents into running, queued and completed.

    Args:
        workspace: Workspace file service client.
        task_store: Task number lookup.
        task_id: Only keep entries of this task.
        runtime_dir: Workspace directory holding the runtime files.

    Raises:
        WorkspaceServiceError: The workspace service is not configured or unreachable.
    """

    def path(name: str) -> str:
        return posixpath.join(runtime_dir, name)

    active_entries, spawn_requests, result_entries, activity_entries = await run_concurrently(
        read_json_lines(workspace, path(SPAWN_ACTIVE_FILE)),
        read_json_object(workspace, path(SPAWN_REQUESTS_FILE)),
        read_json_lines(workspace, path(RESULTS_CACHE_FILE)),
        read_json_lines(workspace, path(ACTIVITY_LOG_FILE)),
    )

    running = parse_running(active_entries)
    queued = parse_queued(spawn_requests)
    completed = build_completed(result_entries, index_spawn_events(activity_entries))

    if task_id:
        running = [r for r in running if r.task_id == task_id]
        queued = [q for q in queued if q.task_id == task_id]
        completed = [c for c in completed if c.task_id == task_id]

    logger.debug(
        "runtime_subagents_collected",
        task_id=task_id,
        running=len(running),
        queued=len(queued),
        completed=len(completed),
    )

    subagents = RuntimeSubagents(running=running, queued=queued, completed=completed)
    return await enrich_with_task_numbers(subagents, task_store)
