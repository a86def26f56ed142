"""Subagent attempts of a single task.

Runtime files are the source of truth for execution state. Gateway sessions
only add what the runtime records do not know (model, tokens, outcome) and
contribute attempts the runtime files have no trace of, such as aborted runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

import structlog

from shared.clients.gateway import GatewayClient, GatewayError, GatewaySession
from shared.clients.workspace import WorkspaceClient

from ..schemas import (
    RuntimeSubagents,
    SubagentAttempt,
    SubagentStatus,
    TaskSubagentsMeta,
    TaskSubagentsResponse,
)
from .concurrency import run_concurrently
from .runtime_files import parse_timestamp
from .subagents_runtime import DEFAULT_RUNTIME_DIR, collect_runtime_subagents

logger = structlog.get_logger()

GATEWAY_LOOKBACK_MINUTES = 24 * 60
GATEWAY_SESSION_KIND = "other"
GATEWAY_SESSION_LIMIT = 200
HISTORY_MESSAGE_LIMIT = 20
SESSION_LABEL_PREFIX = "mosbot-task-"


class TaskNotFoundError(Exception):
    """The requested task does not exist."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class TaskLookup(Protocol):
    async def lookup_task(self, task_id: str) -> tuple[str, int | None] | None: ...


@dataclass(frozen=True)
class KnownTaskNumbers:
    """Task numbers already resolved, served without another query."""

    numbers: dict[str, int]

    async def find_task_numbers(self, task_ids: set[str]) -> dict[str, int]:
        return {t: self.numbers[t] for t in task_ids if t in self.numbers}


# --- identity ---------------------------------------------------------------


@dataclass(frozen=True)
class BySessionKey:
    session_key: str


@dataclass(frozen=True)
class BySessionLabel:
    session_label: str


@dataclass(frozen=True)
class Synthetic:
    """Fallback identity; the category keeps queued/running/completed apart."""

    category: str
    task_id: str | None


AttemptKey = BySessionKey | BySessionLabel | Synthetic


def attempt_key(attempt: SubagentAttempt) -> AttemptKey:
    if attempt.session_key:
        return BySessionKey(attempt.session_key)
    if attempt.session_label:
        return BySessionLabel(attempt.session_label)
    return Synthetic(attempt.status.value, attempt.task_id)


def merge_attempts(existing: SubagentAttempt, incoming: SubagentAttempt) -> SubagentAttempt:
    """Combine two records of the same attempt.

    Every field keeps the first known value; ``incoming`` only fills fields
    ``existing`` left empty. Status follows the same rule, so a status seeded
    from runtime files is never replaced by a gateway-derived one.
    """
    updates = {
        field: value
        for field, value in incoming.model_dump(exclude={"status", "source"}).items()
        if value is not None and getattr(existing, field) is None
    }
    if existing.status == SubagentStatus.UNKNOWN and incoming.status != SubagentStatus.UNKNOWN:
        updates["status"] = incoming.status
    return existing.model_copy(update=updates)


class AttemptIndex:
    """Attempts keyed by identity, with a secondary lookup by session label."""

    def __init__(self) -> None:
        self._attempts: dict[AttemptKey, SubagentAttempt] = {}
        self._by_label: dict[str, AttemptKey] = {}

    def find(self, attempt: SubagentAttempt) -> AttemptKey | None:
        key = attempt_key(attempt)
        if key in self._attempts:
            return key
        if attempt.session_label:
            return self._by_label.get(attempt.session_label)
        return None

    def add(self, attempt: SubagentAttempt) -> None:
        """Insert ``attempt`` or merge it into the record it shares an identity with."""
        key = self.find(attempt)
        if key is None:
            key = attempt_key(attempt)
            self._attempts[key] = attempt
        else:
            self._attempts[key] = merge_attempts(self._attempts[key], attempt)

        label = self._attempts[key].session_label
        if label and label not in self._by_label:
            self._by_label[label] = key

    def replace(self, attempt: SubagentAttempt, updated: SubagentAttempt) -> None:
        key = self.find(attempt)
        if key is not None:
            self._attempts[key] = updated

    def values(self) -> list[SubagentAttempt]:
        return list(self._attempts.values())


# --- best-effort gateway calls ------------------------------------------------


@dataclass(frozen=True)
class Unavailable:
    """Gateway data could not be obtained; the merge continues without it."""

    reason: str


async def fetch_gateway_sessions(gateway: GatewayClient | None) -> list[GatewaySession] | Unavailable:
    if gateway is None or not gateway.is_configured:
        return Unavailable("gateway not configured")
    try:
        return await gateway.list_sessions(
            kinds=[GATEWAY_SESSION_KIND],
            active_minutes=GATEWAY_LOOKBACK_MINUTES,
            limit=GATEWAY_SESSION_LIMIT,
            message_limit=0,
        )
    except GatewayError as e:
        logger.warning("gateway_sessions_unavailable", error=str(e), error_type=type(e).__name__)
        return Unavailable(str(e))


async def fetch_last_assistant_message(
    gateway: GatewayClient, session_key: str
) -> str | Unavailable | None:
    try:
        messages = await gateway.fetch_history(
            session_key, limit=HISTORY_MESSAGE_LIMIT, include_tools=False
        )
    except (GatewayError, ValueError) as e:
        logger.warning("gateway_history_unavailable", session_key=session_key, error=str(e))
        return Unavailable(str(e))
    return last_assistant_text(messages)


def _message_text(content: object) -> str:
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = [
            part.get("text", "")
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return "\n".join(p for p in parts if isinstance(p, str) and p).strip()
    return ""


def last_assistant_text(messages: list[dict]) -> str | None:
    """Text of the most recent non-empty assistant message."""
    for message in reversed(messages):
        if message.get("role") != "assistant":
            continue
        text = _message_text(message.get("content"))
        if text:
            return text
    return None


# --- conversion -------------------------------------------------------------


def runtime_attempts(runtime: RuntimeSubagents) -> list[SubagentAttempt]:
    """Runtime records as attempts, terminal states first so they claim shared identities."""
    attempts = [
        SubagentAttempt(
            task_id=c.task_id,
            task_number=c.task_number,
            session_label=c.session_label,
            status=SubagentStatus.COMPLETED,
            outcome=c.outcome,
            started_at=c.started_at,
            completed_at=c.completed_at,
            duration_seconds=c.duration_seconds,
        )
        for c in runtime.completed
    ]
    attempts += [
        SubagentAttempt(
            task_id=r.task_id,
            task_number=r.task_number,
            session_key=r.session_key,
            session_label=r.session_label,
            status=SubagentStatus.RUNNING,
            model=r.model,
            started_at=r.started_at,
        )
        for r in runtime.running
    ]
    attempts += [
        SubagentAttempt(
            task_id=q.task_id,
            task_number=q.task_number,
            status=SubagentStatus.QUEUED,
            model=q.model,
            queued_at=q.queued_at,
        )
        for q in runtime.queued
    ]
    return attempts


def session_label_prefixes(task_id: str, task_number: int | None) -> tuple[str, ...]:
    prefixes = [f"{SESSION_LABEL_PREFIX}{task_id}-"]
    if task_number is not None:
        prefixes.append(f"{SESSION_LABEL_PREFIX}{task_number}-")
    return tuple(prefixes)


def matches_task(session: GatewaySession, prefixes: tuple[str, ...]) -> bool:
    return bool(session.display_name) and session.display_name.startswith(prefixes)


def gateway_attempt(
    session: GatewaySession, task_id: str, task_number: int | None
) -> SubagentAttempt:
    """Attempt seen only by the gateway; ``running`` is provisional."""
    status = SubagentStatus.FAILED if session.aborted_last_run else SubagentStatus.RUNNING
    return SubagentAttempt(
        task_id=task_id,
        task_number=task_number,
        session_key=session.key,
        session_label=session.display_name,
        status=status,
        model=session.model,
        tokens_used=session.total_tokens,
        source="gateway",
    )


def _recency(attempt: SubagentAttempt) -> datetime | None:
    stamps = [
        parse_timestamp(value)
        for value in (attempt.started_at, attempt.queued_at, attempt.completed_at)
    ]
    known = [s for s in stamps if s is not None]
    return max(known) if known else None


def sort_by_recency(attempts: list[SubagentAttempt]) -> list[SubagentAttempt]:
    """Newest first; attempts without any timestamp go last in their original order."""
    dated = [(a, _recency(a)) for a in attempts]
    with_time = sorted(
        ((a, ts) for a, ts in dated if ts is not None), key=lambda item: item[1], reverse=True
    )
    without_time = [a for a, ts in dated if ts is None]
    return [a for a, _ in with_time] + without_time


def summarize(attempts: list[SubagentAttempt]) -> TaskSubagentsMeta:
    def count(status: SubagentStatus) -> int:
        return sum(1 for a in attempts if a.status == status)

    return TaskSubagentsMeta(
        total=len(attempts),
        running=count(SubagentStatus.RUNNING),
        completed=count(SubagentStatus.COMPLETED),
        failed=count(SubagentStatus.FAILED),
        queued=count(SubagentStatus.QUEUED),
    )


# --- entry point --------------------------------------------------------------


async def _fill_outcomes(index: AttemptIndex, gateway: GatewayClient) -> None:
    pending = [a for a in index.values() if a.outcome is None and a.session_key]
    if not pending:
        return

    results = await run_concurrently(
        *(fetch_last_assistant_message(gateway, a.session_key) for a in pending)
    )
    for attempt, outcome in zip(pending, results, strict=True):
        if isinstance(outcome, str):
            index.replace(attempt, attempt.model_copy(update={"outcome": outcome}))


async def get_task_subagents(
    task_id: str,
    task_store: TaskLookup,
    workspace: WorkspaceClient,
    gateway: GatewayClient | None,
    runtime_dir: str = DEFAULT_RUNTIME_DIR,
) -> TaskSubagentsResponse:
    """Merged, deduplicated subagent attempts of one task.

    Raises:
        TaskNotFoundError: No task with ``task_id``; raised before any other call.
        WorkspaceServiceError: The workspace service is not configured or unreachable.
    """
    task = await task_store.lookup_task(task_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    _, task_number = task

    # Every runtime record left after the task filter belongs to this task
    known_numbers = KnownTaskNumbers({task_id: task_number} if task_number is not None else {})
    runtime, sessions = await run_concurrently(
        collect_runtime_subagents(
            workspace, known_numbers, task_id=task_id, runtime_dir=runtime_dir
        ),
        fetch_gateway_sessions(gateway),
    )

    index = AttemptIndex()
    for attempt in runtime_attempts(runtime):
        index.add(attempt)

    if isinstance(sessions, Unavailable):
        logger.info("task_subagents_runtime_only", task_id=task_id, reason=sessions.reason)
    else:
        prefixes = session_label_prefixes(task_id, task_number)
        matched = [s for s in sessions if matches_task(s, prefixes)]
        for session in matched:
            index.add(gateway_attempt(session, task_id, task_number))
        logger.debug(
            "task_subagents_gateway_matched",
            task_id=task_id,
            sessions=len(sessions),
            matched=len(matched),
        )
        await _fill_outcomes(index, gateway)

    attempts = sort_by_recency(index.values())
    return TaskSubagentsResponse(data=attempts, meta=summarize(attempts))
