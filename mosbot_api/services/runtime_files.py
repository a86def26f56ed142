"""Reading JSON and JSONL runtime files from the workspace service.

Missing or malformed content never raises: it degrades to an empty result
and a warning. Workspace connectivity errors propagate untouched.
"""

from datetime import UTC, datetime
import json
import math
from typing import Any

import structlog

from shared.clients.workspace import WorkspaceClient

logger = structlog.get_logger()


def parse_json_lines(content: str | None, path: str | None = None) -> list[dict[str, Any]]:
    """Parse JSONL content into records, skipping lines that are not JSON objects."""
    if not content:
        return []

    records = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("runtime_file_malformed_line", path=path, line=lineno, error=str(e))
            continue
        if not isinstance(record, dict):
            logger.warning(
                "runtime_file_malformed_line",
                path=path,
                line=lineno,
                error=f"expected object, got {type(record).__name__}",
            )
            continue
        records.append(record)
    return records


async def read_file(workspace: WorkspaceClient, path: str) -> str | None:
    """Raw file content, or None when the file is missing."""
    return await workspace.get_file_content(path)


async def read_json_lines(workspace: WorkspaceClient, path: str) -> list[dict[str, Any]]:
    return parse_json_lines(await read_file(workspace, path), path=path)


async def read_json_object(workspace: WorkspaceClient, path: str) -> dict[str, Any]:
    """Parse a JSON object file; missing, invalid or non-object content gives ``{}``."""
    content = await read_file(workspace, path)
    if not content or not content.strip():
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning("runtime_file_invalid_json", path=path, error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("runtime_file_invalid_json", path=path, error="expected object")
        return {}
    return data


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def duration_seconds(started_at: str | None, completed_at: str | None) -> int | None:
    """Whole seconds between two timestamps, None unless both are known."""
    start = parse_timestamp(started_at)
    end = parse_timestamp(completed_at)
    if start is None or end is None:
        return None
    return math.floor((end - start).total_seconds())
