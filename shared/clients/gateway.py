"""OpenClaw gateway client.

The gateway exposes agent sessions through its tool invocation endpoint.
Callers in the API treat it as optional enrichment.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 15.0


class GatewayError(Exception):
    """Gateway request failed."""


class GatewayNotConfigured(GatewayError):
    """No gateway URL configured."""


class GatewayUnavailable(GatewayError):
    """Gateway unreachable or timed out."""


class GatewaySession(BaseModel):
    """Session row as reported by ``sessions_list``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: str | None = None
    display_name: str | None = Field(
        default=None, validation_alias=AliasChoices("displayName", "display_name", "label")
    )
    kind: str | None = None
    model: str | None = None
    total_tokens: int | None = Field(
        default=None, validation_alias=AliasChoices("totalTokens", "total_tokens")
    )
    aborted_last_run: bool = Field(
        default=False, validation_alias=AliasChoices("abortedLastRun", "aborted_last_run")
    )
    updated_at: Any = Field(default=None, validation_alias=AliasChoices("updatedAt", "updated_at"))

    @field_validator("aborted_last_run", mode="before")
    @classmethod
    def null_means_not_aborted(cls, v: Any) -> Any:
        return False if v is None else v


def _extract_sessions(result: Any) -> list[dict]:
    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        details = result.get("details")
        if isinstance(details, dict) and isinstance(details.get("sessions"), list):
            return details["sessions"]
        for key in ("rows", "sessions"):
            if isinstance(result.get(key), list):
                return result[key]
    logger.warning("gateway_sessions_unexpected_shape", result_type=type(result).__name__)
    return []


class GatewayClient:
    """HTTP client for OpenClaw gateway tool invocations."""

    def __init__(
        self,
        base_url: str | None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.token = token
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def invoke_tool(
        self,
        tool: str,
        args: dict[str, Any] | None = None,
        session_key: str = "main",
    ) -> Any:
        """Invoke a gateway tool and return its ``result`` payload."""
        if not self.is_configured:
            raise GatewayNotConfigured(
                "OpenClaw gateway is not configured. Set OPENCLAW_GATEWAY_URL to enable."
            )

        body = {
            "tool": tool,
            "action": "json",
            "args": args or {},
            "sessionKey": session_key,
            "dryRun": False,
        }
        client = await self._get_client()
        try:
            resp = await client.post("/tools/invoke", json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TransportError as e:
            raise GatewayUnavailable(f"OpenClaw gateway is unavailable: {e}") from e
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"OpenClaw gateway error: {e.response.status_code} for tool {tool}"
            ) from e
        except ValueError as e:
            raise GatewayError(f"OpenClaw gateway returned invalid JSON for tool {tool}") from e

        if not isinstance(payload, dict):
            raise GatewayError(f"OpenClaw gateway returned unexpected payload for tool {tool}")
        if payload.get("ok") is False:
            error = payload.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise GatewayError(message or "Tool invocation failed")

        return payload.get("result", payload)

    async def list_sessions(
        self,
        kinds: list[str] | None = None,
        active_minutes: int | None = None,
        limit: int | None = None,
        message_limit: int | None = None,
    ) -> list[GatewaySession]:
        """List sessions known to the gateway; rows that fail validation are skipped."""
        args: dict[str, Any] = {}
        if kinds:
            args["kinds"] = kinds
        if active_minutes is not None:
            args["activeMinutes"] = active_minutes
        if limit is not None:
            args["limit"] = limit
        if message_limit is not None:
            args["messageLimit"] = message_limit

        result = await self.invoke_tool("sessions_list", args)
        sessions = []
        for row in _extract_sessions(result):
            if not isinstance(row, dict):
                continue
            try:
                sessions.append(GatewaySession.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "gateway_session_invalid",
                    session_key=row.get("key"),
                    error_count=e.error_count(),
                )
        return sessions

    async def fetch_history(
        self,
        session_key: str,
        limit: int | None = None,
        include_tools: bool = False,
    ) -> list[dict]:
        """Fetch message history of a session, oldest first."""
        if not session_key:
            raise ValueError("session_key is required for sessions_history")

        args: dict[str, Any] = {"sessionKey": session_key, "includeTools": include_tools}
        if limit is not None:
            args["limit"] = limit

        # Invoke in the target session's own context to pass the cross-agent check
        result = await self.invoke_tool("sessions_history", args, session_key=session_key)

        messages = result.get("messages") if isinstance(result, dict) else result
        if not isinstance(messages, list):
            return []
        return [m for m in messages if isinstance(m, dict)]
