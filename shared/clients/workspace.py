"""OpenClaw workspace file service client.

The workspace service exposes the agent runtime directory over HTTP. Only
connectivity problems are errors here: a missing or unreadable file is
reported as ``None`` so callers can degrade to empty results.
"""

from __future__ import annotations

import asyncio
from http import HTTPStatus
from typing import Any

import httpx
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_RETRIES = 3
RETRY_BASE_DELAY_SECONDS = 0.5


class WorkspaceServiceError(Exception):
    """Workspace service cannot serve requests at all."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "SERVICE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class WorkspaceServiceNotConfigured(WorkspaceServiceError):
    """No workspace URL configured."""

    code = "SERVICE_NOT_CONFIGURED"


class WorkspaceServiceUnavailable(WorkspaceServiceError):
    """Workspace service unreachable, timed out or answered 503."""

    code = "SERVICE_UNAVAILABLE"


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"Workspace service returned {response.status_code}")
        self.response = response


class WorkspaceClient:
    """HTTP client for the OpenClaw workspace file service."""

    def __init__(
        self,
        base_url: str | None,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
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

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying connectivity failures with exponential backoff.

        Raises:
            WorkspaceServiceNotConfigured: No base URL is set.
            WorkspaceServiceUnavailable: Retries exhausted on timeouts,
                transport errors or upstream 503.
        """
        if not self.is_configured:
            raise WorkspaceServiceNotConfigured(
                "OpenClaw workspace service is not configured. "
                "Set OPENCLAW_WORKSPACE_URL to enable."
            )

        client = await self._get_client()
        attempt = 0
        while True:
            try:
                response = await client.request(method, path, **kwargs)
                if response.status_code == HTTPStatus.SERVICE_UNAVAILABLE:
                    raise _RetryableStatus(response)
                return response
            except (httpx.TransportError, _RetryableStatus) as e:
                if attempt < self.max_retries:
                    delay = self.retry_base_delay * (2**attempt)
                    attempt += 1
                    logger.warning(
                        "workspace_request_retry",
                        method=method,
                        path=path,
                        retry_count=attempt,
                        max_retries=self.max_retries,
                        delay_seconds=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)
                    continue
                raise self._unavailable(method, path, e, attempt) from e

    def _unavailable(
        self, method: str, path: str, error: Exception, retry_count: int
    ) -> WorkspaceServiceUnavailable:
        if isinstance(error, httpx.TimeoutException):
            logger.error(
                "workspace_request_timeout", method=method, path=path, retry_count=retry_count
            )
            return WorkspaceServiceUnavailable(
                "OpenClaw workspace service request timed out", code="SERVICE_TIMEOUT"
            )
        logger.warning(
            "workspace_service_unavailable",
            method=method,
            path=path,
            retry_count=retry_count,
            error=str(error),
        )
        return WorkspaceServiceUnavailable(
            "OpenClaw workspace service is unavailable. This may be expected in local development."
        )

    async def get_file_content(self, path: str) -> str | None:
        """Get file content by workspace path.

        Returns None when the file does not exist or the service answered
        with a non-retryable error status.
        """
        response = await self.request("GET", "/files/content", params={"path": path})

        if response.status_code == HTTPStatus.NOT_FOUND:
            logger.debug("workspace_file_not_found", path=path)
            return None
        if response.is_error:
            logger.warning(
                "workspace_file_read_failed",
                path=path,
                status_code=response.status_code,
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("workspace_file_response_invalid", path=path)
            return None

        if not isinstance(data, dict):
            return None
        content = data.get("content")
        return content if isinstance(content, str) and content else None
