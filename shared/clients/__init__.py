"""Shared clients for external services."""

from .gateway import (
    GatewayClient,
    GatewayError,
    GatewayNotConfigured,
    GatewaySession,
    GatewayUnavailable,
)
from .workspace import (
    WorkspaceClient,
    WorkspaceServiceError,
    WorkspaceServiceNotConfigured,
    WorkspaceServiceUnavailable,
)

__all__ = [
    "GatewayClient",
    "GatewayError",
    "GatewayNotConfigured",
    "GatewaySession",
    "GatewayUnavailable",
    "WorkspaceClient",
    "WorkspaceServiceError",
    "WorkspaceServiceNotConfigured",
    "WorkspaceServiceUnavailable",
]
