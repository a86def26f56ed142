"""FastAPI dependencies for authentication and collaborators."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from shared.clients import GatewayClient, WorkspaceClient

from .config import Settings, get_settings
from .database import get_async_session
from .repositories import TaskStore

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity carried by the bearer token."""

    id: str
    role: str = "user"
    email: str | None = None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Decode the bearer token.

    Raises 401 if the token is missing, expired or signed with another secret.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.InvalidTokenError as e:
        logger.info("auth_token_rejected", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        ) from e

    if not payload.get("id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = CurrentUser(
        id=str(payload["id"]),
        role=payload.get("role", "user"),
        email=payload.get("email"),
    )
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


async def get_task_store(db: AsyncSession = Depends(get_async_session)) -> TaskStore:
    return TaskStore(db)


def get_workspace_client(request: Request) -> WorkspaceClient:
    """Workspace client created in the application lifespan."""
    return request.app.state.workspace_client


def get_gateway_client(request: Request) -> GatewayClient | None:
    return getattr(request.app.state, "gateway_client", None)
