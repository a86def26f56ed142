"""Fixtures for endpoint tests against the ASGI app."""

from collections.abc import AsyncGenerator

from httpx import ASGITransport, AsyncClient
import jwt
import pytest

from mosbot_api.config import get_settings
from mosbot_api.dependencies import get_gateway_client, get_task_store, get_workspace_client
from mosbot_api.main import app
from tests.conftest import JWT_SECRET


def make_token(secret: str = JWT_SECRET, **claims) -> str:
    payload = {"id": "user-1", "role": "admin", "email": "ops@example.com"}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def overrides(settings, task_store, workspace_client, gateway_client):
    """Dependency overrides; tests may replace individual entries."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_task_store] = lambda: task_store
    app.dependency_overrides[get_workspace_client] = lambda: workspace_client
    app.dependency_overrides[get_gateway_client] = lambda: gateway_client
    yield app.dependency_overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(overrides) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
