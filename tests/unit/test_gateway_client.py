"""Unit tests for GatewayClient."""

import json

import httpx
import pytest
import respx

from shared.clients import GatewayClient, GatewayError, GatewayNotConfigured, GatewayUnavailable

GATEWAY_URL = "http://gateway.test"

SESSION_ROW = {
    "key": "agent:main:subagent:abc",
    "displayName": "mosbot-task-T1-001",
    "kind": "other",
    "model": "sonnet",
    "totalTokens": 15000,
    "abortedLastRun": False,
    "updatedAt": 1770714000000,
}


@pytest.mark.parametrize(
    "result",
    [
        [SESSION_ROW],
        {"details": {"sessions": [SESSION_ROW]}},
        {"rows": [SESSION_ROW]},
        {"sessions": [SESSION_ROW]},
    ],
)
async def test_list_sessions_result_shapes(gateway_client, result):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(200, json={"ok": True, "result": result})
        )

        sessions = await gateway_client.list_sessions(kinds=["other"], active_minutes=1440)

    assert len(sessions) == 1
    session = sessions[0]
    assert session.key == "agent:main:subagent:abc"
    assert session.display_name == "mosbot-task-T1-001"
    assert session.total_tokens == 15000
    assert session.aborted_last_run is False


async def test_list_sessions_request_body(gateway_client):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        route = respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(200, json={"ok": True, "result": []})
        )

        await gateway_client.list_sessions(kinds=["other"], active_minutes=1440, limit=50)

    request = route.calls.last.request
    body = json.loads(request.content)
    assert body == {
        "tool": "sessions_list",
        "action": "json",
        "args": {"kinds": ["other"], "activeMinutes": 1440, "limit": 50},
        "sessionKey": "main",
        "dryRun": False,
    }
    assert request.headers["Authorization"] == "Bearer gw-token"


async def test_unexpected_shape_is_empty(gateway_client):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(200, json={"ok": True, "result": {"unexpected": 1}})
        )

        assert await gateway_client.list_sessions() == []


async def test_fetch_history_uses_session_context(gateway_client):
    messages = [
        {"role": "user", "content": "Do the task"},
        {"role": "assistant", "content": "Done"},
    ]
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        route = respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(200, json={"ok": True, "result": {"messages": messages}})
        )

        history = await gateway_client.fetch_history("agent:main:subagent:abc", limit=20)

    assert history == messages
    body = json.loads(route.calls.last.request.content)
    assert body["sessionKey"] == "agent:main:subagent:abc"
    assert body["args"] == {
        "sessionKey": "agent:main:subagent:abc",
        "includeTools": False,
        "limit": 20,
    }


async def test_tool_failure_raises(gateway_client):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(
                200, json={"ok": False, "error": {"message": "tool disabled"}}
            )
        )

        with pytest.raises(GatewayError, match="tool disabled"):
            await gateway_client.list_sessions()


async def test_http_error_raises(gateway_client):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(return_value=httpx.Response(401, text="denied"))

        with pytest.raises(GatewayError):
            await gateway_client.list_sessions()


async def test_unreachable_raises_unavailable(gateway_client):
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(side_effect=httpx.ConnectTimeout("timeout"))

        with pytest.raises(GatewayUnavailable):
            await gateway_client.list_sessions()


async def test_not_configured():
    client = GatewayClient(None)

    with pytest.raises(GatewayNotConfigured):
        await client.list_sessions()


async def test_invalid_rows_are_skipped(gateway_client):
    rows = [
        {**SESSION_ROW, "abortedLastRun": None},
        {"key": "bad", "totalTokens": "not-a-number"},
        "not-a-row",
    ]
    async with respx.mock(base_url=GATEWAY_URL) as respx_mock:
        respx_mock.post("/tools/invoke").mock(
            return_value=httpx.Response(200, json={"ok": True, "result": rows})
        )

        sessions = await gateway_client.list_sessions()

    assert [s.key for s in sessions] == ["agent:main:subagent:abc"]
    assert sessions[0].aborted_last_run is False
