import json

import httpx
import pytest

from app.services.workflow_client import WorkflowClient


BASE_URL = "http://workflows.test/webhook"


def client_for(handler, auth_header=None) -> WorkflowClient:
    return WorkflowClient(
        base_url=BASE_URL,
        auth_header=auth_header,
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_trigger_posts_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"workflowId": 42})

    result = await client_for(handler, auth_header="Bearer token").trigger(
        "job-search", {"query": "python"}
    )

    assert result.success is True
    assert result.workflow_id == "42"
    assert seen == {
        "url": f"{BASE_URL}/job-search",
        "body": {"query": "python"},
        "auth": "Bearer token",
    }


@pytest.mark.asyncio
async def test_trigger_without_auth_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, text="accepted")

    result = await client_for(handler).trigger("job-search", {})

    assert result.success is True
    assert result.workflow_id is None


@pytest.mark.asyncio
async def test_trigger_http_error_is_reported_not_raised():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, text="down")

    result = await client_for(handler).trigger("job-search", {})

    assert result.success is False
    assert result.error == "Webhook request failed: 503"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_trigger_transport_error_is_reported_not_raised():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    result = await client_for(handler).trigger("job-search", {})

    assert result.success is False
    assert result.error == "connection refused"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_health():
    assert await client_for(lambda request: httpx.Response(200)).health() is True
    assert await client_for(lambda request: httpx.Response(500)).health() is False

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert await client_for(unreachable).health() is False
