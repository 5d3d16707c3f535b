"""Tests for ServerClient HTTP communication."""

from __future__ import annotations

import json

import httpx
import pytest

from taskpool.agent.client import ServerClient, ServerError


@pytest.fixture
def mock_transport():
    """Create a mock transport that records requests and returns canned responses."""

    class MockTransport(httpx.AsyncBaseTransport):
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.responses: dict[str, tuple[int, object]] = {}

        def set_response(self, method: str, path: str, status: int, body: object):
            self.responses[f"{method.upper()} {path}"] = (status, body)

        async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            key = f"{request.method} {request.url.path}"

            if key in self.responses:
                status, body = self.responses[key]
                return httpx.Response(status_code=status, json=body, request=request)

            return httpx.Response(
                status_code=404,
                json={"detail": f"No mock for {key}"},
                request=request,
            )

    return MockTransport()


@pytest.fixture
async def client(mock_transport):
    c = ServerClient("http://pool:8000/", transport=mock_transport)
    yield c
    await c.close()


class TestClaim:
    async def test_claim_success(self, mock_transport, client):
        mock_transport.set_response(
            "POST", "/api/tasks/t1/claim", 200, {"id": "t1", "claimed_by_agent_id": "a1"}
        )

        task = await client.claim_task("t1", "a1", lease_seconds=120)

        assert task["claimed_by_agent_id"] == "a1"
        sent = json.loads(mock_transport.requests[0].content)
        assert sent == {"agent_id": "a1", "lease_seconds": 120}

    async def test_claim_omits_lease_for_server_default(self, mock_transport, client):
        mock_transport.set_response("POST", "/api/tasks/t1/claim", 200, {"id": "t1"})

        await client.claim_task("t1", "a1")

        assert json.loads(mock_transport.requests[0].content) == {"agent_id": "a1"}

    async def test_conflict_returns_none(self, mock_transport, client):
        mock_transport.set_response(
            "POST", "/api/tasks/t1/claim", 409, {"detail": "Task is not claimable", "task_id": "t1"}
        )

        assert await client.claim_task("t1", "a1") is None

    async def test_not_found_raises(self, mock_transport, client):
        mock_transport.set_response("POST", "/api/tasks/t1/claim", 404, {"detail": "Task t1 not found"})

        with pytest.raises(ServerError) as exc_info:
            await client.claim_task("t1", "a1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Task t1 not found"

    async def test_bad_lease_raises(self, mock_transport, client):
        mock_transport.set_response("POST", "/api/tasks/t1/claim", 400, {"detail": "Invalid lease"})

        with pytest.raises(ServerError) as exc_info:
            await client.claim_task("t1", "a1", lease_seconds=0)

        assert exc_info.value.status_code == 400


class TestQueries:
    async def test_recommend_sends_context(self, mock_transport, client):
        mock_transport.set_response("GET", "/api/tasks/recommend", 200, [{"id": "t1"}])

        tasks = await client.recommend_tasks(
            user_id="alice", role="it", scope=["laptops", "badges"], limit=5
        )

        assert tasks == [{"id": "t1"}]
        params = mock_transport.requests[0].url.params
        assert params["user_id"] == "alice"
        assert params["role"] == "it"
        assert params.get_list("scope") == ["laptops", "badges"]
        assert params["limit"] == "5"
        assert "department" not in params

    async def test_list_drops_none_filters(self, mock_transport, client):
        mock_transport.set_response("GET", "/api/tasks", 200, [])

        await client.list_tasks(status="open", priority=None)

        params = mock_transport.requests[0].url.params
        assert params["status"] == "open"
        assert "priority" not in params

    async def test_stats(self, mock_transport, client):
        stats = {"total": 1, "open": 1, "in_progress": 0, "completed": 0, "overdue": 0}
        mock_transport.set_response("GET", "/api/tasks/stats", 200, stats)

        assert await client.get_stats() == stats

    async def test_complete(self, mock_transport, client):
        mock_transport.set_response("POST", "/api/tasks/t1/complete", 200, {"status": "completed"})

        assert (await client.complete_task("t1"))["status"] == "completed"


class TestErrors:
    async def test_connect_error_wrapped(self):
        class FailingTransport(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                raise httpx.ConnectError("refused", request=request)

        client = ServerClient("http://pool:8000", transport=FailingTransport())
        try:
            with pytest.raises(ServerError) as exc_info:
                await client.get_stats()
        finally:
            await client.close()

        assert "Cannot connect" in exc_info.value.message
        assert exc_info.value.status_code == 0
