"""HTTP client for communicating with the task pool server.

Wraps the task API: listing, creation, edits, recommendations, claims,
completion and stats.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ServerError(Exception):
    """Raised when a server API call fails."""

    def __init__(self, message: str, status_code: int = 0, detail: str = ""):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ServerClient:
    """HTTP client for the task pool API.

    All methods are async and raise ServerError on failure, except
    ``claim_task`` which reports a lost race as None.
    """

    def __init__(self, base_url: str, transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(30.0),
            transport=transport,
        )

    # --- Queries ---

    async def list_tasks(self, **filters: Any) -> list[dict[str, Any]]:
        """List tasks.

        GET /api/tasks?status=...&priority=...&assigned_to=...&search=...
        &employee_id=...&overdue=...

        Filters with a None value are not sent.
        """
        params = {k: v for k, v in filters.items() if v is not None}
        return await self._request("GET", "/api/tasks", params=params)

    async def get_task(self, task_id: str) -> dict[str, Any]:
        """GET /api/tasks/{task_id}"""
        return await self._request("GET", f"/api/tasks/{task_id}")

    async def recommend_tasks(
        self,
        user_id: str = "",
        role: str = "",
        department: str = "",
        scope: list[str] | None = None,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        """Fetch claimable tasks ranked for this agent.

        GET /api/tasks/recommend

        Returns:
            Ordered list of task dicts (may be empty).
        """
        params: dict[str, Any] = {"limit": limit}
        if user_id:
            params["user_id"] = user_id
        if role:
            params["role"] = role
        if department:
            params["department"] = department
        if scope:
            params["scope"] = scope
        return await self._request("GET", "/api/tasks/recommend", params=params)

    async def get_stats(self) -> dict[str, int]:
        """GET /api/tasks/stats"""
        return await self._request("GET", "/api/tasks/stats")

    # --- Mutations ---

    async def create_task(self, data: dict[str, Any]) -> dict[str, Any]:
        """POST /api/tasks"""
        return await self._request("POST", "/api/tasks", json=data)

    async def update_task(self, task_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """PATCH /api/tasks/{task_id}"""
        return await self._request("PATCH", f"/api/tasks/{task_id}", json=data)

    async def claim_task(
        self,
        task_id: str,
        agent_id: str,
        lease_seconds: int | None = None,
    ) -> dict[str, Any] | None:
        """Lease a task for this agent.

        POST /api/tasks/{task_id}/claim

        Returns:
            The claimed task, or None if the task is not claimable (409).

        Raises:
            ServerError: 404 for an unknown task, 400 for bad input.
        """
        body: dict[str, Any] = {"agent_id": agent_id}
        if lease_seconds is not None:
            body["lease_seconds"] = lease_seconds
        try:
            return await self._request("POST", f"/api/tasks/{task_id}/claim", json=body)
        except ServerError as e:
            if e.status_code == 409:
                return None
            raise

    async def complete_task(self, task_id: str) -> dict[str, Any]:
        """POST /api/tasks/{task_id}/complete"""
        return await self._request("POST", f"/api/tasks/{task_id}/complete")

    # --- Lifecycle ---

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # --- Internal ---

    async def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request to the server.

        Raises:
            ServerError: On HTTP errors or connection failures.
        """
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                params=params,
            )

            if response.status_code >= 400:
                detail = ""
                try:
                    body = response.json()
                    detail = body.get("detail", str(body))
                except Exception:
                    detail = response.text[:200]

                raise ServerError(
                    f"{method} {url} returned {response.status_code}: {detail}",
                    status_code=response.status_code,
                    detail=str(detail),
                )

            if not response.content:
                return {}

            return response.json()

        except httpx.ConnectError as e:
            raise ServerError(
                f"Cannot connect to server: {e}",
                detail=str(e),
            ) from e
        except httpx.TimeoutException as e:
            raise ServerError(
                f"Request timed out: {method} {url}",
                detail=str(e),
            ) from e
        except ServerError:
            raise
        except Exception as e:
            raise ServerError(
                f"Unexpected error: {e}",
                detail=str(e),
            ) from e
