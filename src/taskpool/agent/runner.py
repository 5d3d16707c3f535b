"""Agent work loop -- asks for recommendations, claims one task, works it.

Each cycle:
  1. Fetch recommended tasks for this agent's context.
  2. Try to claim them in ranked order. A conflict means another agent got
     there first, so move on to the next candidate.
  3. Run the handler on the claimed task and complete it if the handler
     reports success. Otherwise leave the lease to lapse so the task
     returns to the pool.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .client import ServerClient, ServerError
from .config import AgentConfig

logger = logging.getLogger(__name__)

TaskHandler = Callable[[dict[str, Any]], Awaitable[bool]]


class AgentRunner:
    """Recommend-then-claim loop for a single agent identity."""

    def __init__(self, config: AgentConfig, server: ServerClient, handler: TaskHandler):
        self.config = config
        self.server = server
        self.handler = handler
        self.completed_task_ids: list[str] = []
        self._running = True

    async def run(self) -> None:
        """Run work cycles until stop() is called."""
        logger.info("Agent %s started against %s", self.config.agent_id, self.config.server_url)
        while self._running:
            completed = False
            try:
                _, completed = await self._cycle()
            except ServerError as e:
                logger.warning("Work cycle failed: %s", e.message)
            except Exception:
                logger.exception("Unexpected error in work cycle")

            # Back off unless a task was finished; unfinished claims stay leased
            if not completed and self._running:
                await asyncio.sleep(self.config.poll_interval)

    async def stop(self) -> None:
        """Signal the loop to exit after the current cycle."""
        self._running = False

    async def run_once(self) -> dict[str, Any] | None:
        """Claim and work at most one task.

        Returns:
            The claimed task, or None when nothing could be claimed.
        """
        task, _ = await self._cycle()
        return task

    async def _cycle(self) -> tuple[dict[str, Any] | None, bool]:
        candidates = await self.server.recommend_tasks(
            user_id=self.config.user_id,
            role=self.config.role,
            department=self.config.department,
            scope=self.config.scope,
            limit=self.config.recommend_limit,
        )
        if not candidates:
            logger.debug("No claimable tasks")
            return None, False

        for candidate in candidates:
            task = await self._try_claim(candidate["id"])
            if task is None:
                continue
            return task, await self._execute(task)

        logger.debug("All %d recommended tasks were taken", len(candidates))
        return None, False

    async def _try_claim(self, task_id: str) -> dict[str, Any] | None:
        try:
            task = await self.server.claim_task(
                task_id, self.config.agent_id, self.config.lease_seconds
            )
        except ServerError as e:
            if e.status_code == 404:
                logger.warning("Recommended task %s no longer exists", task_id)
                return None
            raise

        if task is None:
            logger.debug("Task %s already claimed, trying next", task_id)
            return None

        logger.info(
            "Claimed task %s (priority=%s) until %s",
            task_id,
            task.get("priority"),
            task.get("claim_expires_at"),
        )
        return task

    async def _execute(self, task: dict[str, Any]) -> bool:
        task_id = task["id"]
        try:
            done = await self.handler(task)
        except asyncio.CancelledError:
            logger.info("Task %s was cancelled; lease will lapse", task_id)
            raise
        except Exception:
            logger.exception("Handler failed on task %s; lease will lapse", task_id)
            return False

        if not done:
            logger.info("Task %s not finished; lease will lapse", task_id)
            return False

        await self.server.complete_task(task_id)
        self.completed_task_ids.append(task_id)
        logger.info("Completed task %s", task_id)
        return True
