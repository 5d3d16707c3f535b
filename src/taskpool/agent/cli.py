"""Agent CLI entry points.

Provides the async entry point for starting the agent loop and handling
graceful shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rich.console import Console

from .client import ServerClient
from .config import AgentConfig
from .runner import AgentRunner

console = Console()
logger = logging.getLogger(__name__)


async def log_only_handler(task: dict[str, Any]) -> bool:
    """Default handler: report the claimed task and leave the work to a human.

    Returns False so the task is not completed; the lease lapses unless the
    work is finished and completed elsewhere.
    """
    console.print(
        f"[green]v[/green] Claimed [cyan]{task['id']}[/cyan] "
        f"[{task.get('priority', '')}] {task.get('title', '')}"
    )
    return False


async def start_agent(config: AgentConfig, once: bool = False) -> None:
    """Start the agent loop.

    Args:
        config: Agent configuration (server URL, identity, lease length).
        once: Run a single recommend/claim cycle and exit.
    """
    server = ServerClient(config.server_url)
    runner = AgentRunner(config, server, log_only_handler)

    console.print(f"[cyan]Agent {config.agent_id} connecting to {config.server_url}...[/cyan]")

    try:
        if once:
            task = await runner.run_once()
            if task is None:
                console.print("[dim]No claimable task available.[/dim]")
            return

        console.print(f"[dim]Looking for work every {config.poll_interval}s...[/dim]")
        console.print("[dim]Press Ctrl+C to stop[/dim]\n")
        await runner.run()
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[dim]Shutting down agent...[/dim]")
        await runner.stop()
    finally:
        await server.close()
