"""Main CLI application using Typer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from .output import (
    console,
    print_error,
    print_info,
    print_stats,
    print_success,
    print_task_table,
    print_warning,
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

app = typer.Typer(
    name="taskpool",
    help="Lease-based task pool: serve the API, inspect tasks, run an agent",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
agent_app = typer.Typer(help="Run and configure an agent")
app.add_typer(agent_app, name="agent")

ServerOption = Annotated[
    Optional[str],
    typer.Option("--server", "-s", help="Server URL (defaults to agent config)"),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logging"),
    ] = False,
):
    """Lease-based task pool for agents and humans.

    Examples:
        taskpool serve                         # Start the API server
        taskpool recommend --user-id alice     # Ranked claimable tasks
        taskpool claim 3f2a... --agent-id a1   # Lease a task
        taskpool agent run --once              # One recommend/claim cycle
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


def _client(server: str | None):
    from ..agent.client import ServerClient
    from ..agent.config import AgentConfig

    return ServerClient(server or AgentConfig.load().server_url)


def _run(coro):
    from ..agent.client import ServerError

    try:
        return asyncio.run(coro)
    except ServerError as e:
        print_error(e.message)
        raise typer.Exit(1) from None


@app.command("serve")
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port")] = None,
    db_path: Annotated[
        Optional[Path], typer.Option("--db-path", help="SQLite task store path")
    ] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
):
    """Start the task pool API server."""
    import os

    import uvicorn

    from ..web.config import WebConfig

    # Pass overrides through the environment so the app factory sees them under --reload
    if db_path is not None:
        os.environ["TASKPOOL_DB_PATH"] = str(db_path)
    config = WebConfig.load()

    console.print(
        f"[cyan]Serving task pool on {host or config.host}:{port or config.port}[/cyan] "
        f"[dim](store: {config.db_path})[/dim]"
    )
    uvicorn.run(
        "taskpool.web.app:create_app",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@app.command("list")
def list_tasks(
    server: ServerOption = None,
    status: Annotated[Optional[str], typer.Option("--status", help="Status filter")] = None,
    priority: Annotated[Optional[str], typer.Option("--priority", help="Priority filter")] = None,
    search: Annotated[Optional[str], typer.Option("--search", "-q", help="Text search")] = None,
    overdue: Annotated[bool, typer.Option("--overdue", help="Only overdue tasks")] = False,
):
    """List tasks."""

    async def _list():
        client = _client(server)
        try:
            return await client.list_tasks(
                status=status,
                priority=priority,
                search=search,
                overdue=overdue or None,
            )
        finally:
            await client.close()

    print_task_table(_run(_list()))


@app.command("recommend")
def recommend(
    server: ServerOption = None,
    user_id: Annotated[Optional[str], typer.Option("--user-id", "-u", help="Requesting user")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max results")] = 10,
):
    """Show claimable tasks ranked for a user."""

    async def _recommend():
        client = _client(server)
        try:
            return await client.recommend_tasks(user_id=user_id or "", limit=limit)
        finally:
            await client.close()

    print_task_table(_run(_recommend()), title="Recommended tasks")


@app.command("claim")
def claim(
    task_id: Annotated[str, typer.Argument(help="Task to claim")],
    agent_id: Annotated[str, typer.Option("--agent-id", "-a", help="Claimant identity")],
    lease: Annotated[
        Optional[int], typer.Option("--lease", "-l", help="Lease length in seconds")
    ] = None,
    server: ServerOption = None,
):
    """Claim a task for an agent."""

    async def _claim():
        client = _client(server)
        try:
            return await client.claim_task(task_id, agent_id, lease)
        finally:
            await client.close()

    task = _run(_claim())
    if task is None:
        print_warning(f"Task {task_id} is not claimable (held by another agent or not open)")
        raise typer.Exit(1)
    print_success(f"Claimed {task_id} until {task['claim_expires_at']}")


@app.command("complete")
def complete(
    task_id: Annotated[str, typer.Argument(help="Task to complete")],
    server: ServerOption = None,
):
    """Mark a task completed."""

    async def _complete():
        client = _client(server)
        try:
            return await client.complete_task(task_id)
        finally:
            await client.close()

    _run(_complete())
    print_success(f"Completed {task_id}")


@app.command("stats")
def stats(server: ServerOption = None):
    """Show task counts."""

    async def _stats():
        client = _client(server)
        try:
            return await client.get_stats()
        finally:
            await client.close()

    print_stats(_run(_stats()))


@agent_app.command("run")
def agent_run(
    agent_id: Annotated[
        Optional[str], typer.Option("--agent-id", "-a", help="Agent identity")
    ] = None,
    server: ServerOption = None,
    once: Annotated[bool, typer.Option("--once", help="Single cycle, then exit")] = False,
    config_path: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Agent config file")
    ] = None,
):
    """Run the recommend/claim loop."""
    from ..agent.cli import start_agent
    from ..agent.config import AgentConfig

    config = AgentConfig.load(config_path)
    if agent_id:
        config.agent_id = agent_id
    if server:
        config.server_url = server

    try:
        _run(start_agent(config, once=once))
    except KeyboardInterrupt:
        print_info("Agent stopped.")


@agent_app.command("init")
def agent_init(
    agent_id: Annotated[str, typer.Option("--agent-id", "-a", help="Agent identity")],
    server: Annotated[
        str, typer.Option("--server", "-s", help="Server URL")
    ] = "http://localhost:8000",
    user_id: Annotated[str, typer.Option("--user-id", "-u", help="Assignment identity")] = "",
    lease: Annotated[int, typer.Option("--lease", "-l", help="Lease length in seconds")] = 3600,
    config_path: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Agent config file")
    ] = None,
):
    """Write an agent config file."""
    from ..agent.config import AgentConfig
    from ..web.tasks.service import MAX_LEASE_SECONDS, MIN_LEASE_SECONDS

    if not MIN_LEASE_SECONDS <= lease <= MAX_LEASE_SECONDS:
        print_error(f"Lease must be between {MIN_LEASE_SECONDS} and {MAX_LEASE_SECONDS} seconds")
        raise typer.Exit(1)

    config = AgentConfig(server_url=server, agent_id=agent_id, user_id=user_id, lease_seconds=lease)
    config.save(config_path)
    print_success(f"Saved agent config to {config_path or config.CONFIG_FILE}")


if __name__ == "__main__":
    app()
