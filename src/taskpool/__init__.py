"""taskpool: lease-based task claiming for competing agents.

Agents (automated workers or humans) ask the server for recommended work,
race to claim a task with a time-boxed lease, and complete it. A lease that
is never completed simply expires and the task returns to the open pool.

Usage:
    # Server
    $ taskpool serve

    # Agent loop
    $ taskpool agent run --agent-id worker-1

    # Python API
    from taskpool.web.tasks import service

    task = await service.claim_task(db, task_id, "worker-1", lease_seconds=600)
"""

try:
    from importlib.metadata import version as _get_version

    __version__ = _get_version("taskpool")
except Exception:
    __version__ = "0.0.0-dev"

__all__ = ["__version__"]
