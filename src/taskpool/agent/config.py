"""Agent configuration.

Loads from ~/.taskpool/agent.yaml with environment variable overrides.
"""

from __future__ import annotations

import logging
import os
import socket
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def _default_agent_id() -> str:
    return f"agent-{socket.gethostname()}"


@dataclass
class AgentConfig:
    """Configuration for a local agent process."""

    server_url: str = "http://localhost:8000"
    agent_id: str = field(default_factory=_default_agent_id)
    user_id: str = ""  # identity used for assignment affinity in recommendations
    role: str = ""
    department: str = ""
    scope: list[str] = field(default_factory=list)
    poll_interval: float = 5.0  # seconds between recommend cycles when idle
    lease_seconds: int = 3600
    recommend_limit: int = 10

    CONFIG_FILE: Path = field(
        default_factory=lambda: Path.home() / ".taskpool" / "agent.yaml",
        repr=False,
    )

    @classmethod
    def load(cls, config_path: Path | None = None) -> AgentConfig:
        """Load agent config from file and environment variables.

        Priority (highest wins):
          1. Environment variables (TASKPOOL_SERVER_URL, TASKPOOL_AGENT_ID, etc.)
          2. Config file (~/.taskpool/agent.yaml or custom path)
          3. Defaults

        Args:
            config_path: Optional path to a YAML config file.

        Returns:
            Populated AgentConfig instance.
        """
        config = cls()
        file_path = config_path or config.CONFIG_FILE

        if file_path.exists():
            try:
                with open(file_path) as f:
                    data = yaml.safe_load(f) or {}

                config.server_url = data.get("server_url", config.server_url)
                config.agent_id = data.get("agent_id", config.agent_id)
                config.user_id = data.get("user_id", config.user_id)
                config.role = data.get("role", config.role)
                config.department = data.get("department", config.department)
                config.scope = list(data.get("scope", config.scope))
                config.poll_interval = float(data.get("poll_interval", config.poll_interval))
                config.lease_seconds = int(data.get("lease_seconds", config.lease_seconds))
                config.recommend_limit = int(
                    data.get("recommend_limit", config.recommend_limit)
                )
            except (yaml.YAMLError, OSError, ValueError, TypeError) as e:
                logger.warning("Ignoring unreadable agent config %s: %s", file_path, e)

        # Environment variables override file config
        config.server_url = os.environ.get("TASKPOOL_SERVER_URL", config.server_url)
        config.agent_id = os.environ.get("TASKPOOL_AGENT_ID", config.agent_id)
        config.user_id = os.environ.get("TASKPOOL_USER_ID", config.user_id)

        if env_poll := os.environ.get("TASKPOOL_POLL_INTERVAL"):
            config.poll_interval = float(env_poll)
        if env_lease := os.environ.get("TASKPOOL_LEASE_SECONDS"):
            config.lease_seconds = int(env_lease)
        if env_limit := os.environ.get("TASKPOOL_RECOMMEND_LIMIT"):
            config.recommend_limit = int(env_limit)

        return config

    def save(self, config_path: Path | None = None) -> None:
        """Save current config to file.

        Args:
            config_path: Optional path override.
        """
        file_path = config_path or self.CONFIG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "server_url": self.server_url,
            "agent_id": self.agent_id,
            "user_id": self.user_id,
            "role": self.role,
            "department": self.department,
            "scope": self.scope,
            "poll_interval": self.poll_interval,
            "lease_seconds": self.lease_seconds,
            "recommend_limit": self.recommend_limit,
        }

        with open(file_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
