"""Web server configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .tasks.service import DEFAULT_LEASE_SECONDS, MAX_LEASE_SECONDS, MIN_LEASE_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class WebConfig:
    """Configuration for the web server."""

    host: str = "0.0.0.0"
    port: int = 8000
    db_path: str = ".taskpool/tasks.db"
    cors_origins: list[str] | None = None
    debug: bool = False
    log_level: str = "INFO"
    default_lease_seconds: int = DEFAULT_LEASE_SECONDS

    @classmethod
    def load(cls) -> WebConfig:
        config = cls()
        config.host = os.environ.get("TASKPOOL_HOST", config.host)
        config.port = int(os.environ.get("TASKPOOL_PORT", config.port))
        config.db_path = os.environ.get("TASKPOOL_DB_PATH", config.db_path)
        config.debug = os.environ.get("TASKPOOL_DEBUG", "").lower() in ("1", "true")
        config.log_level = os.environ.get("TASKPOOL_LOG_LEVEL", config.log_level).upper()
        origins = os.environ.get("TASKPOOL_CORS_ORIGINS")
        if origins:
            config.cors_origins = [o.strip() for o in origins.split(",")]

        if env_lease := os.environ.get("TASKPOOL_DEFAULT_LEASE_SECONDS"):
            lease = int(env_lease)
            if MIN_LEASE_SECONDS <= lease <= MAX_LEASE_SECONDS:
                config.default_lease_seconds = lease
            else:
                logger.warning(
                    "TASKPOOL_DEFAULT_LEASE_SECONDS=%s is outside [%d, %d]; using %d",
                    env_lease,
                    MIN_LEASE_SECONDS,
                    MAX_LEASE_SECONDS,
                    config.default_lease_seconds,
                )

        return config
