"""Shared domain models for Redeployer."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import (
    DEFAULT_HEALTH_PATH,
    DEFAULT_RESTART_POLICY,
    DEFAULT_SSH_PORT,
    HEALTH_INTERVAL_SECONDS,
    HEALTH_MAX_ATTEMPTS,
    HEALTH_PROBE_TIMEOUT_SECONDS,
    PULL_MAX_ATTEMPTS,
    PULL_RETRY_DELAY_SECONDS,
)


@dataclass(frozen=True)
class DeploymentTarget:
    """Per-run deployment configuration, built once and never mutated."""

    image_reference: str
    container_name: str
    backup_name: str
    port: int
    host: str
    ssh_user: Optional[str] = None
    ssh_key: Optional[str] = None
    ssh_port: int = DEFAULT_SSH_PORT
    local: bool = False
    restart_policy: str = DEFAULT_RESTART_POLICY
    health_path: str = DEFAULT_HEALTH_PATH
    use_sudo: bool = False

    @property
    def health_url(self) -> str:
        path = self.health_path if self.health_path.startswith("/") else f"/{self.health_path}"
        return f"http://{self.host}:{self.port}{path}"


@dataclass(frozen=True)
class DeploymentPolicy:
    """Bounds for the pull retry and health polling loops."""

    pull_attempts: int = PULL_MAX_ATTEMPTS
    pull_delay: float = PULL_RETRY_DELAY_SECONDS
    health_attempts: int = HEALTH_MAX_ATTEMPTS
    health_interval: float = HEALTH_INTERVAL_SECONDS
    probe_timeout: float = HEALTH_PROBE_TIMEOUT_SECONDS


class ContainerState(Enum):
    ABSENT = "absent"
    RUNNING = "running"
    STOPPED = "stopped"


class CommandStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class HealthStatus(Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class DeploymentState(Enum):
    START = "start"
    PULLING = "pulling"
    BACKING_UP = "backing_up"
    STARTING = "starting"
    HEALTH_CHECKING = "health_checking"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling_back"
    DONE = "done"
    FAILED = "failed"


class DeploymentOutcome(Enum):
    """Result of one run. Only COMMITTED maps to a zero exit code."""

    COMMITTED = ("committed", 0)
    FAILED = ("failed", 1)
    ROLLED_BACK = ("rolled_back", 2)
    FAILED_NO_BACKUP = ("failed_no_backup", 3)

    def __init__(self, label: str, exit_code: int):
        self.label = label
        self.exit_code = exit_code

    @property
    def succeeded(self) -> bool:
        return self is DeploymentOutcome.COMMITTED
