"""Domain errors for Redeployer."""

from typing import Optional


class DeployerError(RuntimeError):
    """Raised when the deployment cannot continue safely."""


class CommandError(DeployerError):
    """Raised when a runtime command exits with a non-zero status."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class DeployLockError(DeployerError):
    """Raised when another deployment already holds the host lease."""
