"""
Redeployer - health-checked in-place container redeployment with rollback
"""

__version__ = "0.1.0"

from .core import DeploymentOrchestrator
from .errors import DeployerError
from .models import DeploymentOutcome, DeploymentPolicy, DeploymentTarget

__all__ = [
    "DeploymentOrchestrator",
    "DeployerError",
    "DeploymentOutcome",
    "DeploymentPolicy",
    "DeploymentTarget",
]
