"""Input validation helpers for Redeployer."""

import re

from redeployer.errors import DeployerError
from redeployer.errors_catalog import actionable_error
from redeployer.models import DeploymentPolicy, DeploymentTarget


class ValidationService:
    """Validates deployment targets and loop policies before any host access."""

    CONTAINER_NAME_PATTERN = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9_.-]*")
    IMAGE_REFERENCE_PATTERN = re.compile(
        r"[a-z0-9]+(?:[._-][a-z0-9]+)*(?::[0-9]+)?"
        r"(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*"
        r"(?::[A-Za-z0-9_][A-Za-z0-9_.-]{0,127})?"
        r"(?:@sha256:[a-f0-9]{64})?"
    )
    RESTART_POLICIES = ("no", "always", "unless-stopped", "on-failure")

    def build_image_reference(self, image: str, tag=None) -> str:
        image = (image or "").strip()
        if not tag:
            return image
        last_segment = image.rsplit("/", 1)[-1]
        if ":" in last_segment:
            raise DeployerError(f"Image '{image}' already has a tag; do not pass --tag as well.")
        return f"{image}:{tag}"

    def validate_container_name(self, name: str):
        if not name or not self.CONTAINER_NAME_PATTERN.fullmatch(name):
            raise DeployerError(actionable_error("invalid_container_name", name=str(name)))

    def validate_image_reference(self, image: str):
        if not image or not self.IMAGE_REFERENCE_PATTERN.fullmatch(image):
            raise DeployerError(actionable_error("invalid_image_reference", image=str(image)))

    def validate_target(self, target: DeploymentTarget):
        self.validate_image_reference(target.image_reference)
        self.validate_container_name(target.container_name)
        self.validate_container_name(target.backup_name)

        if target.container_name == target.backup_name:
            raise DeployerError("Backup name must differ from the container name.")

        if not 1 <= target.port <= 65535:
            raise DeployerError(f"Port must be between 1 and 65535, got {target.port}.")
        if not 1 <= target.ssh_port <= 65535:
            raise DeployerError(f"SSH port must be between 1 and 65535, got {target.ssh_port}.")

        if not target.host or any(c.isspace() for c in target.host):
            raise DeployerError("A host name or address is required.")

        restart_base = target.restart_policy.split(":", 1)[0]
        if restart_base not in self.RESTART_POLICIES:
            raise DeployerError(
                f"Unsupported restart policy '{target.restart_policy}'. "
                f"Use one of: {', '.join(self.RESTART_POLICIES)}."
            )
        if restart_base == "no":
            raise DeployerError("Restart policy 'no' is not allowed for a deployed service.")

    def validate_policy(self, policy: DeploymentPolicy):
        if policy.pull_attempts < 1:
            raise DeployerError("Pull attempts must be at least 1.")
        if policy.health_attempts < 1:
            raise DeployerError("Health check attempts must be at least 1.")
        if policy.pull_delay < 0 or policy.health_interval < 0:
            raise DeployerError("Retry delays must not be negative.")
        if policy.probe_timeout <= 0:
            raise DeployerError("Probe timeout must be positive.")
