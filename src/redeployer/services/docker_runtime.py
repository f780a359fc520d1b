"""Docker runtime services for Redeployer."""

from typing import List

from redeployer.constants import DOCKER_INSTALL_COMMAND
from redeployer.errors import DeployerError
from redeployer.models import ContainerState


class DockerRuntimeService:
    """Container lifecycle helpers, addressed by container name on the target host."""

    LIVE_STATUSES = {"running", "restarting"}

    def __init__(self, shell, logger, console, use_sudo: bool = False):
        self.shell = shell
        self.logger = logger
        self.console = console
        self.use_sudo = use_sudo

    def docker_cmd(self, *args: str) -> List[str]:
        cmd = ["docker", *args]
        return ["sudo", *cmd] if self.use_sudo else cmd

    def is_installed(self) -> bool:
        try:
            result = self.shell.run(self.docker_cmd("--version"), check=False, capture_output=True)
        except DeployerError as exc:
            self.logger.debug("Docker check failed: %s", exc)
            return False
        return result.returncode == 0

    def install(self):
        self.console.print("[yellow]Docker not found on host, installing...[/yellow]")
        self.logger.info("Installing Docker with: %s", DOCKER_INSTALL_COMMAND)
        self.shell.run(["sh", "-c", DOCKER_INSTALL_COMMAND], capture_output=True)

    def ensure_installed(self) -> bool:
        """Returns True when an install was needed."""
        if self.is_installed():
            return False
        self.install()
        if not self.is_installed():
            raise DeployerError("Docker is still unavailable after installation.")
        return True

    def container_state(self, name: str) -> ContainerState:
        result = self.shell.run(
            self.docker_cmd("inspect", "--format", "{{.State.Status}}", name),
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return ContainerState.ABSENT

        status = (result.stdout or "").strip().lower()
        if status in self.LIVE_STATUSES:
            return ContainerState.RUNNING
        return ContainerState.STOPPED

    def exists(self, name: str) -> bool:
        return self.container_state(name) is not ContainerState.ABSENT

    def pull(self, image: str) -> bool:
        result = self.shell.run(self.docker_cmd("pull", image), check=False, capture_output=True)
        return result.returncode == 0

    def stop(self, name: str):
        result = self.shell.run(self.docker_cmd("stop", name), check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.debug("Ignoring stop failure for %s (already stopped?)", name)

    def start(self, name: str):
        self.shell.run(self.docker_cmd("start", name), capture_output=True)

    def rename(self, current_name: str, new_name: str):
        self.shell.run(self.docker_cmd("rename", current_name, new_name), capture_output=True)

    def remove(self, name: str, force: bool = False):
        args = ["rm", "-f", name] if force else ["rm", name]
        self.shell.run(self.docker_cmd(*args), capture_output=True)

    def run_container(self, name: str, image: str, port: int, restart_policy: str):
        self.shell.run(
            self.docker_cmd(
                "run",
                "-d",
                "--name",
                name,
                "--restart",
                restart_policy,
                "-p",
                f"{port}:{port}",
                image,
            ),
            capture_output=True,
        )

    def release_port(self, port: int):
        cmd = ["fuser", "-k", f"{port}/tcp"]
        if self.use_sudo:
            cmd = ["sudo", *cmd]
        result = self.shell.run(cmd, check=False, capture_output=True)
        if result.returncode == 0:
            self.logger.warning("Killed process holding port %s.", port)

    def prune_images(self):
        result = self.shell.run(self.docker_cmd("image", "prune", "-f"), check=False, capture_output=True)
        if result.returncode != 0:
            self.logger.warning("Image prune failed; unused images were left on the host.")
