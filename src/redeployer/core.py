import logging
import uuid
from dataclasses import asdict
from typing import Optional

from rich.console import Console

from .constants import DEFAULT_LOCK_DIR
from .errors import DeployerError
from .errors_catalog import actionable_error
from .models import (
    CommandStatus,
    DeploymentOutcome,
    DeploymentPolicy,
    DeploymentState,
    DeploymentTarget,
    HealthStatus,
)
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerRuntimeService
from .services.health import HealthChecker
from .services.lock import DeployLock
from .services.report import RunReport
from .services.remote_shell import RemoteShell
from .services.retry import RetryExecutor
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("redeployer")


class DeploymentOrchestrator:
    """Replaces one named container on one host, rolling back when unhealthy."""

    def __init__(
        self,
        target: DeploymentTarget,
        policy: Optional[DeploymentPolicy] = None,
        dry_run: bool = False,
        report_file: Optional[str] = None,
        lock_dir: str = DEFAULT_LOCK_DIR,
        shell=None,
        runtime=None,
        health_checker=None,
        retry_executor=None,
        deploy_lock=None,
    ):
        self.target = target
        self.policy = policy or DeploymentPolicy()
        self.dry_run = dry_run

        self.validation_service = ValidationService()
        self.validation_service.validate_target(self.target)
        self.validation_service.validate_policy(self.policy)

        self.run_id = uuid.uuid4().hex[:10]
        self.state = DeploymentState.START
        self.outcome: Optional[DeploymentOutcome] = None
        self.current_step_name: Optional[str] = None

        self.shell = shell or RemoteShell(target=self.target, command_runner=CommandRunner(logger=logger))
        self.runtime = runtime or DockerRuntimeService(
            shell=self.shell,
            logger=logger,
            console=console,
            use_sudo=self.target.use_sudo,
        )
        self.health_checker = health_checker or HealthChecker(
            logger=logger,
            probe_timeout=self.policy.probe_timeout,
        )
        self.retry_executor = retry_executor or RetryExecutor(logger=logger)
        self.deploy_lock = deploy_lock or DeployLock(
            shell=self.shell,
            container_name=self.target.container_name,
            host=self.target.host,
            logger=logger,
            lock_dir=lock_dir,
        )
        self.report = RunReport(path=report_file, logger=logger)

    def _set_state(self, state: DeploymentState):
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.report.begin_step(name)
        self.current_step_name = name

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            self.report.end_step("failed", error=str(exc))
            raise

        self.report.end_step("success")
        self.current_step_name = None
        return result

    def ensure_runtime(self):
        console.print(f"[blue]Checking Docker on {self.target.host}...[/blue]")
        try:
            installed_now = self.runtime.ensure_installed()
        except DeployerError as exc:
            raise DeployerError(actionable_error("runtime_unavailable", host=self.target.host)) from exc
        if installed_now:
            console.print("[green]Docker installed.[/green]")

    def pull_image(self) -> CommandStatus:
        image = self.target.image_reference
        console.print(f"[blue]Pulling {image}...[/blue]")
        return self.retry_executor.execute(
            lambda: self.runtime.pull(image),
            max_attempts=self.policy.pull_attempts,
            delay=self.policy.pull_delay,
            description=f"Pull of {image}",
        )

    def back_up_current(self) -> bool:
        """Retires the current container under the backup name. Returns True if one was retired."""
        name = self.target.container_name
        backup = self.target.backup_name

        if not self.runtime.exists(name):
            if self.runtime.exists(backup):
                logger.warning(
                    "Found leftover backup '%s' from an interrupted run; keeping it for rollback.",
                    backup,
                )
            else:
                logger.info("No container named '%s'; first deployment, skipping backup.", name)
            return False

        if self.runtime.exists(backup):
            logger.warning("Removing stale backup container '%s'.", backup)
            self.runtime.remove(backup, force=True)

        console.print(f"[blue]Backing up '{name}' as '{backup}'...[/blue]")
        self.runtime.stop(name)
        try:
            self.runtime.rename(name, backup)
        except DeployerError:
            logger.error("Could not rename '%s'; restarting it in place.", name)
            self.runtime.start(name)
            raise
        self.runtime.stop(backup)
        self.report.mark_backup_created()
        return True

    def start_new(self) -> bool:
        console.print(
            f"[blue]Starting '{self.target.container_name}' on port {self.target.port}...[/blue]"
        )
        self.runtime.release_port(self.target.port)
        try:
            self.runtime.run_container(
                name=self.target.container_name,
                image=self.target.image_reference,
                port=self.target.port,
                restart_policy=self.target.restart_policy,
            )
        except DeployerError as exc:
            logger.error("New container failed to start: %s", exc)
            return False
        return True

    def check_health(self) -> HealthStatus:
        url = self.target.health_url
        console.print(f"[blue]Waiting for {url} to become healthy...[/blue]")
        return self.health_checker.poll(
            url,
            max_attempts=self.policy.health_attempts,
            interval=self.policy.health_interval,
        )

    def commit(self):
        backup = self.target.backup_name
        try:
            if self.runtime.exists(backup):
                self.runtime.remove(backup, force=True)
                logger.info("Removed backup container '%s'.", backup)
            self.runtime.prune_images()
        except DeployerError as exc:
            logger.warning("Cleanup after commit was incomplete: %s", exc)

    def roll_back(self) -> DeploymentOutcome:
        name = self.target.container_name
        backup = self.target.backup_name
        console.print(f"[yellow]Rolling back '{name}' to '{backup}'...[/yellow]")

        try:
            if self.runtime.exists(name):
                self.runtime.remove(name, force=True)

            if not self.runtime.exists(backup):
                logger.critical("No backup of '%s' exists; the service is down.", name)
                return DeploymentOutcome.FAILED_NO_BACKUP

            self.runtime.rename(backup, name)
            self.runtime.start(name)
        except DeployerError as exc:
            logger.critical("Rollback of '%s' failed, the service is down: %s", name, exc)
            return DeploymentOutcome.FAILED_NO_BACKUP

        logger.info("Restored previous '%s' from backup.", name)
        return DeploymentOutcome.ROLLED_BACK

    def _deploy(self) -> DeploymentOutcome:
        self._set_state(DeploymentState.PULLING)
        pull_status = self._run_step("pull_image", self.pull_image)
        if pull_status is CommandStatus.FAILURE:
            raise DeployerError(
                actionable_error(
                    "pull_failed",
                    image=self.target.image_reference,
                    attempts=str(self.policy.pull_attempts),
                )
            )

        self._set_state(DeploymentState.BACKING_UP)
        try:
            self._run_step("back_up_current", self.back_up_current)
        except Exception:
            if not self._service_retired():
                raise
            logger.error("Backup of '%s' was interrupted after the rename.", self.target.container_name)
            return self._restore()

        health = HealthStatus.UNHEALTHY
        try:
            self._set_state(DeploymentState.STARTING)
            started = self._run_step("start_new", self.start_new)
            if started:
                self._set_state(DeploymentState.HEALTH_CHECKING)
                health = self._run_step("health_check", self.check_health)
        except Exception as exc:
            logger.error("Step %s failed: %s", self.current_step_name, exc)
            health = HealthStatus.UNHEALTHY

        if health is HealthStatus.HEALTHY:
            self._set_state(DeploymentState.COMMITTING)
            self._run_step("commit", self.commit)
            self._set_state(DeploymentState.DONE)
            return DeploymentOutcome.COMMITTED

        return self._restore()

    def _service_retired(self) -> bool:
        """True when the current container is gone and only its backup remains."""
        try:
            return not self.runtime.exists(self.target.container_name) and self.runtime.exists(
                self.target.backup_name
            )
        except DeployerError:
            return False

    def _restore(self) -> DeploymentOutcome:
        self._set_state(DeploymentState.ROLLING_BACK)
        outcome = self._run_step("roll_back", self.roll_back)
        self._set_state(DeploymentState.FAILED)
        return outcome

    def execute(self) -> DeploymentOutcome:
        outcome = DeploymentOutcome.FAILED
        error: Optional[str] = None

        try:
            logger.info(
                "Deploying %s as '%s' on %s (run %s)",
                self.target.image_reference,
                self.target.container_name,
                self.target.host,
                self.run_id,
            )
            self.report.begin(run_id=self.run_id, target=asdict(self.target))

            self._run_step("ensure_runtime", self.ensure_runtime)
            self._run_step("acquire_lock", self.deploy_lock.acquire)
            outcome = self._deploy()

        except KeyboardInterrupt:
            console.print("[bold red]Deployment cancelled by user.[/bold red]")
            logger.warning(
                "Cancelled during '%s'; check whether '%s' needs to be restored manually.",
                self.state.value,
                self.target.backup_name,
            )
            error = "Deployment cancelled by user."
        except DeployerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error("Step %s failed: %s", self.current_step_name or "run", exc)
            error = str(exc)
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            error = str(exc)
        finally:
            self.deploy_lock.release()
            self.shell.close()

        failed_in = self.state
        if outcome is DeploymentOutcome.FAILED:
            self._set_state(DeploymentState.FAILED)
        self.outcome = outcome
        self._report(outcome, failed_in)
        self.report.finish(outcome.label, succeeded=outcome.succeeded, error=error)
        return outcome

    def _report(self, outcome: DeploymentOutcome, failed_in: DeploymentState):
        name = self.target.container_name
        containers_touched = failed_in not in (DeploymentState.START, DeploymentState.PULLING)
        if outcome is DeploymentOutcome.COMMITTED:
            console.print(
                f"[bold green]Deployed {self.target.image_reference} as '{name}'.[/bold green]"
            )
        elif outcome is DeploymentOutcome.ROLLED_BACK:
            console.print(f"[bold yellow]{actionable_error('rolled_back', container=name)}[/bold yellow]")
        elif outcome is DeploymentOutcome.FAILED_NO_BACKUP:
            console.print(f"[bold red]{actionable_error('service_down', container=name)}[/bold red]")
        elif containers_touched:
            console.print(
                f"[bold red]Deployment of '{name}' failed while {failed_in.value}; "
                f"check '{name}' and '{self.target.backup_name}' on {self.target.host}.[/bold red]"
            )
        else:
            console.print(f"[bold red]Deployment of '{name}' failed; no containers were changed.[/bold red]")

    def print_plan(self):
        name = self.target.container_name
        backup = self.target.backup_name
        port = self.target.port
        steps = [
            self.runtime.docker_cmd("--version"),
            ["mkdir", self.deploy_lock.lock_path],
            self.runtime.docker_cmd("pull", self.target.image_reference),
            self.runtime.docker_cmd("inspect", "--format", "{{.State.Status}}", name),
            self.runtime.docker_cmd("stop", name),
            self.runtime.docker_cmd("rename", name, backup),
            self.runtime.docker_cmd("stop", backup),
            ["fuser", "-k", f"{port}/tcp"],
            self.runtime.docker_cmd(
                "run", "-d", "--name", name, "--restart", self.target.restart_policy,
                "-p", f"{port}:{port}", self.target.image_reference,
            ),
        ]

        console.print("[bold blue]Dry run: planned deployment[/bold blue]")
        for index, argv in enumerate(steps, start=1):
            console.print(f"  {index}. {self.shell.describe(argv)}", markup=False, highlight=False)
        console.print(
            f"  then poll {self.target.health_url} up to {self.policy.health_attempts} times "
            f"every {self.policy.health_interval:g}s; remove '{backup}' when healthy, "
            f"restore it otherwise.",
            markup=False,
        )

    def run(self) -> int:
        if self.dry_run:
            self.print_plan()
            return 0
        return self.execute().exit_code
