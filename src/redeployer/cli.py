import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    DEFAULT_HEALTH_PATH,
    DEFAULT_LOCK_DIR,
    DEFAULT_RESTART_POLICY,
    DEFAULT_SSH_PORT,
    HEALTH_INTERVAL_SECONDS,
    HEALTH_MAX_ATTEMPTS,
    HEALTH_PROBE_TIMEOUT_SECONDS,
    PULL_MAX_ATTEMPTS,
    PULL_RETRY_DELAY_SECONDS,
)
from .core import DeploymentOrchestrator
from .errors import DeployerError
from .models import DeploymentPolicy, DeploymentTarget
from .services.config_loader import ConfigLoader
from .services.validation import ValidationService


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--image", required=False, help="Image to deploy, e.g. registry.example.com/team/app")
@click.option("--tag", required=False, help="Tag appended to --image (build number or 'latest')")
@click.option("--container-name", required=False, help="Name of the running service container")
@click.option(
    "--backup-name",
    required=False,
    help="Name the previous container is kept under until the new one is healthy "
    "(default: <container-name>_backup).",
)
@click.option("--port", required=False, type=int, help="Published port, also used for the health check")
@click.option("--host", required=False, help="Target host name or address")
@click.option("--ssh-user", required=False, help="SSH user on the target host")
@click.option("--ssh-key", required=False, type=click.Path(), help="SSH identity file")
@click.option("--ssh-port", required=False, type=int, default=None, help="SSH port (default: 22)")
@click.option(
    "--local",
    is_flag=True,
    default=None,
    help="Run runtime commands on this machine instead of over SSH.",
)
@click.option("--use-sudo", is_flag=True, default=None, help="Prefix runtime commands with sudo.")
@click.option(
    "--restart-policy",
    required=False,
    help=f"Docker restart policy for the new container (default: {DEFAULT_RESTART_POLICY})",
)
@click.option(
    "--health-path",
    required=False,
    help=f"Path probed on the published port (default: {DEFAULT_HEALTH_PATH})",
)
@click.option("--pull-attempts", required=False, type=int, default=None, help="Image pull attempts.")
@click.option(
    "--pull-delay",
    required=False,
    type=float,
    default=None,
    help="Seconds between image pull attempts.",
)
@click.option(
    "--health-attempts",
    required=False,
    type=int,
    default=None,
    help="Health probes before rolling back.",
)
@click.option(
    "--health-interval",
    required=False,
    type=float,
    default=None,
    help="Seconds between health probes.",
)
@click.option(
    "--probe-timeout",
    required=False,
    type=float,
    default=None,
    help="Timeout of a single health probe in seconds.",
)
@click.option(
    "--lock-dir",
    required=False,
    help=f"Directory on the host holding the deploy lock (default: {DEFAULT_LOCK_DIR})",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .redeployer.yml if present.",
)
@click.option("--report-file", type=click.Path(), help="Write a JSON report of this run")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Validate inputs and print the deployment plan without touching the host.",
)
def main(
    image,
    tag,
    container_name,
    backup_name,
    port,
    host,
    ssh_user,
    ssh_key,
    ssh_port,
    local,
    use_sudo,
    restart_policy,
    health_path,
    pull_attempts,
    pull_delay,
    health_attempts,
    health_interval,
    probe_timeout,
    lock_dir,
    config,
    report_file,
    verbose,
    log_file,
    dry_run,
):
    """Deploy a container image to a host, rolling back if it is unhealthy."""
    logger = logging.getLogger("redeployer")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), ".redeployer.yml")
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc

    image = _resolve_option(image, config_values, "image")
    tag = _resolve_option(tag, config_values, "tag")
    container_name = _resolve_option(container_name, config_values, "container_name")
    backup_name = _resolve_option(backup_name, config_values, "backup_name")
    port = _resolve_option(port, config_values, "port")
    host = _resolve_option(host, config_values, "host")
    ssh_user = _resolve_option(ssh_user, config_values, "ssh_user")
    ssh_key = _resolve_option(ssh_key, config_values, "ssh_key")
    ssh_port = int(_resolve_option(ssh_port, config_values, "ssh_port", default=DEFAULT_SSH_PORT))
    local = bool(_resolve_option(local, config_values, "local", default=False))
    use_sudo = bool(_resolve_option(use_sudo, config_values, "use_sudo", default=False))
    restart_policy = _resolve_option(
        restart_policy, config_values, "restart_policy", default=DEFAULT_RESTART_POLICY
    )
    health_path = _resolve_option(health_path, config_values, "health_path", default=DEFAULT_HEALTH_PATH)
    pull_attempts = int(
        _resolve_option(pull_attempts, config_values, "pull_attempts", default=PULL_MAX_ATTEMPTS)
    )
    pull_delay = float(
        _resolve_option(pull_delay, config_values, "pull_delay", default=PULL_RETRY_DELAY_SECONDS)
    )
    health_attempts = int(
        _resolve_option(health_attempts, config_values, "health_attempts", default=HEALTH_MAX_ATTEMPTS)
    )
    health_interval = float(
        _resolve_option(
            health_interval,
            config_values,
            "health_interval",
            default=HEALTH_INTERVAL_SECONDS,
        )
    )
    probe_timeout = float(
        _resolve_option(
            probe_timeout,
            config_values,
            "probe_timeout",
            default=HEALTH_PROBE_TIMEOUT_SECONDS,
        )
    )
    lock_dir = _resolve_option(lock_dir, config_values, "lock_dir", default=DEFAULT_LOCK_DIR)
    report_file = _resolve_option(report_file, config_values, "report_file")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    dry_run = bool(_resolve_option(dry_run, config_values, "dry_run", default=False))

    for option_name, value in (
        ("--image", image),
        ("--container-name", container_name),
        ("--port", port),
        ("--host", host),
    ):
        if value in (None, ""):
            raise click.ClickException(
                f"Missing required option '{option_name}' (or provide it in config)."
            )

    if not backup_name:
        backup_name = f"{container_name}_backup"

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        target = DeploymentTarget(
            image_reference=ValidationService().build_image_reference(image, tag),
            container_name=container_name,
            backup_name=backup_name,
            port=int(port),
            host=host,
            ssh_user=ssh_user,
            ssh_key=ssh_key,
            ssh_port=ssh_port,
            local=local,
            restart_policy=restart_policy,
            health_path=health_path,
            use_sudo=use_sudo,
        )
        policy = DeploymentPolicy(
            pull_attempts=pull_attempts,
            pull_delay=pull_delay,
            health_attempts=health_attempts,
            health_interval=health_interval,
            probe_timeout=probe_timeout,
        )
        orchestrator = DeploymentOrchestrator(
            target=target,
            policy=policy,
            dry_run=dry_run,
            report_file=report_file,
            lock_dir=lock_dir,
        )
    except (DeployerError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(orchestrator.run())


if __name__ == "__main__":
    main()
