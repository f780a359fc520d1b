import subprocess

import pytest

from redeployer.errors import CommandError, DeployerError
from redeployer.models import ContainerState
from redeployer.services.docker_runtime import DockerRuntimeService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class ScriptedShell:
    """Answers commands by their leading argv words."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def run(self, argv, check=True, capture_output=False):
        self.calls.append(argv)
        for prefix, (returncode, stdout) in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix:
                break
        else:
            returncode, stdout = 0, ""
        if check and returncode != 0:
            raise CommandError(f"Command failed ({returncode}): {' '.join(argv)}", returncode)
        return subprocess.CompletedProcess(argv, returncode, stdout=stdout, stderr="")


def _service(shell, use_sudo=False):
    return DockerRuntimeService(shell=shell, logger=DummyLogger(), console=DummyConsole(), use_sudo=use_sudo)


@pytest.mark.parametrize(
    "returncode,stdout,expected",
    [
        (0, "running\n", ContainerState.RUNNING),
        (0, "restarting\n", ContainerState.RUNNING),
        (0, "exited\n", ContainerState.STOPPED),
        (0, "created\n", ContainerState.STOPPED),
        (1, "", ContainerState.ABSENT),
    ],
)
def test_container_state_maps_inspect_status(returncode, stdout, expected):
    shell = ScriptedShell({("docker", "inspect"): (returncode, stdout)})

    assert _service(shell).container_state("app") is expected
    assert shell.calls[0] == ["docker", "inspect", "--format", "{{.State.Status}}", "app"]


def test_stop_ignores_already_stopped_container():
    shell = ScriptedShell({("docker", "stop"): (1, "")})

    _service(shell).stop("app")

    assert shell.calls == [["docker", "stop", "app"]]


def test_rename_failure_propagates():
    shell = ScriptedShell({("docker", "rename"): (1, "")})

    with pytest.raises(CommandError):
        _service(shell).rename("app", "app_backup")


def test_run_container_publishes_port_with_restart_policy():
    shell = ScriptedShell()

    _service(shell).run_container("app", "registry.example.com/app:42", 8080, "unless-stopped")

    assert shell.calls[0] == [
        "docker",
        "run",
        "-d",
        "--name",
        "app",
        "--restart",
        "unless-stopped",
        "-p",
        "8080:8080",
        "registry.example.com/app:42",
    ]


def test_remove_force_flag():
    shell = ScriptedShell()

    _service(shell).remove("app", force=True)
    _service(shell).remove("app_backup")

    assert shell.calls == [["docker", "rm", "-f", "app"], ["docker", "rm", "app_backup"]]


def test_pull_reports_result_without_raising():
    shell = ScriptedShell({("docker", "pull"): (1, "")})

    assert _service(shell).pull("app:42") is False


def test_sudo_prefixes_runtime_and_port_commands():
    shell = ScriptedShell()
    service = _service(shell, use_sudo=True)

    service.stop("app")
    service.release_port(8080)

    assert shell.calls == [["sudo", "docker", "stop", "app"], ["sudo", "fuser", "-k", "8080/tcp"]]


def test_prune_failure_is_tolerated():
    shell = ScriptedShell({("docker", "image"): (1, "")})

    _service(shell).prune_images()

    assert shell.calls == [["docker", "image", "prune", "-f"]]


def test_ensure_installed_bootstraps_missing_docker():
    class InstallingShell(ScriptedShell):
        installed = False

        def run(self, argv, check=True, capture_output=False):
            if argv[0] == "sh":
                self.installed = True
            self.responses = {("docker", "--version"): (0 if self.installed else 127, "")}
            return super().run(argv, check=check, capture_output=capture_output)

    shell = InstallingShell()

    assert _service(shell).ensure_installed() is True
    assert shell.calls[1][:2] == ["sh", "-c"]


def test_ensure_installed_skips_install_when_present():
    shell = ScriptedShell()

    assert _service(shell).ensure_installed() is False
    assert shell.calls == [["docker", "--version"]]


def test_ensure_installed_raises_when_install_does_not_help():
    shell = ScriptedShell({("docker", "--version"): (127, "")})

    with pytest.raises(DeployerError, match="still unavailable"):
        _service(shell).ensure_installed()
