"""Executes runtime commands on the deployment host."""

import shlex
import subprocess
from typing import List, Optional

from fabric import Connection
from paramiko.ssh_exception import SSHException

from redeployer.errors import CommandError, DeployerError
from redeployer.models import DeploymentTarget


class RemoteShell:
    """Runs argv lists on the target host through a fabric connection.

    In local mode the argv goes to the ``command_runner`` instead and no SSH
    connection is opened. Results come back as ``subprocess.CompletedProcess``
    either way so callers read ``returncode``/``stdout``/``stderr`` alike.
    """

    CONNECT_TIMEOUT = 10

    def __init__(self, target: DeploymentTarget, command_runner=None):
        self.target = target
        self.command_runner = command_runner
        self._connection: Optional[Connection] = None

    @property
    def destination(self) -> str:
        if self.target.ssh_user:
            return f"{self.target.ssh_user}@{self.target.host}"
        return self.target.host

    def _get_connection(self) -> Connection:
        if self._connection is None:
            connect_kwargs = {"allow_agent": True, "look_for_keys": True}
            if self.target.ssh_key:
                connect_kwargs["key_filename"] = self.target.ssh_key
            self._connection = Connection(
                host=self.target.host,
                user=self.target.ssh_user,
                port=self.target.ssh_port,
                connect_timeout=self.CONNECT_TIMEOUT,
                connect_kwargs=connect_kwargs,
            )
        return self._connection

    def describe(self, argv: List[str]) -> str:
        if self.target.local:
            return shlex.join(argv)
        return f"[{self.destination}] {shlex.join(argv)}"

    def run(
        self,
        argv: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        if self.target.local:
            return self.command_runner.run(argv, check=check, capture_output=capture_output)

        command = shlex.join(argv)
        try:
            result = self._get_connection().run(command, hide=True, warn=True)
        except (OSError, SSHException) as exc:
            raise DeployerError(f"Could not reach {self.destination}: {exc}") from exc

        if check and result.failed:
            message = f"Command failed on {self.destination} ({result.return_code}): {command}"
            if result.stderr:
                message = f"{message}\n{result.stderr.strip()}"
            raise CommandError(message, returncode=result.return_code)

        return subprocess.CompletedProcess(
            argv,
            result.return_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None
