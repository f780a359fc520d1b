"""Host-level lease preventing concurrent deployments of one container."""

import posixpath

from redeployer.constants import DEFAULT_LOCK_DIR
from redeployer.errors import DeployerError, DeployLockError
from redeployer.errors_catalog import actionable_error


class DeployLock:
    """Directory lease created with an atomic ``mkdir`` on the target host."""

    def __init__(self, shell, container_name: str, host: str, logger, lock_dir: str = DEFAULT_LOCK_DIR):
        self.shell = shell
        self.container_name = container_name
        self.host = host
        self.logger = logger
        self.lock_path = posixpath.join(lock_dir, f"redeployer-{container_name}.lock")
        self.held = False

    def acquire(self):
        result = self.shell.run(["mkdir", self.lock_path], check=False, capture_output=True)
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if "File exists" not in stderr:
                raise DeployerError(
                    f"Could not create deploy lock {self.lock_path} on {self.host} "
                    f"({result.returncode}): {stderr}"
                )
            raise DeployLockError(
                actionable_error(
                    "lock_held",
                    container=self.container_name,
                    host=self.host,
                    lock_path=self.lock_path,
                )
            )
        self.held = True
        self.logger.debug("Acquired deploy lock %s", self.lock_path)

    def release(self):
        if not self.held:
            return
        try:
            result = self.shell.run(["rmdir", self.lock_path], check=False, capture_output=True)
        except DeployerError as exc:
            self.logger.warning("Could not release deploy lock %s: %s", self.lock_path, exc)
        else:
            if result.returncode != 0:
                self.logger.warning("Could not release deploy lock %s", self.lock_path)
        self.held = False

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
