"""Bounded fixed-delay retry for runtime commands."""

import time
from typing import Callable

from redeployer.errors import DeployerError
from redeployer.models import CommandStatus


class RetryExecutor:
    """Re-runs a command until it succeeds or the attempt budget is spent."""

    def __init__(self, logger, sleep=time.sleep):
        self.logger = logger
        self.sleep = sleep

    def execute(
        self,
        command: Callable[[], bool],
        max_attempts: int,
        delay: float,
        description: str = "command",
    ) -> CommandStatus:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if delay < 0:
            raise ValueError("delay must not be negative")

        attempt = 1
        while True:
            try:
                succeeded = bool(command())
            except DeployerError as exc:
                self.logger.debug("%s raised: %s", description, exc)
                succeeded = False

            if succeeded:
                return CommandStatus.SUCCESS

            if attempt >= max_attempts:
                self.logger.error("%s failed after %s attempts.", description, max_attempts)
                return CommandStatus.FAILURE

            attempt += 1
            self.logger.warning(
                "%s failed, retrying in %.1fs (attempt %s/%s)",
                description,
                delay,
                attempt,
                max_attempts,
            )
            self.sleep(delay)
