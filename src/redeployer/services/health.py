"""HTTP health polling for a freshly started container."""

import time

import requests

from redeployer.constants import HEALTH_PROBE_TIMEOUT_SECONDS
from redeployer.models import HealthStatus


class HealthChecker:
    """Polls an endpoint until it answers without an error status.

    Only reachability is checked; the response body is never inspected.
    """

    def __init__(
        self,
        logger,
        requests_module=requests,
        probe_timeout: float = HEALTH_PROBE_TIMEOUT_SECONDS,
        sleep=time.sleep,
    ):
        self.logger = logger
        self.requests = requests_module
        self.probe_timeout = probe_timeout
        self.sleep = sleep

    def probe(self, url: str) -> bool:
        try:
            response = self.requests.get(url, timeout=self.probe_timeout, allow_redirects=True)
            response.raise_for_status()
            response.close()
            return True
        except self.requests.RequestException as exc:
            self.logger.debug("Probe of %s failed: %s", url, exc)
            return False

    def poll(self, url: str, max_attempts: int, interval: float) -> HealthStatus:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        for attempt in range(1, max_attempts + 1):
            if self.probe(url):
                self.logger.info("Health check passed on attempt %s/%s.", attempt, max_attempts)
                return HealthStatus.HEALTHY

            self.logger.info("Health check attempt %s/%s failed.", attempt, max_attempts)
            if attempt < max_attempts:
                self.sleep(interval)

        return HealthStatus.UNHEALTHY
