"""Default deployment policy values."""

PULL_MAX_ATTEMPTS = 3
PULL_RETRY_DELAY_SECONDS = 5.0

HEALTH_MAX_ATTEMPTS = 12
HEALTH_INTERVAL_SECONDS = 5.0
HEALTH_PROBE_TIMEOUT_SECONDS = 5.0

DEFAULT_RESTART_POLICY = "unless-stopped"
DEFAULT_HEALTH_PATH = "/"
DEFAULT_SSH_PORT = 22
DEFAULT_LOCK_DIR = "/tmp"

DOCKER_INSTALL_COMMAND = "curl -fsSL https://get.docker.com | sh"
