"""Configuration loader for Redeployer."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from redeployer.errors import DeployerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "image",
        "tag",
        "container_name",
        "backup_name",
        "port",
        "host",
        "ssh_user",
        "ssh_key",
        "ssh_port",
        "local",
        "use_sudo",
        "restart_policy",
        "health_path",
        "pull_attempts",
        "pull_delay",
        "health_attempts",
        "health_interval",
        "probe_timeout",
        "lock_dir",
        "report_file",
        "verbose",
        "log_file",
        "dry_run",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise DeployerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DeployerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DeployerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise DeployerError(f"Unknown configuration keys: {unknown_list}")

        return parsed
