"""Actionable error catalog for Redeployer."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "runtime_unavailable": {
        "what": "Docker is not available on {host} and could not be installed.",
        "next": "Install Docker on the host manually or check the SSH user's privileges.",
    },
    "pull_failed": {
        "what": "Could not pull image {image} after {attempts} attempts.",
        "next": "Check registry credentials on the host and that the tag was pushed.",
    },
    "lock_held": {
        "what": "Another deployment of '{container}' is in progress on {host}.",
        "next": "Wait for it to finish, or remove {lock_path} if the previous run was killed.",
    },
    "invalid_container_name": {
        "what": "Invalid container name: {name}",
        "next": "Use letters, digits, '_', '.' or '-', starting with a letter or digit.",
    },
    "invalid_image_reference": {
        "what": "Invalid image reference: {image}",
        "next": "Use a reference such as `registry.example.com/team/app:42`.",
    },
    "rolled_back": {
        "what": "New version of '{container}' failed its health check and was rolled back.",
        "next": "Inspect the image's startup logs; the previous version is serving traffic.",
    },
    "service_down": {
        "what": "New version of '{container}' is unhealthy and no backup could be restored.",
        "next": "The service is DOWN. Redeploy a known good image immediately.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
