import pytest

from redeployer.errors import DeployerError
from redeployer.models import DeploymentPolicy, DeploymentTarget
from redeployer.services.validation import ValidationService


def _target(**overrides):
    values = {
        "image_reference": "registry.example.com:5000/team/app:42",
        "container_name": "app",
        "backup_name": "app_backup",
        "port": 8080,
        "host": "app01.example.com",
    }
    values.update(overrides)
    return DeploymentTarget(**values)


def test_valid_target_passes():
    ValidationService().validate_target(_target())


@pytest.mark.parametrize(
    "image",
    ["app", "app:latest", "team/app:42", "localhost:5000/app", "ghcr.io/org/app-name:1.2.3"],
)
def test_accepts_common_image_references(image):
    ValidationService().validate_image_reference(image)


@pytest.mark.parametrize("image", ["", "App:latest", "team//app", "app:bad tag", "app:"])
def test_rejects_malformed_image_references(image):
    with pytest.raises(DeployerError, match="Invalid image reference"):
        ValidationService().validate_image_reference(image)


@pytest.mark.parametrize("name", ["", "-app", "app name", "app/x"])
def test_rejects_invalid_container_names(name):
    with pytest.raises(DeployerError, match="Invalid container name"):
        ValidationService().validate_target(_target(container_name=name))


def test_rejects_backup_name_equal_to_container_name():
    with pytest.raises(DeployerError, match="Backup name must differ"):
        ValidationService().validate_target(_target(backup_name="app"))


@pytest.mark.parametrize("port", [0, 65536, -1])
def test_rejects_out_of_range_ports(port):
    with pytest.raises(DeployerError, match="Port must be between"):
        ValidationService().validate_target(_target(port=port))


def test_rejects_missing_host():
    with pytest.raises(DeployerError, match="host"):
        ValidationService().validate_target(_target(host=""))


def test_rejects_no_restart_policy():
    with pytest.raises(DeployerError, match="not allowed"):
        ValidationService().validate_target(_target(restart_policy="no"))


def test_accepts_on_failure_with_retry_count():
    ValidationService().validate_target(_target(restart_policy="on-failure:3"))


def test_build_image_reference_appends_tag():
    service = ValidationService()

    assert service.build_image_reference("registry.example.com:5000/app", "42") == (
        "registry.example.com:5000/app:42"
    )
    assert service.build_image_reference("app:7", None) == "app:7"


def test_build_image_reference_rejects_double_tag():
    with pytest.raises(DeployerError, match="already has a tag"):
        ValidationService().build_image_reference("app:7", "8")


@pytest.mark.parametrize(
    "policy",
    [
        DeploymentPolicy(pull_attempts=0),
        DeploymentPolicy(health_attempts=0),
        DeploymentPolicy(pull_delay=-1),
        DeploymentPolicy(probe_timeout=0),
    ],
)
def test_rejects_invalid_policies(policy):
    with pytest.raises(DeployerError):
        ValidationService().validate_policy(policy)
