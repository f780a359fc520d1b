import pytest

from redeployer.errors import DeployerError
from redeployer.services.config_loader import ConfigLoader


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".redeployer.yml"
    config_file.write_text(
        "image: registry.example.com/app\ntag: '42'\nport: 8080\nhost: app01\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["image"] == "registry.example.com/app"
    assert loaded["tag"] == "42"
    assert loaded["port"] == 8080


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".redeployer.yml"
    config_file.write_text("replicas: 3\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(DeployerError, match="Unknown configuration keys: replicas"):
        loader.load(str(config_file))


def test_config_loader_rejects_non_mapping(tmp_path):
    config_file = tmp_path / ".redeployer.yml"
    config_file.write_text("- app\n- web\n", encoding="utf-8")

    with pytest.raises(DeployerError, match="YAML mapping"):
        ConfigLoader().load(str(config_file))


def test_config_loader_missing_file(tmp_path):
    with pytest.raises(DeployerError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_config_loader_empty_inputs(tmp_path):
    empty = tmp_path / "empty.yml"
    empty.write_text("", encoding="utf-8")

    assert ConfigLoader().load(None) == {}
    assert ConfigLoader().load(str(empty)) == {}
