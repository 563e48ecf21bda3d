"""Driver configuration layering and registry tests."""
from __future__ import annotations

import logging

import pytest

from crucible.core.exceptions import ConfigError
from crucible.domain.driver import (
    DRIVERS,
    DriverConfig,
    DummyDriver,
    SSHDriver,
    StaticSSHDriver,
    driver_for_plugin,
    layer_configs,
    resolve_config,
)


def test_caller_value_beats_class_default() -> None:
    assert resolve_config({"port": 22}, defaults={"port": 2222}) == {"port": 22}


def test_falsy_caller_value_still_wins() -> None:
    driver = StaticSSHDriver({"use_sudo": False, "port": 0})

    assert driver["use_sudo"] is False
    assert driver["port"] == 0


def test_defaults_fill_missing_keys() -> None:
    driver = DummyDriver({"sleep": 3})

    assert driver["sleep"] == 3
    assert driver["random_failure"] is False


def test_defaults_are_inherited_along_the_hierarchy() -> None:
    defaults = StaticSSHDriver.defaults()

    assert defaults["port"] == 22
    assert defaults["username"] == "root"
    assert "hostname" in defaults
    assert "hostname" not in SSHDriver.defaults()


def test_class_defaults_are_not_mutated_by_instances() -> None:
    DummyDriver({"sleep": 9})

    assert DummyDriver.DEFAULTS["sleep"] == 0
    with pytest.raises(TypeError):
        DummyDriver.DEFAULTS["sleep"] = 1  # type: ignore[index]


def test_driver_config_is_read_only() -> None:
    config = DriverConfig({"a": 1})

    with pytest.raises(TypeError):
        config["a"] = 2  # type: ignore[index]
    assert dict(config) == {"a": 1}


def test_missing_key_reads_as_none() -> None:
    assert DummyDriver({})["nope"] is None


def test_layers_apply_left_to_right() -> None:
    common = {"username": "vagrant", "port": 22}
    platform = {"port": 2222}

    assert layer_configs(common, None, platform) == {"username": "vagrant", "port": 2222}

    config = DriverConfig.build({"port": 1, "use_sudo": True}, common, platform)
    assert dict(config) == {"port": 2222, "use_sudo": True, "username": "vagrant"}


def test_password_hidden_in_repr() -> None:
    assert "s3cret" not in repr(DriverConfig({"password": "s3cret"}))


def test_registry_builds_known_plugins() -> None:
    assert set(DRIVERS) == {"dummy", "static"}
    assert isinstance(driver_for_plugin("dummy", {"sleep": 1}), DummyDriver)
    assert isinstance(driver_for_plugin("static", {"hostname": "h"}), StaticSSHDriver)


def test_registry_rejects_unknown_plugin() -> None:
    with pytest.raises(ConfigError, match="vagrant"):
        driver_for_plugin("vagrant", {})


def test_driver_config_is_built_from_defaults_and_options() -> None:
    driver = DummyDriver({"sleep": 2})

    assert isinstance(driver.config, DriverConfig)
    assert dict(driver.config) == dict(DriverConfig.build(DummyDriver.defaults(), {"sleep": 2}))


def test_unbound_driver_keeps_partial_output(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO)
    driver = DummyDriver()

    assert driver.logger is driver.logger
    driver.logger.write("half a li")
    driver.logger.write("ne\n")

    assert "half a line" in [r.getMessage() for r in caplog.records]
