"""Unit tests for environment-driven settings."""

import pytest

from recipe_parity import config


def test_catalog_module_must_be_set():
    with pytest.raises(config.CatalogModuleNotSetError):
        config.get_catalog_module()


def test_catalog_module_from_environment(monkeypatch):
    monkeypatch.setenv(config.CATALOG_ENV, "mypkg.parity_catalog")
    assert config.get_catalog_module() == "mypkg.parity_catalog"


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("", False), ("nope", False)],
)
def test_include_debug_only(monkeypatch, value, expected):
    monkeypatch.setenv(config.INCLUDE_DEBUG_ONLY_ENV, value)
    assert config.get_include_debug_only() is expected


def test_resources_accept_commas_and_spaces(monkeypatch):
    monkeypatch.setenv(config.RESOURCES_ENV, "jdk, gpu  InternalToolchain,")
    assert config.get_resources() == frozenset({"jdk", "gpu", "InternalToolchain"})


def test_no_resources_by_default():
    assert config.get_resources() == frozenset()


def test_replays_default_to_two():
    assert config.get_replays() == 2


def test_replays_from_environment(monkeypatch):
    monkeypatch.setenv(config.REPLAYS_ENV, " 5 ")
    assert config.get_replays() == 5


@pytest.mark.parametrize("value, reason", [("many", "not an integer"), ("0", "at least 1")])
def test_invalid_replays(monkeypatch, value, reason):
    monkeypatch.setenv(config.REPLAYS_ENV, value)
    with pytest.raises(config.InvalidSettingError, match=reason) as exc:
        config.get_replays()
    assert exc.value.name == config.REPLAYS_ENV
    assert isinstance(exc.value, ValueError)


def test_run_environment(monkeypatch):
    monkeypatch.setenv(config.INCLUDE_DEBUG_ONLY_ENV, "1")
    monkeypatch.setenv(config.RESOURCES_ENV, "jdk")

    def probe() -> bool:
        return True

    environment = config.get_run_environment({"gpu": probe})

    assert environment.include_debug_only
    assert environment.resources == frozenset({"jdk"})
    assert environment.probes == {"gpu": probe}
