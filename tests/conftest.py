"""Global pytest fixtures for RECIPE-PARITY."""

from __future__ import annotations

import pytest

from recipe_parity import config

pytest_plugins = [
    "pytester",
    "tests.fixtures.harness",
    "recipe_parity.pytest_plugin",
]

HARNESS_ENV_VARS = (
    config.CATALOG_ENV,
    config.INCLUDE_DEBUG_ONLY_ENV,
    config.RESOURCES_ENV,
    config.REPLAYS_ENV,
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep harness settings from the developer's shell out of every test."""
    for name in HARNESS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
