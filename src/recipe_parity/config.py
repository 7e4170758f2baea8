"""Configuration utilities for RECIPE-PARITY.

Settings come from the process environment; the CLI and the pytest plugin
override them with their own options.
"""

import os
import re
from collections.abc import Mapping

from recipe_parity.service_layer.execution import DEFAULT_REPLAYS
from recipe_parity.service_layer.gate import Probe, RunEnvironment

CATALOG_ENV = "RECIPE_PARITY_CATALOG"  # pragma: no mutate
INCLUDE_DEBUG_ONLY_ENV = "RECIPE_PARITY_INCLUDE_DEBUG_ONLY"  # pragma: no mutate
RESOURCES_ENV = "RECIPE_PARITY_RESOURCES"  # pragma: no mutate
REPLAYS_ENV = "RECIPE_PARITY_REPLAYS"  # pragma: no mutate

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class CatalogModuleNotSetError(Exception):
    """Raised when the RECIPE_PARITY_CATALOG environment variable is not set."""


class InvalidSettingError(ValueError):
    """Raised when an environment setting cannot be parsed."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid {name}={value!r}: {reason}")
        self.name = name
        self.value = value


def get_catalog_module() -> str:
    """Get the dotted name of the catalog module from the environment.

    Returns:
        The value of the `RECIPE_PARITY_CATALOG` environment variable.

    Raises:
        CatalogModuleNotSetError: If `RECIPE_PARITY_CATALOG` is not set.
    """
    if not (module := os.environ.get(CATALOG_ENV)):
        raise CatalogModuleNotSetError
    return module


def get_include_debug_only() -> bool:
    """True when `RECIPE_PARITY_INCLUDE_DEBUG_ONLY` holds a truthy value."""
    return os.environ.get(INCLUDE_DEBUG_ONLY_ENV, "").strip().lower() in _TRUTHY


def get_resources() -> frozenset[str]:
    """Resources declared present by `RECIPE_PARITY_RESOURCES` (comma/space list)."""
    raw = os.environ.get(RESOURCES_ENV, "")
    return frozenset(item for item in re.split(r"[,\s]+", raw) if item)


def get_replays() -> int:
    """Number of replays per scenario from `RECIPE_PARITY_REPLAYS`.

    Raises:
        InvalidSettingError: If the value is not an integer of at least 1.
    """
    if not (raw := os.environ.get(REPLAYS_ENV, "").strip()):
        return DEFAULT_REPLAYS
    try:
        replays = int(raw)
    except ValueError as e:
        raise InvalidSettingError(REPLAYS_ENV, raw, "not an integer") from e
    if replays < 1:
        raise InvalidSettingError(REPLAYS_ENV, raw, "must be at least 1")
    return replays


def get_run_environment(probes: Mapping[str, Probe] | None = None) -> RunEnvironment:
    """Build the gate's `RunEnvironment` from the process environment.

    Args:
        probes: Availability predicates keyed by resource name.
    """
    return RunEnvironment(
        include_debug_only=get_include_debug_only(),
        resources=get_resources(),
        probes=dict(probes or {}),
    )
