"""pytest integration for the parity harness.

Enable it with ``pytest_plugins = ["recipe_parity.pytest_plugin"]`` in a
``conftest.py`` or with ``-p recipe_parity.pytest_plugin``.

Two styles are supported.

Catalog-driven
    Point ``--parity-catalog`` (or the ``parity_catalog`` ini key, or
    ``RECIPE_PARITY_CATALOG``) at a catalog module, then write one test that
    requests ``parity_unit``; it is parametrized with every planned unit::

        def test_recipe_parity(parity_unit, parity_check):
            parity_check(parity_unit)

Class-driven
    Mark a test class with the backend it targets and request
    ``parity_parser``; the backend is resolved through the shared resolver,
    so it is constructed once per session no matter how many classes use it::

        @pytest.mark.parity_backend("V11")
        class TestAddImportV11(AddImportBehaviour):
            ...

Debug-only units and ``@pytest.mark.debug_only`` classes are skipped at
collection time with reason ``GateRejected`` unless ``--parity-include-debug``
is given or their resource is available, so no fixture ever resolves their
backend. Backend resolution failures surface as setup errors.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from recipe_parity import config as settings
from recipe_parity.bootstrap import Harness, bootstrap, load_catalog
from recipe_parity.domain.unit import Reason, TestUnit
from recipe_parity.interfaces.parser import Parser
from recipe_parity.service_layer.gate import ExecutionGate

# pylint: disable=redefined-outer-name

GATE_REJECTED = Reason.GATE_REJECTED.value
UNIT_ARG = "parity_unit"

_HARNESS_KEY = pytest.StashKey[Harness]()
_PLAN_KEY = pytest.StashKey[list[tuple[TestUnit, bool]]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the harness command-line options and ini keys."""
    group = parser.getgroup("recipe-parity", "recipe parity harness")
    group.addoption(
        "--parity-catalog",
        action="store",
        dest="parity_catalog",
        default=None,
        help="Dotted module whose register(harness) builds the parity catalog.",
    )
    group.addoption(
        "--parity-include-debug",
        action="store_true",
        dest="parity_include_debug",
        default=False,
        help="Run debug-only bindings and classes.",
    )
    group.addoption(
        "--parity-resource",
        action="append",
        dest="parity_resources",
        default=[],
        help="Declare an expensive resource as available. Repeatable.",
    )
    parser.addini(
        "parity_catalog",
        help="Dotted module whose register(harness) builds the parity catalog.",
        default="",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the harness markers."""
    config.addinivalue_line(
        "markers",
        "parity_backend(identity): resolve the parity_parser fixture to the "
        "backend registered as IDENTITY.",
    )
    config.addinivalue_line(
        "markers",
        "debug_only(resource=None): skip unless debug-only runs are opted in "
        "or RESOURCE (default: the parity_backend identity) is available.",
    )


def get_harness(config: pytest.Config) -> Harness:
    """Return the session harness, building it and loading the catalog once."""
    if (harness := config.stash.get(_HARNESS_KEY, None)) is not None:
        return harness

    base = settings.get_run_environment()
    environment = base.override(
        include_debug_only=base.include_debug_only
        or bool(config.getoption("parity_include_debug")),
        resources=config.getoption("parity_resources") or (),
    )
    harness = bootstrap(environment)
    catalog = (
        config.getoption("parity_catalog")
        or config.getini("parity_catalog")
        or _catalog_from_env()
    )
    if catalog:
        load_catalog(harness, catalog)
    config.stash[_HARNESS_KEY] = harness
    return harness


def _catalog_from_env() -> str | None:
    try:
        return settings.get_catalog_module()
    except settings.CatalogModuleNotSetError:
        return None


def _planned_units(config: pytest.Config) -> list[tuple[TestUnit, bool]]:
    """Planned units with their gate decision, computed once per session."""
    if (planned := config.stash.get(_PLAN_KEY, None)) is not None:
        return planned
    harness = get_harness(config)
    planned = []
    for entry in harness.plan():
        runs = harness.should_run(entry.binding)
        planned.extend((unit, runs) for unit in entry.units)
    config.stash[_PLAN_KEY] = planned
    return planned


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    """Parametrize ``parity_unit`` with every planned test unit."""
    if UNIT_ARG not in metafunc.fixturenames:
        return
    params = [
        pytest.param(
            unit,
            id=str(unit.key),
            marks=() if runs else pytest.mark.skip(reason=GATE_REJECTED),
        )
        for unit, runs in _planned_units(metafunc.config)
    ]
    metafunc.parametrize(UNIT_ARG, params)


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip ``debug_only`` items the execution gate rejects."""
    for item in items:
        if (marker := item.get_closest_marker("debug_only")) is None:
            continue
        resource = marker.kwargs.get("resource") or (
            marker.args[0] if marker.args else _marked_backend(item)
        )
        environment = get_harness(config).environment
        if not ExecutionGate.admits(True, resource or "", environment):
            item.add_marker(pytest.mark.skip(reason=GATE_REJECTED))


def _marked_backend(node: pytest.Item) -> str | None:
    if (marker := node.get_closest_marker("parity_backend")) is None:
        return None
    if not marker.args:
        raise pytest.UsageError(f"{node.nodeid}: parity_backend needs an identity")
    return str(marker.args[0])


@pytest.fixture(scope="session")
def parity_harness(pytestconfig: pytest.Config) -> Harness:
    """The session-wide harness."""
    return get_harness(pytestconfig)


@pytest.fixture
def parity_parser(request: pytest.FixtureRequest, parity_harness: Harness) -> Parser:
    """The backend for the current unit, or for the closest ``parity_backend`` mark.

    Resolution goes through the session resolver, so each backend is
    constructed at most once per session.
    """
    callspec = getattr(request.node, "callspec", None)
    if callspec is not None and UNIT_ARG in callspec.params:
        identity = callspec.params[UNIT_ARG].key.backend
    elif (identity := _marked_backend(request.node)) is None:
        pytest.fail(
            "parity_parser needs a parity_unit parameter or a "
            "@pytest.mark.parity_backend(identity) mark",
            pytrace=False,
        )
    return parity_harness.resolver.resolve(identity)


@pytest.fixture
def parity_check(
    request: pytest.FixtureRequest, parity_harness: Harness
) -> Callable[[TestUnit], str]:
    """Return a callable that executes a unit's scenario and raises on failure.

    When the test is parametrized with ``parity_unit`` its backend is resolved
    during setup, so resolution failures are reported as errors, not failures.
    """
    callspec = getattr(request.node, "callspec", None)
    if callspec is not None and UNIT_ARG in callspec.params:
        request.getfixturevalue("parity_parser")

    def _check(unit: TestUnit) -> str:
        return parity_harness.check(unit.key, unit.scenario)

    return _check
