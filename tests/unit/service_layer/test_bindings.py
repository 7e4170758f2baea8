"""Unit tests for version binding and test unit expansion."""

import pytest

from recipe_parity.adapters.parsers import language_features
from recipe_parity.domain.errors import (
    DuplicateTestUnitError,
    FeatureUnsupportedError,
    UnknownContractError,
)
from recipe_parity.domain.model import Binding, Scenario, TestUnitKey
from recipe_parity.domain.unit import UnitState
from recipe_parity.service_layer.backends import BackendRegistry
from recipe_parity.service_layer.bindings import BindingCatalog
from recipe_parity.service_layer.contracts import ContractLibrary
from tests.fixtures.recipes import CountingConstructor

# pylint: disable=redefined-outer-name


def _scenarios(*names: str) -> list[Scenario]:
    return [Scenario(name, "in", None, "out") for name in names]


@pytest.fixture
def library() -> ContractLibrary:
    library = ContractLibrary()
    library.register_contract("AddImport", _scenarios("adds", "keeps"), {"imports"})
    library.register_contract("RemoveUnused", _scenarios("removes"), {"imports"})
    library.register_contract("VarInference", _scenarios("infers"), {"var"})
    return library


@pytest.fixture
def registry() -> BackendRegistry:
    registry = BackendRegistry()
    registry.register_backend("V8", language_features(8), CountingConstructor(8))
    registry.register_backend("V11", language_features(11), CountingConstructor(11))
    return registry


@pytest.fixture
def catalog(library, registry) -> BindingCatalog:
    return BindingCatalog(library, registry)


def test_one_unit_per_contract_scenario_in_order(catalog):
    binding = catalog.declare_binding("V11", ["AddImport", "RemoveUnused"])

    keys = [unit.key for unit in catalog.expand(binding)]

    assert keys == [
        TestUnitKey("V11", "AddImport", "adds"),
        TestUnitKey("V11", "AddImport", "keeps"),
        TestUnitKey("V11", "RemoveUnused", "removes"),
    ]


def test_declare_binding_returns_the_recorded_binding(catalog):
    binding = catalog.declare_binding(
        "V11", ("AddImport",), debug_only=True, resource="jdk"
    )
    assert binding == Binding("V11", ("AddImport",), debug_only=True, resource="jdk")
    assert catalog.bindings() == [binding]


def test_missing_features_fail_at_declaration_and_record_nothing(catalog):
    with pytest.raises(FeatureUnsupportedError) as exc:
        catalog.declare_binding("V8", ["AddImport", "VarInference"])

    assert (exc.value.backend, exc.value.contract) == ("V8", "VarInference")
    assert exc.value.missing == frozenset({"var"})
    assert catalog.bindings() == []


def test_unknown_contracts_fail_at_declaration(catalog):
    with pytest.raises(UnknownContractError):
        catalog.declare_binding("V11", ["Nope"])
    assert catalog.bindings() == []


def test_bindings_need_at_least_one_contract(catalog):
    with pytest.raises(ValueError):
        catalog.declare_binding("V11", [])


def test_unregistered_backends_are_checked_at_plan_time(library):
    registry = BackendRegistry()
    catalog = BindingCatalog(library, registry)
    catalog.declare_binding("V8", ["VarInference"])  # V8 unknown yet
    registry.register_backend("V8", language_features(8), CountingConstructor(8))

    with pytest.raises(FeatureUnsupportedError):
        catalog.plan()


def test_never_registered_backends_are_still_planned(library):
    catalog = BindingCatalog(library, BackendRegistry())
    catalog.declare_binding("V17", ["AddImport"])
    [planned] = catalog.plan()
    assert [u.key.backend for u in planned.units] == ["V17", "V17"]


def test_same_contract_on_several_backends_gives_distinct_units(catalog):
    catalog.declare_binding("V8", ["AddImport"])
    catalog.declare_binding("V11", ["AddImport"])

    planned = catalog.plan()

    keys = [unit.key for entry in planned for unit in entry.units]
    assert len(keys) == len(set(keys)) == 4
    assert {key.backend for key in keys} == {"V8", "V11"}


def test_duplicate_units_abort_planning(catalog):
    catalog.declare_binding("V11", ["AddImport"])
    catalog.declare_binding("V11", ["AddImport"])
    with pytest.raises(DuplicateTestUnitError) as exc:
        catalog.plan()
    assert exc.value.key == TestUnitKey("V11", "AddImport", "adds")


def test_planning_never_constructs_backends(library, registry):
    catalog = BindingCatalog(library, registry)
    catalog.declare_binding("V8", ["AddImport"])
    catalog.declare_binding("V11", ["AddImport"])
    catalog.plan()
    for identity in ("V8", "V11"):
        assert registry.get(identity).constructor.calls == 0


def test_each_plan_yields_fresh_pending_units(catalog):
    catalog.declare_binding("V11", ["RemoveUnused"])
    [first] = catalog.plan()
    first.units[0].skip()
    [second] = catalog.plan()
    assert second.units[0] is not first.units[0]
    assert second.units[0].state is UnitState.PENDING
