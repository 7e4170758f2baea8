"""Unit tests for the execution gate and run environment."""

import logging

import pytest

from recipe_parity.domain.model import Binding
from recipe_parity.service_layer.gate import ExecutionGate, RunEnvironment

REGULAR = Binding("V11", ("AddImport",))
DEBUG_ONLY = Binding("InternalToolchain", ("AddImport",), debug_only=True)
DEBUG_ONLY_JDK = Binding("Internal", ("AddImport",), debug_only=True, resource="jdk")


@pytest.mark.parametrize(
    "binding, environment, expected",
    [
        (REGULAR, RunEnvironment(), True),
        (DEBUG_ONLY, RunEnvironment(), False),
        (DEBUG_ONLY, RunEnvironment(include_debug_only=True), True),
        (DEBUG_ONLY, RunEnvironment(resources={"InternalToolchain"}), True),
        (DEBUG_ONLY, RunEnvironment(resources={"jdk"}), False),
        (DEBUG_ONLY_JDK, RunEnvironment(resources={"jdk"}), True),
        (DEBUG_ONLY_JDK, RunEnvironment(resources={"Internal"}), False),
        (DEBUG_ONLY, RunEnvironment(probes={"InternalToolchain": lambda: True}), True),
        (DEBUG_ONLY, RunEnvironment(probes={"InternalToolchain": lambda: False}), False),
    ],
)
def test_should_run(binding, environment, expected):
    assert ExecutionGate().should_run(binding, environment) is expected


def test_gate_decisions_are_pure():
    gate = ExecutionGate()
    environment = RunEnvironment()
    decisions = {gate.should_run(DEBUG_ONLY, environment) for _ in range(5)}
    assert decisions == {False}


def test_rejections_are_logged(caplog):
    caplog.set_level(logging.INFO, logger="recipe_parity.service_layer.gate")
    ExecutionGate().should_run(DEBUG_ONLY, RunEnvironment())
    assert "Gate rejected debug-only binding InternalToolchain" in caplog.text


def test_admits_works_on_bare_pairs():
    environment = RunEnvironment(resources={"jdk"})
    assert ExecutionGate.admits(False, "anything", RunEnvironment())
    assert ExecutionGate.admits(True, "jdk", environment)
    assert not ExecutionGate.admits(True, "gpu", environment)


class TestRunEnvironment:
    """Resource availability."""

    @staticmethod
    def test_probes_are_evaluated_at_most_once():
        calls = []

        def probe() -> bool:
            calls.append(1)
            return True

        environment = RunEnvironment(probes={"jdk": probe})
        assert environment.is_available("jdk")
        assert environment.is_available("jdk")
        assert len(calls) == 1

    @staticmethod
    def test_declared_resources_skip_the_probe():
        calls = []
        environment = RunEnvironment(
            resources={"jdk"}, probes={"jdk": lambda: calls.append(1) or False}
        )
        assert environment.is_available("jdk")
        assert not calls

    @staticmethod
    def test_probe_errors_mean_unavailable(caplog):
        def probe() -> bool:
            raise OSError("no toolchain")

        environment = RunEnvironment(probes={"jdk": probe})
        with caplog.at_level(logging.WARNING):
            assert not environment.is_available("jdk")
        assert "Availability probe for jdk raised" in caplog.text

    @staticmethod
    def test_unknown_resources_are_unavailable():
        assert not RunEnvironment().is_available("jdk")

    @staticmethod
    def test_override_returns_an_extended_copy():
        base = RunEnvironment(include_debug_only=True, resources={"a"})
        extended = base.override(resources=["b"])
        assert extended.resources == frozenset({"a", "b"})
        assert extended.include_debug_only
        assert base.resources == frozenset({"a"})

    @staticmethod
    @pytest.mark.parametrize("flag, expected", [(None, True), (False, False), (True, True)])
    def test_override_replaces_the_opt_in_only_when_given(flag, expected):
        base = RunEnvironment(include_debug_only=True)
        assert base.override(include_debug_only=flag).include_debug_only is expected

    @staticmethod
    def test_override_keeps_memoized_probe_results():
        calls = []

        def probe() -> bool:
            calls.append(1)
            return True

        base = RunEnvironment(probes={"jdk": probe})
        assert base.is_available("jdk")
        derived = base.override(resources=["gpu"])

        assert derived.is_available("jdk")
        assert len(calls) == 1

    @staticmethod
    def test_override_reprobes_replaced_probes():
        base = RunEnvironment(probes={"jdk": lambda: True})
        assert base.is_available("jdk")
        derived = base.override(probes={"jdk": lambda: False})
        assert not derived.is_available("jdk")
