"""Scenario execution against a resolved backend."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from recipe_parity.domain.errors import AssertionMismatch, FlakyScenarioError
from recipe_parity.domain.model import Scenario, TestUnitKey

if TYPE_CHECKING:
    from recipe_parity.interfaces.parser import Parser

logger = logging.getLogger(__name__)

DEFAULT_REPLAYS = 2


class ScenarioExecutor:
    """Run a scenario on a backend and check it against its contract.

    Every scenario is replayed ``replays`` times with a `Parser.reset`
    before each replay. Replays that disagree are reported as a flaky
    scenario rather than compared against the expectation.

    Backends are shared by every unit bound to them, so executions against
    the same backend identity are serialized: all replays of one scenario
    run without another scenario resetting or parsing in between. Different
    backends still execute concurrently.

    Args:
        replays: Number of times each scenario is executed (at least 1).
    """

    def __init__(self, replays: int = DEFAULT_REPLAYS) -> None:
        if replays < 1:
            raise ValueError(f"replays must be at least 1, got {replays}")
        self.replays = replays
        self._backend_locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, backend: str) -> threading.Lock:
        with self._guard:
            return self._backend_locks.setdefault(backend, threading.Lock())

    def render(self, parser: Parser, scenario: Scenario) -> tuple[str, tuple[str, ...]]:
        """Execute ``scenario`` once and return (text, diagnostics)."""
        parser.reset()
        tree = parser.parse(scenario.input_source)
        tree = parser.apply_recipe(tree, scenario.recipe)
        return parser.print(tree), tuple(parser.diagnostics(tree))

    def execute(self, parser: Parser, key: TestUnitKey, scenario: Scenario) -> str:
        """Execute and verify ``scenario``.

        Args:
            parser: The resolved backend.
            key: Identity of the unit being executed, used in failures.
            scenario: The scenario to run.

        Returns:
            str: The rendered output, equal to ``scenario.expected_output``.

        Raises:
            FlakyScenarioError: If replays rendered different texts or
                diagnostics.
            AssertionMismatch: If the output or the diagnostics differ from
                what the scenario expects.
            Exception: Anything the backend or the recipe raises.
        """
        with self._lock_for(key.backend):
            renderings = [self.render(parser, scenario) for _ in range(self.replays)]
        described = [_describe(text, diagnostics) for text, diagnostics in renderings]
        if len(set(renderings)) > 1:
            logger.debug("%s rendered %d distinct results", key, len(set(renderings)))
            raise FlakyScenarioError(key, scenario.expected_output, described)

        actual, diagnostics = renderings[0]
        if actual != scenario.expected_output:
            raise AssertionMismatch(key, scenario.expected_output, actual)
        if (
            scenario.expected_diagnostics is not None
            and diagnostics != scenario.expected_diagnostics
        ):
            raise AssertionMismatch(
                key,
                "\n".join(scenario.expected_diagnostics),
                "\n".join(diagnostics),
                what="diagnostics",
            )
        return actual


def _describe(text: str, diagnostics: tuple[str, ...]) -> str:
    if not diagnostics:
        return text
    return f"{text}\n[diagnostics] {'; '.join(diagnostics)}"
