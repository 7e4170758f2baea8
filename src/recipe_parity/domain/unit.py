"""Test unit state machine and its reported result."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

from recipe_parity.domain import errors
from recipe_parity.domain.model import Scenario, TestUnitKey


class UnitState(Enum):
    """Lifecycle states of a test unit."""

    PENDING = "pending"
    RESOLVING = "resolving"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """True for states a unit never leaves."""
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {UnitState.PASSED, UnitState.FAILED, UnitState.ERRORED, UnitState.SKIPPED}
)

_TRANSITIONS: dict[UnitState, frozenset[UnitState]] = {
    UnitState.PENDING: frozenset({UnitState.RESOLVING, UnitState.SKIPPED}),
    UnitState.RESOLVING: frozenset({UnitState.RUNNING, UnitState.ERRORED}),
    UnitState.RUNNING: frozenset(
        {UnitState.PASSED, UnitState.FAILED, UnitState.ERRORED}
    ),
}


class Outcome(Enum):
    """Reported outcome of a test unit."""

    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    SKIPPED = "skipped"
    STUCK = "stuck"


class Reason(Enum):
    """Why a unit did not pass."""

    ASSERTION_MISMATCH = "AssertionMismatch"
    FLAKY_SCENARIO = "FlakyScenario"
    EXECUTION_ERROR = "ExecutionError"
    RESOLUTION_ERROR = "ResolutionError"
    BACKEND_CONSTRUCTION_ERROR = "BackendConstructionError"
    GATE_REJECTED = "GateRejected"
    TIMED_OUT = "TimedOut"


@dataclass(frozen=True)
class UnitResult:
    """Immutable report of one test unit."""

    key: TestUnitKey
    outcome: Outcome
    reason: Reason | None = None
    expected: str = ""
    actual: str | None = None
    detail: str = ""
    duration_s: float = 0.0

    @property
    def is_failure(self) -> bool:
        """True for outcomes that should fail a run."""
        return self.outcome in (Outcome.FAILED, Outcome.ERRORED, Outcome.STUCK)


class TestUnit:
    """One (backend, contract, scenario) execution instance.

    Units are created by expanding a binding and discarded once they have
    produced a result. Transitions are validated; a unit that never reaches a
    terminal state reports `Outcome.STUCK`.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, key: TestUnitKey, scenario: Scenario) -> None:
        self.key = key
        self.scenario = scenario
        self.state = UnitState.PENDING
        self.reason: Reason | None = None
        self.actual: str | None = None
        self.detail = ""
        self.duration_s = 0.0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"TestUnit({str(self.key)!r}, state={self.state.value})"

    # --- Transitions ---

    def start_resolving(self) -> None:
        """Gate approved the unit; its backend is being obtained."""
        self._move(UnitState.RESOLVING)

    def start_running(self) -> None:
        """The backend is available; the scenario is executing."""
        self._move(UnitState.RUNNING)

    def skip(self, reason: Reason = Reason.GATE_REJECTED) -> None:
        """Gate rejected the unit."""
        self._move(UnitState.SKIPPED, reason=reason)

    def pass_(self, actual: str) -> None:
        """The scenario rendered the expected text."""
        self._move(UnitState.PASSED, actual=actual)

    def fail(self, reason: Reason, *, actual: str | None = None, detail: str = "") -> None:
        """The scenario ran but did not behave as the contract expects."""
        self._move(UnitState.FAILED, reason=reason, actual=actual, detail=detail)

    def error(self, reason: Reason, *, detail: str = "") -> None:
        """The unit could not run because its backend was unavailable."""
        self._move(UnitState.ERRORED, reason=reason, detail=detail)

    def _move(
        self,
        target: UnitState,
        *,
        reason: Reason | None = None,
        actual: str | None = None,
        detail: str = "",
    ) -> None:
        with self._lock:
            if target not in _TRANSITIONS.get(self.state, frozenset()):
                raise errors.InvalidTransitionError(
                    self.key, self.state.value, target.value
                )
            self.state = target
            if reason is not None:
                self.reason = reason
            if actual is not None:
                self.actual = actual
            if detail:
                self.detail = detail

    # --- Reporting ---

    @property
    def outcome(self) -> Outcome:
        """The reported outcome; non-terminal states report `Outcome.STUCK`."""
        match self.state:
            case UnitState.PASSED:
                return Outcome.PASSED
            case UnitState.FAILED:
                return Outcome.FAILED
            case UnitState.ERRORED:
                return Outcome.ERRORED
            case UnitState.SKIPPED:
                return Outcome.SKIPPED
            case _:
                return Outcome.STUCK

    def result(self) -> UnitResult:
        """Snapshot the unit into an immutable result."""
        with self._lock:
            outcome = self.outcome
            reason = self.reason
            if outcome is Outcome.STUCK and reason is None:
                reason = Reason.TIMED_OUT
            return UnitResult(
                key=self.key,
                outcome=outcome,
                reason=reason,
                expected=self.scenario.expected_output,
                actual=self.actual,
                detail=self.detail or (
                    f"unit left in state {self.state.value}"
                    if outcome is Outcome.STUCK
                    else ""
                ),
                duration_s=self.duration_s,
            )
