"""Error taxonomy for the parity harness."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recipe_parity.domain.model import TestUnitKey


class ParityError(Exception):
    """Base class for all harness errors."""


# ============================================================================
#                    Catalog errors (fatal at setup)
# ============================================================================


class CatalogError(ParityError):
    """Base class for errors raised while building the catalogs."""


class UnknownContractError(CatalogError, LookupError):
    """Raised when a contract name is not registered in the library."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"Unknown contract '{contract}'.")
        self.contract = contract


class DuplicateContractError(CatalogError):
    """Raised when a contract name is registered twice."""

    def __init__(self, contract: str) -> None:
        super().__init__(f"Contract '{contract}' is already registered.")
        self.contract = contract


class DuplicateBackendError(CatalogError):
    """Raised when a backend identity is registered twice."""

    def __init__(self, backend: str) -> None:
        super().__init__(f"Backend '{backend}' is already registered.")
        self.backend = backend


class CatalogModuleError(CatalogError):
    """Raised when a catalog module cannot be loaded or has no `register` hook."""

    def __init__(self, module: str, reason: str) -> None:
        super().__init__(f"Cannot load catalog module '{module}': {reason}")
        self.module = module
        self.reason = reason


# ============================================================================
#                   Composition errors (fatal at setup)
# ============================================================================


class CompositionError(ParityError):
    """Base class for defects detected while composing bindings."""


class FeatureUnsupportedError(CompositionError):
    """Raised when a contract requires features a backend does not declare.

    Attributes:
        backend (str): The backend identity.
        contract (str): The contract name.
        missing (frozenset[str]): Required features absent from the backend.
    """

    def __init__(self, backend: str, contract: str, missing: Iterable[str]) -> None:
        self.backend = backend
        self.contract = contract
        self.missing = frozenset(missing)
        super().__init__(
            f"Backend '{backend}' cannot run contract '{contract}': "
            f"missing features {sorted(self.missing)}."
        )


class DuplicateTestUnitError(CompositionError):
    """Raised when two bindings expand to the same test unit key."""

    def __init__(self, key: TestUnitKey) -> None:
        super().__init__(f"Test unit '{key}' is declared more than once.")
        self.key = key


# ============================================================================
#              Backend errors (isolated per backend identity)
# ============================================================================


class BackendError(ParityError):
    """Base class for errors obtaining a backend instance."""

    def __init__(self, backend: str, message: str) -> None:
        super().__init__(message)
        self.backend = backend


class ResolutionError(BackendError, LookupError):
    """Raised when no constructor is registered for a backend identity."""

    def __init__(self, backend: str) -> None:
        super().__init__(backend, f"No backend registered as '{backend}'.")


class BackendConstructionError(BackendError):
    """Raised when a backend constructor fails.

    The failure is cached by the resolver; the original exception is kept as
    `__cause__`.
    """

    def __init__(self, backend: str, reason: str) -> None:
        super().__init__(backend, f"Backend '{backend}' failed to construct: {reason}")
        self.reason = reason


# ============================================================================
#                    Scenario failures (reported per unit)
# ============================================================================


class ScenarioFailure(ParityError, AssertionError):
    """Base class for failures attributable to a single test unit.

    Attributes:
        key (TestUnitKey): The unit that failed.
        expected (str): The expected output text.
        actual (str | None): The actual output text, if one was produced.
    """

    def __init__(
        self, key: TestUnitKey, expected: str, actual: str | None, message: str
    ) -> None:
        super().__init__(message)
        self.key = key
        self.expected = expected
        self.actual = actual


class AssertionMismatch(ScenarioFailure):
    """Raised when a backend renders something other than the expected text."""

    def __init__(
        self,
        key: TestUnitKey,
        expected: str,
        actual: str,
        *,
        what: str = "output",
    ) -> None:
        super().__init__(
            key,
            expected,
            actual,
            f"{key}: {what} mismatch\n"
            f"--- expected\n{expected}\n+++ actual\n{actual}",
        )
        self.what = what


class FlakyScenarioError(ScenarioFailure):
    """Raised when replaying a scenario yields different renderings.

    Attributes:
        renderings (tuple[str, ...]): Every rendering observed, in replay order.
    """

    def __init__(self, key: TestUnitKey, expected: str, renderings: Iterable[str]):
        self.renderings = tuple(renderings)
        distinct = len(set(self.renderings))
        super().__init__(
            key,
            expected,
            self.renderings[-1] if self.renderings else None,
            f"{key}: scenario is not deterministic, {len(self.renderings)} replays "
            f"produced {distinct} distinct renderings.",
        )


# ============================================================================
#                           State machine errors
# ============================================================================


class InvalidTransitionError(ParityError):
    """Raised when a test unit is moved to a state it cannot reach."""

    def __init__(self, key: TestUnitKey, current: str, target: str) -> None:
        super().__init__(f"Test unit '{key}' cannot move from {current} to {target}.")
        self.key = key
        self.current = current
        self.target = target
