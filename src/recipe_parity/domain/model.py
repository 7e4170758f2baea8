"""Value objects describing contracts, backends and bindings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from recipe_parity.interfaces.parser import Parser

KEY_SEPARATOR = "::"


def _check_key_part(kind: str, value: str) -> None:
    if not value:
        raise ValueError(f"{kind} must be non-empty")
    if KEY_SEPARATOR in value:
        raise ValueError(f"{kind} must not contain {KEY_SEPARATOR!r}: {value!r}")


@dataclass(frozen=True)
class Scenario:
    """One input/recipe/expected-output case of a contract.

    Attributes:
        name: Name unique within its contract (e.g. ``"adds-missing-import"``).
        input_source: Source text handed to ``Parser.parse``.
        recipe: Recipe configuration handed to ``Parser.apply_recipe``.
        expected_output: Text every backend must print after the recipe ran.
        expected_diagnostics: Diagnostics the backend must report for the
            transformed tree, or ``None`` to leave them unchecked.
    """

    name: str
    input_source: str
    recipe: Any
    expected_output: str
    expected_diagnostics: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        _check_key_part("Scenario name", self.name)
        if self.expected_diagnostics is not None:
            object.__setattr__(
                self, "expected_diagnostics", tuple(self.expected_diagnostics)
            )


@dataclass(frozen=True)
class RecipeContract:
    """A named, ordered, backend-agnostic suite of scenarios."""

    name: str
    scenarios: tuple[Scenario, ...]
    required_features: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        _check_key_part("Contract name", self.name)
        object.__setattr__(self, "scenarios", tuple(self.scenarios))
        object.__setattr__(self, "required_features", frozenset(self.required_features))


@dataclass(frozen=True)
class BackendSpec:
    """A registered backend declaration.

    Registering a backend never constructs it; ``constructor`` is only called by
    the resolver, at most once per run.
    """

    identity: str
    features: frozenset[str]
    constructor: Callable[[], Parser] = field(compare=False)
    description: str = ""

    def __post_init__(self) -> None:
        _check_key_part("Backend identity", self.identity)
        object.__setattr__(self, "features", frozenset(self.features))

    def missing_features(self, contract: RecipeContract) -> frozenset[str]:
        """Return the features ``contract`` requires that this backend lacks."""
        return contract.required_features - self.features


@dataclass(frozen=True)
class Binding:
    """One backend identity composed with one or more contract names.

    Attributes:
        backend: Identity of the backend the contracts run against.
        contracts: Names of the bound contracts, in declaration order.
        debug_only: Exclude the binding from default runs.
        resource: Expensive resource a debug-only binding needs; defaults to
            the backend identity.
    """

    backend: str
    contracts: tuple[str, ...]
    debug_only: bool = False
    resource: str | None = None

    def __post_init__(self) -> None:
        _check_key_part("Backend identity", self.backend)
        object.__setattr__(self, "contracts", tuple(self.contracts))

    @property
    def required_resource(self) -> str:
        """The resource name the execution gate checks for this binding."""
        return self.resource or self.backend


class TestUnitKey(NamedTuple):
    """Globally unique identity of a test unit."""

    __test__ = False  # not a pytest test class

    backend: str
    contract: str
    scenario: str

    def __str__(self) -> str:
        return KEY_SEPARATOR.join(self)
