"""Version binding: compose backends with contracts and expand into test units."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from recipe_parity.domain.errors import (
    DuplicateTestUnitError,
    FeatureUnsupportedError,
)
from recipe_parity.domain.model import Binding, TestUnitKey
from recipe_parity.domain.unit import TestUnit
from recipe_parity.service_layer.backends import BackendRegistry
from recipe_parity.service_layer.contracts import ContractLibrary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedBinding:
    """A binding together with the test units it expands to."""

    binding: Binding
    units: tuple[TestUnit, ...]


class BindingCatalog:
    """Declared bindings, validated against the contract and backend catalogs.

    Args:
        library: Contracts that bindings may reference.
        registry: Backend declarations used for feature validation.
    """

    def __init__(self, library: ContractLibrary, registry: BackendRegistry) -> None:
        self._library = library
        self._registry = registry
        self._bindings: list[Binding] = []

    def declare_binding(
        self,
        backend: str,
        contract_names: Iterable[str],
        debug_only: bool = False,
        resource: str | None = None,
    ) -> Binding:
        """Compose one backend with one or more contracts.

        Args:
            backend: The backend identity.
            contract_names: Names of the contracts to run against it.
            debug_only: Exclude the binding from default runs.
            resource: The expensive resource a debug-only binding needs;
                defaults to the backend identity.

        Returns:
            Binding: The recorded binding.

        Raises:
            ValueError: If no contract names are given.
            UnknownContractError: If a contract name is not registered.
            FeatureUnsupportedError: If the backend is registered and lacks a
                feature one of the contracts requires. Nothing is recorded.
        """
        binding = Binding(
            backend=backend,
            contracts=tuple(contract_names),
            debug_only=debug_only,
            resource=resource,
        )
        if not binding.contracts:
            raise ValueError(f"Binding for backend '{backend}' names no contracts")
        self.validate(binding)
        self._bindings.append(binding)
        logger.debug(
            "Declared binding %s -> %s%s",
            backend,
            ", ".join(binding.contracts),
            " (debug-only)" if debug_only else "",
        )
        return binding

    def validate(self, binding: Binding) -> None:
        """Check every bound contract exists and is supported by the backend.

        A backend that is not registered yet cannot be checked; its units will
        report a resolution error when they run.
        """
        spec = self._registry.find(binding.backend)
        for name in binding.contracts:
            contract = self._library.get(name)  # raises UnknownContractError
            if spec is not None and (missing := spec.missing_features(contract)):
                raise FeatureUnsupportedError(binding.backend, name, missing)

    def bindings(self) -> list[Binding]:
        """Declared bindings in declaration order."""
        return list(self._bindings)

    def expand(self, binding: Binding) -> Iterator[TestUnit]:
        """Yield one fresh test unit per (contract, scenario) of ``binding``."""
        for name in binding.contracts:
            for scenario in self._library.list_scenarios(name):
                yield TestUnit(TestUnitKey(binding.backend, name, scenario.name), scenario)

    def plan(self) -> list[PlannedBinding]:
        """Validate and expand every binding.

        Bindings are re-validated first, so backends registered after a
        binding was declared are still feature-checked before anything runs.

        Returns:
            list[PlannedBinding]: One entry per binding, in declaration order.

        Raises:
            FeatureUnsupportedError: If any binding is not composable.
            DuplicateTestUnitError: If two units share a key.
        """
        for binding in self._bindings:
            self.validate(binding)

        seen: set[TestUnitKey] = set()
        planned: list[PlannedBinding] = []
        for binding in self._bindings:
            units = tuple(self.expand(binding))
            for unit in units:
                if unit.key in seen:
                    raise DuplicateTestUnitError(unit.key)
                seen.add(unit.key)
            planned.append(PlannedBinding(binding=binding, units=units))

        logger.debug(
            "Planned %d unit(s) from %d binding(s)", len(seen), len(planned)
        )
        return planned
