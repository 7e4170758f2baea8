"""Contract library: the catalog of backend-agnostic scenario suites."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from recipe_parity.domain.errors import DuplicateContractError, UnknownContractError
from recipe_parity.domain.model import RecipeContract, Scenario

logger = logging.getLogger(__name__)


class ContractLibrary:
    """Registry of recipe contracts keyed by name.

    Contracts are registered once while a catalog is built and are immutable
    afterwards; lookups are pure.
    """

    def __init__(self) -> None:
        self._contracts: dict[str, RecipeContract] = {}
        self._lock = threading.Lock()

    def register_contract(
        self,
        name: str,
        scenarios: Iterable[Scenario],
        required_features: Iterable[str] = (),
    ) -> RecipeContract:
        """Register a contract.

        Args:
            name: Unique contract name (e.g. ``"AddImport"``).
            scenarios: The scenarios, in the order they should run.
            required_features: Features a backend must declare to be bound
                to this contract.

        Returns:
            RecipeContract: The registered, immutable contract.

        Raises:
            DuplicateContractError: If ``name`` is already registered.
        """
        contract = RecipeContract(
            name=name,
            scenarios=tuple(scenarios),
            required_features=frozenset(required_features),
        )
        with self._lock:
            if name in self._contracts:
                raise DuplicateContractError(name)
            self._contracts[name] = contract
        logger.debug(
            "Registered contract %s with %d scenario(s), requires %s",
            name,
            len(contract.scenarios),
            sorted(contract.required_features) or "nothing",
        )
        return contract

    def get(self, name: str) -> RecipeContract:
        """Return the contract registered as ``name``.

        Raises:
            UnknownContractError: If no such contract is registered.
        """
        try:
            return self._contracts[name]
        except KeyError:
            raise UnknownContractError(name) from None

    def list_scenarios(self, name: str) -> tuple[Scenario, ...]:
        """Return the scenarios of contract ``name`` in declaration order.

        Raises:
            UnknownContractError: If no such contract is registered.
        """
        return self.get(name).scenarios

    def names(self) -> list[str]:
        """Registered contract names in registration order."""
        return list(self._contracts)

    def __contains__(self, name: object) -> bool:
        return name in self._contracts

    def __len__(self) -> int:
        return len(self._contracts)
