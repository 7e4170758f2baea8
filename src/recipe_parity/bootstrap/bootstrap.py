"""Bootstrap a harness and load catalog modules into it."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from recipe_parity import config
from recipe_parity.adapters.id_generators import ULIDGenerator
from recipe_parity.domain.errors import CatalogModuleError
from recipe_parity.domain.model import Binding, RecipeContract, Scenario
from recipe_parity.service_layer.backends import BackendRegistry
from recipe_parity.service_layer.bindings import BindingCatalog, PlannedBinding
from recipe_parity.service_layer.contracts import ContractLibrary
from recipe_parity.service_layer.execution import ScenarioExecutor
from recipe_parity.service_layer.gate import ExecutionGate, Probe, RunEnvironment
from recipe_parity.service_layer.resolver import BackendResolver
from recipe_parity.service_layer.runner import HarnessRunner

if TYPE_CHECKING:
    from recipe_parity.domain.model import BackendSpec, TestUnitKey
    from recipe_parity.interfaces.id_generator import IdGenerator
    from recipe_parity.interfaces.parser import Parser
    from recipe_parity.service_layer.report import RunReport

logger = logging.getLogger(__name__)

REGISTER_HOOK = "register"  # pragma: no mutate


class Harness:  # pylint: disable=too-many-instance-attributes
    """The wired-up harness and its registration surface.

    Catalog modules receive a harness and call `register_contract`,
    `register_backend`, `declare_binding` and `register_probe` on it. The
    harness then plans and runs every binding.

    Args:
        environment: The environment the execution gate evaluates against.
        executor: Scenario executor (controls the replay count).
        id_generator: Generates run ids.
    """

    def __init__(
        self,
        environment: RunEnvironment,
        executor: ScenarioExecutor,
        id_generator: IdGenerator,
    ) -> None:
        self.contracts = ContractLibrary()
        self.backends = BackendRegistry()
        self.bindings = BindingCatalog(self.contracts, self.backends)
        self.resolver = BackendResolver(self.backends)
        self.gate = ExecutionGate()
        self.executor = executor
        self._id_generator = id_generator
        self._base_environment = environment
        self._probes: dict[str, Probe] = {}
        self._environment: RunEnvironment | None = None

    # --- Registration surface ---

    def register_contract(
        self,
        name: str,
        scenarios: Iterable[Scenario],
        required_features: Iterable[str] = (),
    ) -> RecipeContract:
        """Register a backend-agnostic contract. See `ContractLibrary`."""
        return self.contracts.register_contract(name, scenarios, required_features)

    def register_backend(
        self,
        identity: str,
        features: Iterable[str],
        constructor: Callable[[], Parser],
        description: str = "",
    ) -> BackendSpec:
        """Register a backend declaration. See `BackendRegistry`."""
        return self.backends.register_backend(
            identity, features, constructor, description
        )

    def declare_binding(
        self,
        backend: str,
        contract_names: Iterable[str],
        debug_only: bool = False,
        resource: str | None = None,
    ) -> Binding:
        """Bind contracts to a backend. See `BindingCatalog.declare_binding`."""
        return self.bindings.declare_binding(
            backend, contract_names, debug_only=debug_only, resource=resource
        )

    def register_probe(self, resource: str, probe: Probe) -> None:
        """Register an availability predicate for an expensive resource.

        Probes are only ever evaluated by the execution gate, lazily and at
        most once per run environment.
        """
        self._probes[resource] = probe
        self._environment = None

    # --- Planning & execution ---

    @property
    def environment(self) -> RunEnvironment:
        """The effective run environment: base settings plus registered probes."""
        if self._environment is None:
            self._environment = self._base_environment.override(probes=self._probes)
        return self._environment

    def plan(self) -> list[PlannedBinding]:
        """Validate and expand every binding. See `BindingCatalog.plan`."""
        return self.bindings.plan()

    def should_run(self, binding: Binding) -> bool:
        """Gate decision for ``binding`` in the effective environment."""
        return self.gate.should_run(binding, self.environment)

    def run(self, workers: int = 1, timeout_s: float | None = None) -> RunReport:
        """Plan, gate and execute every binding. See `HarnessRunner.run`."""
        runner = HarnessRunner(
            catalog=self.bindings,
            resolver=self.resolver,
            gate=self.gate,
            environment=self.environment,
            executor=self.executor,
            id_generator=self._id_generator,
        )
        return runner.run(workers=workers, timeout_s=timeout_s)

    def check(self, key: TestUnitKey, scenario: Scenario) -> str:
        """Resolve the backend of ``key`` and execute ``scenario`` against it.

        Unlike `run`, failures are raised, which is what test frameworks
        expect from a test body.

        Raises:
            ResolutionError: If the backend is not registered.
            BackendConstructionError: If the backend failed to construct.
            ScenarioFailure: If the scenario did not behave as expected.
        """
        parser = self.resolver.resolve(key.backend)
        return self.executor.execute(parser, key, scenario)


def bootstrap(
    environment: RunEnvironment | None = None,
    *,
    replays: int | None = None,
    id_generator: IdGenerator | None = None,
) -> Harness:
    """Build an empty harness.

    Args:
        environment: Gate environment; read from the process environment when
            omitted.
        replays: Replays per scenario; read from the process environment when
            omitted.
        id_generator: Run id generator; ULIDs when omitted.
    """
    return Harness(
        environment=environment or config.get_run_environment(),
        executor=ScenarioExecutor(replays or config.get_replays()),
        id_generator=id_generator or ULIDGenerator(),
    )


def load_catalog(harness: Harness, module_name: str) -> Harness:
    """Import ``module_name`` and let its ``register(harness)`` populate ``harness``.

    Raises:
        CatalogModuleError: If the module cannot be imported or defines no
            callable ``register``.
    """
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise CatalogModuleError(module_name, f"{type(e).__name__}: {e}") from e

    register = getattr(module, REGISTER_HOOK, None)
    if not callable(register):
        raise CatalogModuleError(module_name, f"no callable '{REGISTER_HOOK}(harness)'")

    logger.debug("Loading catalog from %s", module_name)
    register(harness)
    logger.info(
        "Loaded catalog %s: %d contract(s), %d backend(s), %d binding(s)",
        module_name,
        len(harness.contracts),
        len(harness.backends.identities()),
        len(harness.bindings.bindings()),
    )
    return harness
