"""Harness runner: drives every planned test unit to a terminal state."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

from recipe_parity.domain.errors import (
    AssertionMismatch,
    BackendConstructionError,
    FlakyScenarioError,
    ResolutionError,
)
from recipe_parity.domain.unit import Outcome, Reason, TestUnit
from recipe_parity.service_layer.report import RunReport

if TYPE_CHECKING:
    from recipe_parity.interfaces.id_generator import IdGenerator
    from recipe_parity.service_layer.bindings import BindingCatalog
    from recipe_parity.service_layer.execution import ScenarioExecutor
    from recipe_parity.service_layer.gate import ExecutionGate, RunEnvironment
    from recipe_parity.service_layer.resolver import BackendResolver

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods


class HarnessRunner:
    """Plan, gate and execute every declared binding.

    Args:
        catalog: Declared bindings.
        resolver: Resolver shared by every unit of the run.
        gate: Inclusion policy.
        environment: The environment the gate evaluates against.
        executor: Runs and verifies single scenarios.
        id_generator: Generates the run id.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        catalog: BindingCatalog,
        resolver: BackendResolver,
        gate: ExecutionGate,
        environment: RunEnvironment,
        executor: ScenarioExecutor,
        id_generator: IdGenerator,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._gate = gate
        self._environment = environment
        self._executor = executor
        self._id_generator = id_generator

    def run(self, workers: int = 1, timeout_s: float | None = None) -> RunReport:
        """Run every planned unit and report the results.

        Args:
            workers: Number of worker threads executing units.
            timeout_s: Overall deadline. Units still running when it expires
                are reported as stuck.

        Returns:
            RunReport: One result per planned unit, in plan order.

        Raises:
            CompositionError: If the catalog is not composable. No unit runs.
            CatalogError: If a binding names an unknown contract.
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        planned = self._catalog.plan()
        run_id = self._id_generator.new_id()

        # Gate decisions are taken once, before any backend is resolved.
        approved: list[TestUnit] = []
        all_units: list[TestUnit] = []
        for entry in planned:
            runs = self._gate.should_run(entry.binding, self._environment)
            for unit in entry.units:
                all_units.append(unit)
                if runs:
                    approved.append(unit)
                else:
                    unit.skip(Reason.GATE_REJECTED)

        logger.info(
            "Run %s: %d unit(s) planned, %d approved, %d worker(s)",
            run_id,
            len(all_units),
            len(approved),
            workers,
        )

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parity")
        try:
            futures = [pool.submit(self.run_unit, unit) for unit in approved]
            _, not_done = wait(futures, timeout=timeout_s)
            if not_done:
                logger.error(
                    "Run %s: %d unit(s) did not finish within %ss",
                    run_id,
                    len(not_done),
                    timeout_s,
                )
        finally:
            pool.shutdown(wait=timeout_s is None, cancel_futures=True)
            # Backend instances live for one run.
            self._resolver.clear()

        report = RunReport(run_id=run_id, results=tuple(u.result() for u in all_units))
        logger.info("Run %s finished: %s", run_id, report.summary())
        return report

    def run_unit(self, unit: TestUnit) -> TestUnit:
        """Resolve ``unit``'s backend and execute its scenario.

        Backend failures mark the unit errored, scenario failures mark it
        failed; nothing is raised, so one unit never affects another.
        """
        started = time.perf_counter()
        try:
            self._run_unit(unit)
        finally:
            unit.duration_s = time.perf_counter() - started
        self._log_outcome(unit)
        return unit

    def _run_unit(self, unit: TestUnit) -> None:
        unit.start_resolving()
        try:
            parser = self._resolver.resolve(unit.key.backend)
        except ResolutionError as exc:
            unit.error(Reason.RESOLUTION_ERROR, detail=str(exc))
            return
        except BackendConstructionError as exc:
            unit.error(Reason.BACKEND_CONSTRUCTION_ERROR, detail=str(exc))
            return

        unit.start_running()
        try:
            actual = self._executor.execute(parser, unit.key, unit.scenario)
        except FlakyScenarioError as exc:
            unit.fail(Reason.FLAKY_SCENARIO, actual=exc.actual, detail=str(exc))
        except AssertionMismatch as exc:
            unit.fail(Reason.ASSERTION_MISMATCH, actual=exc.actual, detail=str(exc))
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("%s raised while executing", unit.key, exc_info=True)
            unit.fail(Reason.EXECUTION_ERROR, detail=f"{type(exc).__name__}: {exc}")
        else:
            unit.pass_(actual)

    @staticmethod
    def _log_outcome(unit: TestUnit) -> None:
        outcome = unit.outcome
        if outcome in (Outcome.FAILED, Outcome.ERRORED):
            logger.warning(
                "%s %s (%s)",
                outcome.value.upper(),
                unit.key,
                unit.reason.value if unit.reason else "unknown",
            )
        else:
            logger.debug("%s %s in %.3fs", outcome.value.upper(), unit.key, unit.duration_s)
