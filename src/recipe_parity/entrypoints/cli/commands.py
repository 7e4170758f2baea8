"""Harness commands: ``plan`` and ``run``.

Both commands take a catalog module, a dotted module name whose
``register(harness)`` function registers contracts, backends and bindings.
Human-oriented notices go to **stderr**; the plan and failure reports go to
**stdout**.

Exit codes
- ``0``: every approved unit passed (skipped units do not count).
- ``1``: at least one unit failed, errored or got stuck.
- ``2``: the catalog could not be loaded or is not composable.
"""

from __future__ import annotations

import logging

import click

from recipe_parity import config
from recipe_parity.bootstrap import Harness, bootstrap, load_catalog
from recipe_parity.domain.errors import CatalogError, CompositionError
from recipe_parity.domain.unit import Outcome
from recipe_parity.logging import log_run_settings
from recipe_parity.service_layer.report import format_failure

from .helpers import error, success, warn

logger = logging.getLogger(__name__)

EXIT_FAILURES = 1
EXIT_CATALOG_ERROR = 2

MISSING_CATALOG_MSG = (
    "No catalog module given.\n\n"
    "Pass it as an argument or set RECIPE_PARITY_CATALOG, e.g.:\n"
    "  recipe-parity run mypkg.parity_catalog\n"
    "  export RECIPE_PARITY_CATALOG=mypkg.parity_catalog"
)


def _catalog_name(catalog: str | None) -> str:
    if catalog:
        return catalog
    try:
        return config.get_catalog_module()
    except config.CatalogModuleNotSetError as e:
        raise click.UsageError(MISSING_CATALOG_MSG) from e


def _build_harness(  # pylint: disable=too-many-arguments
    catalog: str | None,
    include_debug_only: bool | None = None,
    resources: tuple[str, ...] = (),
    replays: int | None = None,
    workers: int | None = None,
    timeout_s: float | None = None,
) -> Harness:
    environment = config.get_run_environment().override(
        include_debug_only=include_debug_only, resources=resources
    )
    try:
        harness = bootstrap(environment, replays=replays)
    except config.InvalidSettingError as e:
        raise click.BadParameter(str(e), param_hint=e.name) from e

    module = _catalog_name(catalog)
    try:
        load_catalog(harness, module)
    except (CatalogError, CompositionError) as e:
        error(str(e))
        click.get_current_context().exit(EXIT_CATALOG_ERROR)

    log_run_settings(
        logger,
        catalog=module,
        environment=harness.environment,
        replays=harness.executor.replays,
        workers=workers,
        timeout_s=timeout_s,
    )
    return harness


catalog_argument = click.argument("catalog", required=False)


@click.command()
@catalog_argument
@click.option(
    "--include-debug-only/--no-include-debug-only",
    "include_debug_only",
    default=None,
    help=(
        "Also list debug-only bindings as runnable. Defaults to "
        "RECIPE_PARITY_INCLUDE_DEBUG_ONLY."
    ),
)
@click.option(
    "--resource",
    "resources",
    multiple=True,
    help="Declare an expensive resource as available. Repeatable.",
)
def plan(
    catalog: str | None, include_debug_only: bool | None, resources: tuple[str, ...]
) -> None:
    """List every test unit of CATALOG with its gate decision.

    Never constructs a backend.
    """
    harness = _build_harness(catalog, include_debug_only, resources)
    try:
        planned = harness.plan()
    except (CatalogError, CompositionError) as e:
        error(str(e))
        click.get_current_context().exit(EXIT_CATALOG_ERROR)

    total = skipped = 0
    for entry in planned:
        runs = harness.should_run(entry.binding)
        for unit in entry.units:
            total += 1
            if runs:
                click.echo(f"RUN   {unit.key}")
            else:
                skipped += 1
                click.echo(f"SKIP  {unit.key}  (GateRejected)")

    click.echo(f"{total} unit(s), {total - skipped} to run, {skipped} gated out")


@click.command()
@catalog_argument
@click.option(
    "--include-debug-only/--no-include-debug-only",
    "include_debug_only",
    default=None,
    help=(
        "Run debug-only bindings even if their resource is not detected. "
        "Defaults to RECIPE_PARITY_INCLUDE_DEBUG_ONLY."
    ),
)
@click.option(
    "--resource",
    "resources",
    multiple=True,
    help="Declare an expensive resource as available. Repeatable.",
)
@click.option(
    "--replays",
    type=click.IntRange(min=1),
    default=None,
    help="Replays per scenario for determinism checks. Defaults to RECIPE_PARITY_REPLAYS or 2.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of worker threads executing test units.",
)
@click.option(
    "--timeout",
    "timeout_s",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Overall deadline in seconds; unfinished units are reported as stuck.",
)
def run(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    catalog: str | None,
    include_debug_only: bool | None,
    resources: tuple[str, ...],
    replays: int | None,
    workers: int,
    timeout_s: float | None,
) -> None:
    """Run every binding of CATALOG and report the outcomes."""
    harness = _build_harness(
        catalog, include_debug_only, resources, replays, workers, timeout_s
    )
    try:
        report = harness.run(workers=workers, timeout_s=timeout_s)
    except (CatalogError, CompositionError) as e:
        error(str(e))
        click.get_current_context().exit(EXIT_CATALOG_ERROR)

    for result in report.failures():
        click.echo(format_failure(result))
        click.echo()

    if skipped := report.counts()[Outcome.SKIPPED]:
        warn(f"{skipped} unit(s) skipped by the execution gate")

    summary = f"run {report.run_id}: {report.summary()}"
    if report.ok:
        success(summary)
    else:
        error(summary)
        click.get_current_context().exit(EXIT_FAILURES)
