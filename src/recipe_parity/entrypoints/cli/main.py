"""RECIPE-PARITY CLI entry point.

Defines the top-level ``recipe-parity`` command (via Click-Extra) and
registers the harness subcommands.

Currently available commands
- ``recipe-parity plan``: list every test unit a catalog expands to, with
  its gate decision.
- ``recipe-parity run``: run a catalog and report per-unit outcomes.

Notes
- The CLI version is sourced from `recipe_parity.__version__` and displayed
  automatically by Click-Extra (``--version``).

Examples
    $ recipe-parity --version
    $ recipe-parity -v run mypkg.parity_catalog --workers 4
"""

import logging
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import click
import click_extra as clickx
from platformdirs import user_log_dir

from recipe_parity import __version__
from recipe_parity.logging import (
    FlightRecorder,
    close_logging,
    config_console_handler,
    config_flight_recorder,
    log_startup,
)

from .commands import plan, run
from .helpers.log_level_parser import parse_log_level

if TYPE_CHECKING:
    from logging import Handler

logger = logging.getLogger(__name__)


HELP = """RECIPE-PARITY command-line interface.

    Replays backend-agnostic recipe contracts against every parser backend a
    catalog binds them to, and reports where backends disagree. Expensive
    debug-only bindings are skipped unless explicitly opted in or their
    resource is available.
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help=(
        "Increase the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help=(
        "Decrease the default WARNING verbosity by one level "
        "for each additional repetition of the option."
    ),
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Enable debug logging (source paths, thread names, timestamps).",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to log file (overrides default flight recorder path).",
    default=Path(user_log_dir("recipe-parity", appauthor=False, ensure_exists=True))
    / "latest.log",
    envvar="RECIPE_PARITY_LOG_PATH",
    show_default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="RECIPE_PARITY_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in number of log records).",
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Enable the in-memory flight recorder. Keeps the last N log records "
        "at DEBUG granularity (unaffected by -v/-q) and writes them to "
        "--log-path when a WARNING/ERROR occurs (any failed or errored unit), "
        "or on clean exit if --force-flush is set."
    ),
    default=True,
    show_envvar=True,
)
@click.option(
    "--force-flush/--no-force-flush",
    "force_flush_flight_recorder",
    is_flag=True,
    help="Force-flush the flight recorder buffer to --log-path on program exit.",
    default=False,
    show_default=True,
    show_envvar=True,
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    help=(
        "Set MINIMUM LEVEL for specific LOGGERS (NAME=LEVEL). Applies to BOTH "
        "console and flight-recorder. Use to quiet chatty backends. Repeatable "
        "(e.g. -L mybackend=WARNING) or via RECIPE_PARITY_LOGGER_LEVELS."
    ),
    envvar="RECIPE_PARITY_LOGGER_LEVELS",
    show_envvar=True,
)
@clickx.pass_context
def recipe_parity(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path,
    flight_recorder_capacity: int,
    flight_recorder: bool,
    force_flush_flight_recorder: bool,
    logger_levels: dict[str, int],
) -> None:
    """RECIPE-PARITY command-line interface."""

    # 0) compute effective verbosity
    base_level = logging.WARNING
    level = base_level - (10 * verbose_count) + (10 * quiet_count)
    level = max(logging.DEBUG, min(logging.CRITICAL, level))

    handlers: list[Handler] = []

    # 1) configure console handler
    use_color = ctx.color is not False  # None or True => allow color
    handlers.append(
        config_console_handler(level=level, debug_mode=debug, color=use_color)
    )

    # 2) configure flight recorder
    recorder: FlightRecorder | None = None
    if flight_recorder:
        recorder = config_flight_recorder(
            path=log_path,
            capacity=flight_recorder_capacity,
            flush_on_close=force_flush_flight_recorder,
        )
        handlers.append(recorder)

    # 3) configure root logger; handlers do the filtering
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)

    # 4) per-logger levels
    for name, lvl in logger_levels.items():
        logging.getLogger(name).setLevel(lvl)

    # 5) startup info
    log_startup(
        logger,
        app_version=__version__,
        level=level,
        log_path=log_path,
        flight_capacity=flight_recorder_capacity if flight_recorder else None,
        force_flush_fr=force_flush_flight_recorder,
        logger_levels=logger_levels,
    )

    # The recorder is closed before logging.shutdown() can flush it.
    ctx.call_on_close(partial(close_logging, recorder))


recipe_parity.add_command(plan)
recipe_parity.add_command(run)
