"""Logging for parity runs: a Rich console and a flight recorder.

The console shows what the user asked for with ``-v``/``-q``. The flight
recorder keeps the last records at DEBUG in memory and only writes them out
when a unit fails or errors (both log a WARNING), or on exit when forced.
Backends are usually third-party libraries with their own loggers; their
records are tagged on the console so they stand out from harness records.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from logging import Logger

    from recipe_parity.service_layer.gate import RunEnvironment

# pylint: disable=too-few-public-methods

PROJECT_PREFIX = "recipe_parity"

CONSOLE_FORMAT = "%(prefix)s %(message)s"
DEBUG_CONSOLE_FORMAT = "%(asctime)s %(threadName)s %(name)s: %(message)s"
RECORDER_FORMAT = (
    "[%(asctime)s] [%(threadName)s] %(levelname)s %(name)s:%(lineno)d: %(message)s"
)

ColorSystem: TypeAlias = Literal["auto", "standard", "256", "truecolor", "windows"]


class BackendPrefixFilter(logging.Filter):
    """Tag records from loggers outside the harness with their top-level name.

    A record from ``javaparser.v8.compiler`` gets ``record.prefix`` set to
    ``"[javaparser]"``; harness records get an empty prefix. Never drops a
    record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        top_level = record.name.partition(".")[0]
        record.prefix = "" if top_level == PROJECT_PREFIX else f"[{top_level}]"
        return True


def config_console_handler(
    level: int = logging.INFO, debug_mode: bool = False, color: bool = True
) -> RichHandler:
    """Build the stderr console handler.

    Args:
        level: Minimum level shown. Ignored in debug mode, which shows DEBUG.
        debug_mode: Show source paths, timestamps and worker thread names
            instead of backend prefixes.
        color: Follow click-extra's ``--color/--no-color``.

    Returns:
        RichHandler: A handler for the root logger. Stdout stays free for
        plans and reports.
    """
    color_system: ColorSystem | None = "auto" if color else None
    handler = RichHandler(
        level=logging.DEBUG if debug_mode else level,
        console=Console(color_system=color_system, stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug_mode,
        enable_link_path=debug_mode,
    )
    if debug_mode:
        handler.setFormatter(logging.Formatter(fmt=DEBUG_CONSOLE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT))
        handler.addFilter(BackendPrefixFilter())
    return handler


class FlightRecorder(MemoryHandler):
    """Memory buffer that reaches its file only on trouble or when forced.

    Closing discards whatever was not flushed yet, unless the recorder was
    built with ``flushOnClose=True`` (``--force-flush``). `close_logging`
    must close it before `logging.shutdown`, which flushes every handler
    unconditionally on Python 3.11.
    """

    def close(self) -> None:
        if not self.flushOnClose:
            with self.lock:
                self.buffer.clear()
        super().close()


def config_flight_recorder(
    path: Path,
    capacity: int = 2000,
    flush_level: int = logging.WARNING,
    flush_on_close: bool = False,
) -> FlightRecorder:
    """Build a flight recorder writing to ``path``.

    The file is only created on the first flush, so a clean run leaves no
    log behind.

    Args:
        path: Destination of flushed records (overwritten per invocation).
        capacity: Records kept in memory before older ones are written out.
        flush_level: Records at or above this level flush the buffer.
        flush_on_close: Write the buffer on exit even if nothing went wrong.
    """
    target = logging.FileHandler(path, mode="w", encoding="utf-8", delay=True)
    target.setLevel(logging.DEBUG)
    target.setFormatter(logging.Formatter(RECORDER_FORMAT))
    return FlightRecorder(
        capacity=capacity,
        flushLevel=flush_level,
        target=target,
        flushOnClose=flush_on_close,
    )


def close_logging(recorder: FlightRecorder | None = None) -> None:
    """Close ``recorder`` first, then shut logging down."""
    if recorder is not None:
        logging.getLogger().removeHandler(recorder)
        recorder.close()
    logging.shutdown()


def log_startup(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    app_version: str,
    level: int,
    log_path: Path | None,
    flight_capacity: int | None,
    force_flush_fr: bool,
    logger_levels: dict[str, int],
) -> None:
    """Log the logging setup of this invocation.

    ``flight_capacity`` is None when the flight recorder is disabled.
    """
    recorder = "OFF" if flight_capacity is None else f"ON ({log_path})"
    logger.info(
        "RECIPE-PARITY %s: console=%s, flight-recorder=%s",
        app_version,
        logging.getLevelName(level),
        recorder,
    )
    logger.debug("Python %s on %s", sys.version.split()[0], sys.platform)
    if flight_capacity is not None:
        logger.debug(
            "Flight recorder keeps %d record(s), force flush %s",
            flight_capacity,
            "on" if force_flush_fr else "off",
        )
    for name, lvl in sorted(logger_levels.items()):
        logger.debug("Logger %s capped at %s", name, logging.getLevelName(lvl))


def log_run_settings(  # pylint: disable=too-many-arguments
    logger: Logger,
    *,
    catalog: str,
    environment: RunEnvironment,
    replays: int,
    workers: int | None = None,
    timeout_s: float | None = None,
) -> None:
    """Log what a plan or run is about to do.

    Written at INFO so the flight recorder always holds the settings of the
    run that failed. Probes are listed by name only; they are never
    evaluated here.
    """
    logger.info(
        "Catalog %s: replays=%d, workers=%s, timeout=%s",
        catalog,
        replays,
        "-" if workers is None else workers,
        "none" if timeout_s is None else f"{timeout_s}s",
    )
    logger.info(
        "Gate: include-debug-only=%s, resources=%s, probes=%s",
        environment.include_debug_only,
        sorted(environment.resources) or "<none>",
        sorted(environment.probes) or "<none>",
    )
