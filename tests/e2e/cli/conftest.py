"""Fixtures for end-to-end CLI tests."""

import logging

import pytest
from click.testing import CliRunner

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def _restore_logging():
    """Undo the root-logger configuration each CLI invocation installs."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    overridden = ("recipe_parity.service_layer.resolver",)
    levels = {name: logging.getLogger(name).level for name in overridden}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in levels.items():
        logging.getLogger(name).setLevel(lvl)


@pytest.fixture
def runner():
    """Return a Click CliRunner for invoking CLI commands in tests."""
    return CliRunner()


@pytest.fixture
def fs(runner):
    """Run the test inside an isolated working directory."""
    with runner.isolated_filesystem():
        yield
