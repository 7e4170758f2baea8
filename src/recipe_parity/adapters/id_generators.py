"""Run identifier generators."""

import threading

from ulid import monotonic

from recipe_parity.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator.

    Run ids sort in the order runs were started, which keeps flight-recorder
    logs and reports from consecutive runs easy to line up.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class SequentialIdGenerator(IdGenerator):
    """Deterministic ``run-0001``-style ids for tests and demos."""

    def __init__(self, prefix: str = "run") -> None:
        self._prefix = prefix
        self._counter = 0
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate the next sequential id."""
        with self._lock:
            self._counter += 1
            return f"{self._prefix}-{self._counter:04d}"
