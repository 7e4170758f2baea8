"""Backend registry: declared backends and their construction procedures."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from recipe_parity.domain.errors import DuplicateBackendError, ResolutionError
from recipe_parity.domain.model import BackendSpec

if TYPE_CHECKING:
    from recipe_parity.interfaces.parser import Parser

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Identity-keyed registry of backend declarations.

    Registration only records the declared features and the constructor.
    Nothing here ever calls a constructor; that is the resolver's job.
    """

    def __init__(self) -> None:
        self._backends: dict[str, BackendSpec] = {}
        self._lock = threading.Lock()

    def register_backend(
        self,
        identity: str,
        features: Iterable[str],
        constructor: Callable[[], Parser],
        description: str = "",
    ) -> BackendSpec:
        """Register a backend declaration.

        Args:
            identity: Unique backend identity (e.g. ``"V11"``).
            features: Features the backend supports.
            constructor: Zero-argument callable building the backend.
            description: Free-form text shown by ``recipe-parity plan``.

        Returns:
            BackendSpec: The registered declaration.

        Raises:
            DuplicateBackendError: If ``identity`` is already registered.
        """
        spec = BackendSpec(
            identity=identity,
            features=frozenset(features),
            constructor=constructor,
            description=description,
        )
        with self._lock:
            if identity in self._backends:
                raise DuplicateBackendError(identity)
            self._backends[identity] = spec
        logger.debug(
            "Registered backend %s with features %s", identity, sorted(spec.features)
        )
        return spec

    def find(self, identity: str) -> BackendSpec | None:
        """Return the declaration for ``identity``, or None if unregistered."""
        return self._backends.get(identity)

    def get(self, identity: str) -> BackendSpec:
        """Return the declaration for ``identity``.

        Raises:
            ResolutionError: If ``identity`` is not registered.
        """
        if (spec := self.find(identity)) is None:
            raise ResolutionError(identity)
        return spec

    def identities(self) -> list[str]:
        """Registered identities in registration order."""
        return list(self._backends)

    def __contains__(self, identity: object) -> bool:
        return identity in self._backends
