"""Backend resolver: construct-once, concurrency-safe backend cache.

The first caller to resolve an identity becomes its builder. It constructs
the backend outside the resolver lock and publishes the outcome, success or
failure, to a per-identity `ResolutionContext`. Every other caller, whether
concurrent or later, waits on that context and observes the same published
outcome. Failures are terminal for the run: a backend that failed to
construct is never retried.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from recipe_parity.domain.errors import BackendConstructionError

if TYPE_CHECKING:
    from recipe_parity.interfaces.parser import Parser
    from recipe_parity.service_layer.backends import BackendRegistry

logger = logging.getLogger(__name__)


class ResolutionContext:
    """Cache entry for one backend identity.

    Pending until `publish_instance` or `publish_failure` is called; after
    that the outcome never changes.
    """

    def __init__(self, identity: str) -> None:
        self.identity = identity
        self._ready = threading.Event()
        self._instance: Parser | None = None
        self._failure: BackendConstructionError | None = None

    @property
    def is_pending(self) -> bool:
        """True until an outcome has been published."""
        return not self._ready.is_set()

    @property
    def failed(self) -> bool:
        """True if construction failed."""
        return self._failure is not None

    def publish_instance(self, instance: Parser) -> None:
        """Publish a successfully constructed backend."""
        self._instance = instance
        self._ready.set()

    def publish_failure(self, failure: BackendConstructionError) -> None:
        """Publish a terminal construction failure."""
        self._failure = failure
        self._ready.set()

    def outcome(self) -> Parser:
        """Block until published, then return the instance or raise the failure.

        Raises:
            BackendConstructionError: The cached failure, the same object for
                every caller. Its traceback is reset on each raise.
        """
        self._ready.wait()
        if self._failure is not None:
            raise self._failure.with_traceback(None)
        if self._instance is None:
            raise RuntimeError(f"Backend {self.identity} published no instance")
        return self._instance


class BackendResolver:
    """Resolve backend identities to shared, lazily constructed instances.

    Args:
        registry: The registry holding backend declarations.
    """

    def __init__(self, registry: BackendRegistry) -> None:
        self._registry = registry
        self._contexts: dict[str, ResolutionContext] = {}
        self._construction_counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def resolve(self, identity: str) -> Parser:
        """Return the backend instance for ``identity``, constructing it once.

        Args:
            identity: A registered backend identity.

        Returns:
            Parser: The shared backend instance.

        Raises:
            ResolutionError: If ``identity`` is not registered.
            BackendConstructionError: If construction failed, now or during an
                earlier call in this run.
        """
        spec = self._registry.get(identity)  # raises ResolutionError

        with self._lock:
            context = self._contexts.get(identity)
            is_builder = context is None
            if context is None:
                context = ResolutionContext(identity)
                self._contexts[identity] = context
                self._construction_counts[identity] = (
                    self._construction_counts.get(identity, 0) + 1
                )

        if not is_builder:
            if context.is_pending:
                logger.debug("Waiting for backend %s under construction", identity)
            else:
                logger.debug("Backend %s served from cache", identity)
            return context.outcome()

        logger.info("Constructing backend %s", identity)
        started = time.perf_counter()
        try:
            instance = spec.constructor()
        except Exception as exc:  # pylint: disable=broad-except
            failure = BackendConstructionError(identity, f"{type(exc).__name__}: {exc}")
            # Waiters may raise it before the `raise ... from` below runs.
            failure.__cause__ = exc
            logger.exception("Backend %s failed to construct", identity)
            context.publish_failure(failure)
            raise failure from exc
        else:
            logger.info(
                "Constructed backend %s in %.3fs",
                identity,
                time.perf_counter() - started,
            )
            context.publish_instance(instance)
        finally:
            if context.is_pending:  # interrupted, e.g. KeyboardInterrupt
                context.publish_failure(
                    BackendConstructionError(identity, "construction interrupted")
                )
        return instance

    def is_resolved(self, identity: str) -> bool:
        """True if ``identity`` has a published outcome (success or failure)."""
        context = self._contexts.get(identity)
        return context is not None and not context.is_pending

    def construction_count(self, identity: str) -> int:
        """Number of times this resolver started constructing ``identity``."""
        return self._construction_counts.get(identity, 0)

    def clear(self) -> None:
        """Discard every resolution context at the end of a run.

        Construction counts are kept so they can be inspected after the run.
        """
        with self._lock:
            self._contexts.clear()
