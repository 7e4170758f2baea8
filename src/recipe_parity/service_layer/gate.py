"""Execution gate: decides which bindings run in a given invocation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recipe_parity.domain.model import Binding

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]


@dataclass(frozen=True)
class RunEnvironment:
    """What the current invocation allows and has available.

    Attributes:
        include_debug_only: Explicit opt-in to debug-only bindings.
        resources: Expensive resources declared present (e.g. by the CLI).
        probes: Lazy availability predicates keyed by resource name. A probe
            is evaluated at most once per environment.
    """

    include_debug_only: bool = False
    resources: frozenset[str] = frozenset()
    probes: Mapping[str, Probe] = field(default_factory=dict)
    _probed: dict[str, bool] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _probe_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", frozenset(self.resources))
        object.__setattr__(self, "probes", dict(self.probes))

    def is_available(self, resource: str) -> bool:
        """Whether ``resource`` is declared present or its probe confirms it.

        A probe that raises counts as "not available"; the error is logged.
        """
        if resource in self.resources:
            return True
        if (probe := self.probes.get(resource)) is None:
            return False
        with self._probe_lock:
            if resource not in self._probed:
                try:
                    self._probed[resource] = bool(probe())
                except Exception:  # pylint: disable=broad-except
                    logger.warning(
                        "Availability probe for %s raised; treating it as absent",
                        resource,
                        exc_info=True,
                    )
                    self._probed[resource] = False
            return self._probed[resource]

    def override(
        self,
        *,
        include_debug_only: bool | None = None,
        resources: Iterable[str] = (),
        probes: Mapping[str, Probe] | None = None,
    ) -> RunEnvironment:
        """Return a copy with command-line or catalog overrides applied.

        Args:
            include_debug_only: Replaces the opt-in when not None.
            resources: Declared present in addition to the current ones.
            probes: Added to (or replacing) the current probes.

        Returns:
            RunEnvironment: The derived environment. Probe results already
            memoized here carry over unless the probe itself was replaced.
        """
        probes = dict(probes or {})
        derived = RunEnvironment(
            include_debug_only=(
                self.include_debug_only
                if include_debug_only is None
                else include_debug_only
            ),
            resources=self.resources | frozenset(resources),
            probes={**self.probes, **probes},
        )
        with self._probe_lock:
            derived._probed.update(  # pylint: disable=protected-access
                (name, value) for name, value in self._probed.items() if name not in probes
            )
        return derived


class ExecutionGate:
    """Inclusion policy evaluated before any backend is resolved.

    Bindings that are not debug-only always run. A debug-only binding runs
    only when the environment opts in explicitly, or when the resource it
    needs is available. The gate never touches the resolver, so a rejected
    binding never causes a backend to be constructed.
    """

    def should_run(self, binding: Binding, environment: RunEnvironment) -> bool:
        """Decide whether ``binding``'s units run in ``environment``."""
        decision = self.admits(
            binding.debug_only, binding.required_resource, environment
        )
        if not decision:
            logger.info(
                "Gate rejected debug-only binding %s -> %s (resource %s unavailable)",
                binding.backend,
                ", ".join(binding.contracts),
                binding.required_resource,
            )
        return decision

    @staticmethod
    def admits(debug_only: bool, resource: str, environment: RunEnvironment) -> bool:
        """Apply the gate policy to a bare (debug_only, resource) pair."""
        if not debug_only:
            return True
        if environment.include_debug_only:
            return True
        return environment.is_available(resource)
