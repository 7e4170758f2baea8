"""Service layer: catalogs, resolution, gating and execution."""

from .backends import BackendRegistry
from .bindings import BindingCatalog, PlannedBinding
from .contracts import ContractLibrary
from .execution import ScenarioExecutor
from .gate import ExecutionGate, RunEnvironment
from .report import RunReport, format_failure
from .resolver import BackendResolver, ResolutionContext
from .runner import HarnessRunner

__all__ = [
    "BackendRegistry",
    "BackendResolver",
    "BindingCatalog",
    "ContractLibrary",
    "ExecutionGate",
    "HarnessRunner",
    "PlannedBinding",
    "ResolutionContext",
    "RunEnvironment",
    "RunReport",
    "ScenarioExecutor",
    "format_failure",
]
