"""Domain model of the parity harness."""

from .model import BackendSpec, Binding, RecipeContract, Scenario, TestUnitKey
from .unit import Outcome, Reason, TestUnit, UnitResult, UnitState

__all__ = [
    "BackendSpec",
    "Binding",
    "Outcome",
    "Reason",
    "RecipeContract",
    "Scenario",
    "TestUnit",
    "TestUnitKey",
    "UnitResult",
    "UnitState",
]
