"""Run reports."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from recipe_parity.domain.unit import Outcome, UnitResult


@dataclass(frozen=True)
class RunReport:
    """Results of one harness run, in plan order."""

    run_id: str
    results: tuple[UnitResult, ...]

    def counts(self) -> dict[Outcome, int]:
        """Number of units per outcome; every outcome is present."""
        counter = Counter(result.outcome for result in self.results)
        return {outcome: counter.get(outcome, 0) for outcome in Outcome}

    def failures(self) -> list[UnitResult]:
        """Results that were failed, errored or stuck."""
        return [result for result in self.results if result.is_failure]

    def by_outcome(self, outcome: Outcome) -> list[UnitResult]:
        """Results with the given outcome."""
        return [result for result in self.results if result.outcome is outcome]

    @property
    def ok(self) -> bool:
        """True when no unit failed, errored or got stuck."""
        return not self.failures()

    def summary(self) -> str:
        """One-line summary, e.g. ``"3 passed, 1 skipped"``."""
        parts = [
            f"{count} {outcome.value}"
            for outcome, count in self.counts().items()
            if count
        ]
        return ", ".join(parts) or "no test units"


def format_failure(result: UnitResult) -> str:
    """Render a failed result with everything needed to localize it."""
    key = result.key
    lines = [
        f"{result.outcome.value.upper()} {key}",
        f"  backend : {key.backend}",
        f"  contract: {key.contract}",
        f"  scenario: {key.scenario}",
    ]
    if result.reason is not None:
        lines.append(f"  reason  : {result.reason.value}")
    lines.append("  expected:")
    lines.extend(f"    | {line}" for line in result.expected.split("\n"))
    if result.actual is not None:
        lines.append("  actual:")
        lines.extend(f"    | {line}" for line in result.actual.split("\n"))
    if result.detail:
        lines.append("  detail:")
        lines.extend(f"    {line}" for line in result.detail.split("\n"))
    return "\n".join(lines)
