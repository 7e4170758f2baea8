"""Unit tests for run reports."""

from recipe_parity.domain.model import TestUnitKey
from recipe_parity.domain.unit import Outcome, Reason, UnitResult
from recipe_parity.service_layer.report import RunReport, format_failure


def _result(backend: str, outcome: Outcome, **kwargs) -> UnitResult:
    return UnitResult(TestUnitKey(backend, "AddImport", "adds"), outcome, **kwargs)


def test_counts_include_every_outcome():
    report = RunReport(
        "run-0001",
        (
            _result("V8", Outcome.PASSED),
            _result("V11", Outcome.PASSED),
            _result("Internal", Outcome.SKIPPED, reason=Reason.GATE_REJECTED),
        ),
    )
    counts = report.counts()
    assert set(counts) == set(Outcome)
    assert counts[Outcome.PASSED] == 2
    assert counts[Outcome.SKIPPED] == 1
    assert counts[Outcome.FAILED] == 0
    assert report.ok
    assert report.summary() == "2 passed, 1 skipped"


def test_failures_cover_failed_errored_and_stuck():
    results = (
        _result("A", Outcome.PASSED),
        _result("B", Outcome.FAILED, reason=Reason.ASSERTION_MISMATCH),
        _result("C", Outcome.ERRORED, reason=Reason.RESOLUTION_ERROR),
        _result("D", Outcome.STUCK, reason=Reason.TIMED_OUT),
        _result("E", Outcome.SKIPPED),
    )
    report = RunReport("run-0001", results)
    assert [r.key.backend for r in report.failures()] == ["B", "C", "D"]
    assert not report.ok
    assert report.by_outcome(Outcome.ERRORED) == [results[2]]


def test_empty_reports():
    report = RunReport("run-0001", ())
    assert report.ok
    assert report.summary() == "no test units"


def test_format_failure_localizes_the_unit():
    result = _result(
        "V8",
        Outcome.FAILED,
        reason=Reason.ASSERTION_MISMATCH,
        expected="line 1\nline 2",
        actual="line 1",
        detail="output mismatch",
    )
    assert format_failure(result) == "\n".join(
        [
            "FAILED V8::AddImport::adds",
            "  backend : V8",
            "  contract: AddImport",
            "  scenario: adds",
            "  reason  : AssertionMismatch",
            "  expected:",
            "    | line 1",
            "    | line 2",
            "  actual:",
            "    | line 1",
            "  detail:",
            "    output mismatch",
        ]
    )


def test_format_failure_omits_missing_actual_output():
    result = _result(
        "Broken",
        Outcome.ERRORED,
        reason=Reason.BACKEND_CONSTRUCTION_ERROR,
        expected="x",
        detail="boom",
    )
    text = format_failure(result)
    assert text.startswith("ERRORED Broken::AddImport::adds")
    assert "  actual:" not in text
    assert "reason  : BackendConstructionError" in text
