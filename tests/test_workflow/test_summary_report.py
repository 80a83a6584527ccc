"""Tests for the Markdown and JSON test summary."""
from __future__ import annotations

from src.shared.models.execution import (
    OutcomeRecord,
    OutcomeStatus,
    RunSummary,
    TestRunResult,
)
from src.workflow.report import build_summary_dict, render_summary_markdown


def _runs() -> list[TestRunResult]:
    users = TestRunResult(
        category="users",
        records=(
            OutcomeRecord("SuccessfulGetUsersOperation", OutcomeStatus.PASSED, 120),
            OutcomeRecord(
                "FailedGetUserByIdOperationWithMissingId",
                OutcomeStatus.FAILED,
                300,
                "AssertionError: expected 400",
            ),
        ),
        total=2,
        passed=1,
        failed=1,
        execution_time_ms=1000,
    )
    health = TestRunResult(
        category="health",
        records=(OutcomeRecord("SuccessfulHealthCheckOperation", OutcomeStatus.SKIPPED),),
        total=1,
        skipped=1,
        execution_time_ms=500,
    )
    return [users, health]


class TestRenderSummaryMarkdown:
    def test_overall_section(self):
        runs = _runs()
        text = render_summary_markdown(runs, RunSummary.from_runs(runs))
        assert text.startswith("# Test Summary Report")
        assert "- **Total tests:** 3" in text
        assert "- **Passed:** 1" in text
        assert "- **Skipped:** 1" in text
        assert "- **Pass rate:** 33.33%" in text

    def test_suite_rows(self):
        runs = _runs()
        text = render_summary_markdown(runs, RunSummary.from_runs(runs))
        assert "| users | 2 | 1 | 1 | 0 | 50.00% | 1.00 |" in text
        assert "| health | 1 | 0 | 0 | 1 | 0.00% | 0.50 |" in text

    def test_failures_listed(self):
        runs = _runs()
        text = render_summary_markdown(runs, RunSummary.from_runs(runs))
        assert "### [FAIL] users / FailedGetUserByIdOperationWithMissingId" in text
        assert "AssertionError: expected 400" in text
        assert "No test failures." not in text

    def test_no_failures(self):
        run = TestRunResult(category="orders", total=0)
        text = render_summary_markdown([run], RunSummary.from_runs([run]))
        assert "No test failures." in text


class TestBuildSummaryDict:
    def test_totals_and_records(self):
        runs = _runs()
        data = build_summary_dict(runs, RunSummary.from_runs(runs))
        assert data["total"] == 3
        assert set(data["suites"]) == {"users", "health"}
        failed = data["records"]["users"][1]
        assert failed == {
            "scenario_name": "FailedGetUserByIdOperationWithMissingId",
            "status": "FAILED",
            "duration_ms": 300,
            "error_detail": "AssertionError: expected 400",
        }
        assert data["records"]["health"][0]["status"] == "SKIPPED"
