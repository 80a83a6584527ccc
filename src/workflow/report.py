"""Test summary report generation (Markdown and JSON-ready dict)."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from src.shared.models.execution import OutcomeStatus, RunSummary, TestRunResult
from src.shared.utils import now_iso

logger = logging.getLogger(__name__)

_STATUS_BADGES: dict[OutcomeStatus, str] = {
    OutcomeStatus.PASSED: "[PASS]",
    OutcomeStatus.FAILED: "[FAIL]",
    OutcomeStatus.SKIPPED: "[SKIP]",
}


# ---------------------------------------------------------------------------
# Internal section builders
# ---------------------------------------------------------------------------


def _summary_section(summary: RunSummary) -> str:
    lines: list[str] = [
        "# Test Summary Report",
        "",
        f"**Generated:** {now_iso()}",
        "",
        "## Overall Results",
        "",
        f"- **Total tests:** {summary.total}",
        f"- **Passed:** {summary.passed}",
        f"- **Failed:** {summary.failed}",
        f"- **Skipped:** {summary.skipped}",
        f"- **Pass rate:** {summary.pass_rate:.2f}%",
        "",
    ]
    return "\n".join(lines)


def _suite_section(runs: Sequence[TestRunResult]) -> str:
    lines: list[str] = [
        "## Test Suites",
        "",
        "| Suite | Total | Passed | Failed | Skipped | Pass Rate | Time (s) |",
        "|---|---|---|---|---|---|---|",
    ]
    for run in runs:
        lines.append(
            f"| {run.category} | {run.total} | {run.passed} | {run.failed} "
            f"| {run.skipped} | {run.pass_rate:.2f}% | {run.execution_time_ms / 1000:.2f} |"
        )
    lines.append("")
    return "\n".join(lines)


def _failures_section(runs: Sequence[TestRunResult]) -> str:
    lines: list[str] = ["## Failures", ""]
    failures = [(run.category, record) for run in runs for record in run.failures]
    if not failures:
        lines.append("No test failures.")
        lines.append("")
        return "\n".join(lines)

    for category, record in failures:
        lines.append(
            f"### {_STATUS_BADGES[record.status]} {category} / {record.scenario_name}"
        )
        lines.append("")
        lines.append("```")
        lines.append(record.error_detail or "")
        lines.append("```")
        lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_summary_markdown(runs: Sequence[TestRunResult], summary: RunSummary) -> str:
    """Render the Markdown test summary for *runs*."""
    report = "\n".join(
        [_summary_section(summary), _suite_section(runs), _failures_section(runs)]
    )
    logger.debug("Rendered summary report for %d suites", len(runs))
    return report


def build_summary_dict(runs: Sequence[TestRunResult], summary: RunSummary) -> dict[str, Any]:
    """JSON-ready summary: overall totals plus per-record outcomes."""
    data = summary.to_dict()
    data["records"] = {
        run.category: [
            {
                "scenario_name": record.scenario_name,
                "status": record.status.value,
                "duration_ms": record.duration_ms,
                "error_detail": record.error_detail,
            }
            for record in run.records
        ]
        for run in runs
    }
    return data
