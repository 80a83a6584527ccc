"""Deterministic outcome simulator standing in for a real test runner.

Statuses are assigned by index: the first ``passed`` identities pass, the
next ``failed`` fail and the rest are skipped.  Durations come from a
``random.Random`` seeded with a fixed value, so the same arguments always
reproduce the same records.

The workflow talks to the simulator through the :class:`OutcomeSource`
protocol; :class:`SeededOutcomeSource` is the default implementation and
a real runner can replace it without touching aggregation or reporting.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol, Sequence, runtime_checkable

from src.shared.constants import (
    CANONICAL_TEST_NAMES,
    DEFAULT_SIMULATION_SEED,
    FAILED_DURATION_RANGE,
    PASSED_DURATION_RANGE,
    SIMULATED_MS_PER_TEST,
)
from src.shared.errors import SimulatorPreconditionError
from src.shared.models.execution import (
    OutcomePlan,
    OutcomeRecord,
    OutcomeStatus,
    TestRunResult,
)

logger = logging.getLogger(__name__)

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class SimulationRun:
    """Records produced by :func:`simulate` and their rendered log."""
    records: tuple[OutcomeRecord, ...]
    log: str


@runtime_checkable
class OutcomeSource(Protocol):
    """Produces a :class:`TestRunResult` for one suite of test identities."""

    def run(
        self, category: str, names: Sequence[str], plan: OutcomePlan
    ) -> TestRunResult:
        """Execute (or simulate) *plan* for the tests named *names*.

        Args:
            category: Suite label used in logs and reports.
            names: Test identities, one per planned test where available.
            plan: Target pass/fail/skip counts.

        Returns:
            Aggregated suite result.
        """
        ...


def draw_identities(total: int, names: Sequence[str] | None = None) -> list[str]:
    """Return *total* identities from *names* (default: the canonical list).

    Identities beyond the end of the list are synthesized as ``Test{i+1}``.
    """
    pool = list(names) if names is not None else CANONICAL_TEST_NAMES
    return [pool[i] if i < len(pool) else f"Test{i + 1}" for i in range(total)]


def simulate(
    total: int,
    passed: int,
    failed: int,
    skipped: int,
    seed: int = DEFAULT_SIMULATION_SEED,
    *,
    category: str = "Acceptance",
    names: Sequence[str] | None = None,
    started_at: datetime | None = None,
) -> SimulationRun:
    """Simulate *total* test outcomes.

    Raises:
        SimulatorPreconditionError: When a count is negative or
            ``passed + failed + skipped != total``.
    """
    if min(total, passed, failed, skipped) < 0 or passed + failed + skipped != total:
        raise SimulatorPreconditionError(total, passed, failed, skipped)

    rng = random.Random(seed)
    records: list[OutcomeRecord] = []
    for index, name in enumerate(draw_identities(total, names)):
        if index < passed:
            records.append(
                OutcomeRecord(
                    scenario_name=name,
                    status=OutcomeStatus.PASSED,
                    duration_ms=rng.randrange(*PASSED_DURATION_RANGE),
                )
            )
        elif index < passed + failed:
            records.append(
                OutcomeRecord(
                    scenario_name=name,
                    status=OutcomeStatus.FAILED,
                    duration_ms=rng.randrange(*FAILED_DURATION_RANGE),
                    error_detail=_stack_trace(category, name),
                )
            )
        else:
            records.append(
                OutcomeRecord(scenario_name=name, status=OutcomeStatus.SKIPPED)
            )

    log = render_log(category, records, started_at=started_at)
    return SimulationRun(records=tuple(records), log=log)


def render_log(
    category: str,
    records: Sequence[OutcomeRecord],
    started_at: datetime | None = None,
) -> str:
    """Render the textual execution log for *records*."""
    started_at = started_at or datetime.now()
    total = len(records)
    counts = {status: 0 for status in OutcomeStatus}
    for record in records:
        counts[record.status] += 1
    elapsed_ms = total * SIMULATED_MS_PER_TEST

    lines: list[str] = [
        f"=== {category} Test Execution Log ===",
        f"Started at: {started_at.strftime(_TIME_FORMAT)}",
        f"Test module: test_{category.lower()}.py",
        "",
    ]
    for record in records:
        if record.status is OutcomeStatus.SKIPPED:
            lines.append(f"[{record.status.value}] {record.scenario_name}")
            lines.append("  Reason: Not implemented yet")
        else:
            lines.append(
                f"[{record.status.value}] {record.scenario_name} ({record.duration_ms} ms)"
            )
            if record.error_detail:
                lines.extend(f"  {line}" for line in record.error_detail.splitlines())
        lines.append("")

    finished_at = started_at + timedelta(milliseconds=elapsed_ms)
    lines.append(f"Finished at: {finished_at.strftime(_TIME_FORMAT)}")
    lines.append(
        f"Total tests: {total}, Passed: {counts[OutcomeStatus.PASSED]}, "
        f"Failed: {counts[OutcomeStatus.FAILED]}, Skipped: {counts[OutcomeStatus.SKIPPED]}"
    )
    lines.append(f"Test execution time: {elapsed_ms / 1000.0:.2f} seconds")
    return "\n".join(lines) + "\n"


def plan_outcomes(total: int, fail_ratio: float = 0.0, skip_ratio: float = 0.0) -> OutcomePlan:
    """Split *total* into pass/fail/skip targets using fixed ratios."""
    failed = min(total, int(total * max(fail_ratio, 0.0)))
    skipped = min(total - failed, int(total * max(skip_ratio, 0.0)))
    return OutcomePlan(
        total=total, passed=total - failed - skipped, failed=failed, skipped=skipped
    )


class SeededOutcomeSource:
    """Default :class:`OutcomeSource` backed by :func:`simulate`."""

    def __init__(self, seed: int = DEFAULT_SIMULATION_SEED) -> None:
        self.seed = seed

    def run(
        self, category: str, names: Sequence[str], plan: OutcomePlan
    ) -> TestRunResult:
        simulation = simulate(
            plan.total,
            plan.passed,
            plan.failed,
            plan.skipped,
            self.seed,
            category=category,
            names=names,
        )
        logger.info(
            "Simulated %s suite: %d tests, %d passed, %d failed, %d skipped",
            category,
            plan.total,
            plan.passed,
            plan.failed,
            plan.skipped,
        )
        return TestRunResult(
            category=category,
            records=simulation.records,
            total=plan.total,
            passed=plan.passed,
            failed=plan.failed,
            skipped=plan.skipped,
            execution_time_ms=plan.total * SIMULATED_MS_PER_TEST,
            detailed_log=simulation.log,
        )


def _stack_trace(category: str, name: str) -> str:
    module = f"test_{category.lower()}"
    return "\n".join(
        [
            "Error: Assertion failed: Expected status code 200 but was 500",
            "Traceback (most recent call last):",
            f'  File "{module}.py", line 42, in {name}',
            "    then_the_response_status_code_should_be(status_code)",
            f'  File "{module}.py", line 17, in then_the_response_status_code_should_be',
            "    assert response.status_code == status_code",
            f"AssertionError: [{category}] {name}: expected 200, got 500",
        ]
    )
