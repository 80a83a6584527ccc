"""Simulated execution data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    """Outcome of one simulated test."""
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class OutcomeRecord:
    """Outcome of one simulated test identity."""
    scenario_name: str
    status: OutcomeStatus
    duration_ms: int = 0
    error_detail: str | None = None

    def __post_init__(self) -> None:
        if (self.status is OutcomeStatus.FAILED) != (self.error_detail is not None):
            raise ValueError(
                f"error_detail must be set iff status is FAILED ({self.scenario_name})"
            )


@dataclass(frozen=True)
class OutcomePlan:
    """Target outcome counts for one simulated suite."""
    total: int
    passed: int
    failed: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class TestRunResult:
    """Aggregated outcome of one simulated suite."""

    __test__ = False  # not a pytest test class

    category: str
    records: tuple[OutcomeRecord, ...] = ()
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    execution_time_ms: int = 0
    detailed_log: str = ""

    @property
    def pass_rate(self) -> float:
        return 0.0 if self.total == 0 else self.passed / self.total * 100

    @property
    def failures(self) -> list[OutcomeRecord]:
        return [r for r in self.records if r.status is OutcomeStatus.FAILED]


@dataclass(frozen=True)
class RunSummary:
    """Totals across several suites."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    suites: dict[str, dict[str, float]] = field(default_factory=dict)

    @property
    def pass_rate(self) -> float:
        return 0.0 if self.total == 0 else self.passed / self.total * 100

    @classmethod
    def from_runs(cls, runs: tuple[TestRunResult, ...] | list[TestRunResult]) -> "RunSummary":
        suites = {
            run.category: {
                "total": run.total,
                "passed": run.passed,
                "failed": run.failed,
                "skipped": run.skipped,
                "pass_rate": run.pass_rate,
            }
            for run in runs
        }
        return cls(
            total=sum(r.total for r in runs),
            passed=sum(r.passed for r in runs),
            failed=sum(r.failed for r in runs),
            skipped=sum(r.skipped for r in runs),
            suites=suites,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "pass_rate": self.pass_rate,
            "suites": self.suites,
        }
