"""Workflow stages: typed hand-off records and the stage handler table.

Each stage receives a fresh :class:`StageContext` holding the previous
stage's typed output and its own configuration, and returns a
:class:`StageResult`.  :func:`execute_stage` is the only entry point; it
converts every error raised by a handler into a failed result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from src.scenario_engine.services.artifact_writer import (
    write_execution_reports,
    write_features,
    write_step_modules,
    write_test_modules,
)
from src.scenario_engine.services.code_synthesizer import SynthesizedGroup, synthesize
from src.scenario_engine.services.contract_loader import resolve_endpoints
from src.scenario_engine.services.outcome_simulator import (
    OutcomeSource,
    SeededOutcomeSource,
    plan_outcomes,
)
from src.scenario_engine.services.scenario_generator import generate_all
from src.scenario_engine.services.step_classifier import sanitize_identifier
from src.shared.errors import AppError
from src.shared.models.endpoints import Endpoint
from src.shared.models.execution import RunSummary, TestRunResult
from src.shared.models.scenarios import Scenario
from src.workflow.config import (
    ExecutionStageConfig,
    ScenarioStageConfig,
    SynthesisStageConfig,
)
from src.workflow.exceptions import MissingStageInputError
from src.workflow.report import build_summary_dict, render_summary_markdown

logger = logging.getLogger(__name__)


class StageKind(str, Enum):
    """The three workflow stages, in execution order."""
    SCENARIO_GENERATION = "scenario_generation"
    CODE_SYNTHESIS = "code_synthesis"
    TEST_EXECUTION = "test_execution"


STAGE_ORDER: tuple[StageKind, ...] = (
    StageKind.SCENARIO_GENERATION,
    StageKind.CODE_SYNTHESIS,
    StageKind.TEST_EXECUTION,
)


# ---------------------------------------------------------------------------
# Stage outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScenarioStageOutput:
    """Endpoints read from the contract and the scenarios generated for them."""
    endpoints: tuple[Endpoint, ...]
    scenarios: tuple[Scenario, ...]
    artifact_paths: tuple[str, ...] = ()


@dataclass(frozen=True)
class SynthesisStageOutput:
    """Synthesized stub groups, in first-seen group order."""
    scenarios: tuple[Scenario, ...]
    groups: tuple[SynthesizedGroup, ...]
    artifact_paths: tuple[str, ...] = ()

    @property
    def group_keys(self) -> list[str]:
        return [g.key for g in self.groups]

    @property
    def stub_count(self) -> int:
        return sum(len(g.stubs) for g in self.groups)

    @property
    def collision_count(self) -> int:
        return sum(len(g.collisions) for g in self.groups)


@dataclass(frozen=True)
class ExecutionStageOutput:
    """One simulated suite per group plus the overall summary."""
    runs: tuple[TestRunResult, ...]
    summary: RunSummary
    artifact_paths: tuple[str, ...] = ()


StageOutput = Union[ScenarioStageOutput, SynthesisStageOutput, ExecutionStageOutput]


# ---------------------------------------------------------------------------
# Context and result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StageContext:
    """Inputs for one stage invocation.

    ``output_id`` is the artifact directory; empty keeps artifacts in memory.
    ``input`` is the previous stage's output, ``None`` for the first stage.
    """
    contract_ref: Any
    output_id: str = ""
    input: Any = None
    configuration: Any = None

    @property
    def output_dir(self) -> Optional[Path]:
        return Path(self.output_id) if self.output_id else None


@dataclass(frozen=True)
class StageResult:
    """Outcome of one stage; ``error_message`` is set iff not ``success``."""
    success: bool
    output: Optional[StageOutput] = None
    error_message: Optional[str] = None
    execution_time_ms: int = 0

    def __post_init__(self) -> None:
        if self.success == bool(self.error_message):
            raise ValueError("error_message must be set iff the stage failed")

    @classmethod
    def ok(cls, output: StageOutput, execution_time_ms: int = 0) -> "StageResult":
        return cls(success=True, output=output, execution_time_ms=execution_time_ms)

    @classmethod
    def failed(cls, message: str, execution_time_ms: int = 0) -> "StageResult":
        return cls(
            success=False,
            error_message=message or "Stage failed without a message",
            execution_time_ms=execution_time_ms,
        )


class StageRuntime:
    """Collaborators shared by all stages of one workflow run."""

    def __init__(self, outcome_source: OutcomeSource | None = None) -> None:
        self.outcome_source: OutcomeSource = outcome_source or SeededOutcomeSource()


# ---------------------------------------------------------------------------
# Stage handlers
# ---------------------------------------------------------------------------


async def run_scenario_stage(ctx: StageContext, runtime: StageRuntime) -> ScenarioStageOutput:
    """Resolve endpoints from the contract and generate scenarios."""
    config = ctx.configuration or ScenarioStageConfig()
    endpoints = resolve_endpoints(ctx.contract_ref)
    scenarios = [
        s
        for s in generate_all(endpoints)
        if (config.include_negative or s.classification != "negative")
        and (config.include_edge_cases or s.classification != "edge-case")
    ]
    logger.info("Generated %d scenarios for %d endpoints", len(scenarios), len(endpoints))

    paths: list[Path] = []
    if ctx.output_dir is not None:
        paths = write_features(ctx.output_dir, scenarios)
    return ScenarioStageOutput(
        endpoints=tuple(endpoints),
        scenarios=tuple(scenarios),
        artifact_paths=tuple(str(p) for p in paths),
    )


async def run_synthesis_stage(ctx: StageContext, runtime: StageRuntime) -> SynthesisStageOutput:
    """Group scenarios and synthesize step-definition stubs."""
    previous = ctx.input
    if not isinstance(previous, ScenarioStageOutput):
        raise MissingStageInputError(StageKind.CODE_SYNTHESIS.value, "scenarios")

    config = ctx.configuration or SynthesisStageConfig()
    groups = synthesize(
        previous.scenarios,
        collision_policy=config.collision_policy,
        default_group=config.default_group,
    )

    paths: list[Path] = []
    if ctx.output_dir is not None:
        paths = write_step_modules(ctx.output_dir, groups)
        paths.extend(write_test_modules(ctx.output_dir, groups))
    return SynthesisStageOutput(
        scenarios=previous.scenarios,
        groups=tuple(groups.values()),
        artifact_paths=tuple(str(p) for p in paths),
    )


async def run_execution_stage(ctx: StageContext, runtime: StageRuntime) -> ExecutionStageOutput:
    """Simulate one test suite per synthesized group."""
    previous = ctx.input
    if not isinstance(previous, SynthesisStageOutput):
        raise MissingStageInputError(StageKind.TEST_EXECUTION.value, "step definitions")

    config = ctx.configuration or ExecutionStageConfig()
    runs: list[TestRunResult] = []
    for group in previous.groups:
        names = [sanitize_identifier(s.name) for s in group.scenarios]
        plan = plan_outcomes(len(names), config.fail_ratio, config.skip_ratio)
        runs.append(runtime.outcome_source.run(group.key, names, plan))
        if config.simulated_delay_seconds > 0:
            await asyncio.sleep(config.simulated_delay_seconds)

    summary = RunSummary.from_runs(runs)
    logger.info(
        "Executed %d suites: %d tests, %d passed, %d failed, %d skipped",
        len(runs),
        summary.total,
        summary.passed,
        summary.failed,
        summary.skipped,
    )

    paths: list[Path] = []
    if ctx.output_dir is not None:
        paths = write_execution_reports(
            ctx.output_dir,
            runs,
            render_summary_markdown(runs, summary),
            build_summary_dict(runs, summary),
        )
    return ExecutionStageOutput(
        runs=tuple(runs),
        summary=summary,
        artifact_paths=tuple(str(p) for p in paths),
    )


StageHandler = Callable[[StageContext, StageRuntime], Awaitable[Any]]

_STAGE_HANDLERS: dict[StageKind, StageHandler] = {
    StageKind.SCENARIO_GENERATION: run_scenario_stage,
    StageKind.CODE_SYNTHESIS: run_synthesis_stage,
    StageKind.TEST_EXECUTION: run_execution_stage,
}


async def execute_stage(
    kind: StageKind, ctx: StageContext, runtime: StageRuntime | None = None
) -> StageResult:
    """Run the handler for *kind*, converting errors into a failed result."""
    runtime = runtime or StageRuntime()
    handler = _STAGE_HANDLERS[kind]
    start = time.monotonic()

    def _elapsed() -> int:
        return int((time.monotonic() - start) * 1000)

    try:
        output = await handler(ctx, runtime)
    except MissingStageInputError as exc:
        logger.error("Stage %s cannot start: %s", kind.value, exc)
        return StageResult.failed(str(exc), _elapsed())
    except AppError as exc:
        logger.error("Stage %s failed: %s", kind.value, exc.detail)
        return StageResult.failed(exc.detail, _elapsed())
    except Exception as exc:
        logger.exception("Unexpected error in stage %s", kind.value)
        return StageResult.failed(f"{type(exc).__name__}: {exc}", _elapsed())

    logger.info("Stage %s completed in %d ms", kind.value, _elapsed())
    return StageResult.ok(output, _elapsed())
