"""Fail-fast sequential orchestrator for the three workflow stages.

:func:`execute_workflow` is the top-level entry point.  It drives a
:class:`WorkflowModel` through the state machine: every non-terminal
state maps to exactly one stage, the stage's typed output is handed to
the next stage, and the first failed stage moves the machine to
``failed`` and ends the run.  Artifacts written by earlier stages are
left in place.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from src.scenario_engine.services.outcome_simulator import (
    OutcomeSource,
    SeededOutcomeSource,
)
from src.shared.logging import run_id_var
from src.shared.models.execution import RunSummary, TestRunResult
from src.shared.utils import ensure_dir
from src.workflow.config import WorkflowConfig
from src.workflow.exceptions import WorkflowError
from src.workflow.stages import (
    ExecutionStageOutput,
    ScenarioStageOutput,
    StageContext,
    StageKind,
    StageResult,
    StageRuntime,
    SynthesisStageOutput,
    execute_stage,
)
from src.workflow.state import WorkflowState
from src.workflow.state_machine import TERMINAL_STATES, create_workflow_machine

logger = logging.getLogger(__name__)

# state -> (stage run in that state, trigger fired when it succeeds)
_STATE_STAGES: dict[str, tuple[StageKind, str]] = {
    "scenario_stage": (StageKind.SCENARIO_GENERATION, "scenarios_done"),
    "synthesis_stage": (StageKind.CODE_SYNTHESIS, "synthesis_done"),
    "execution_stage": (StageKind.TEST_EXECUTION, "execution_done"),
}


class WorkflowModel:
    """Model object for the ``transitions`` async state machine.

    Holds the contract reference and the outputs of completed stages; the
    ``state`` attribute is managed by the ``AsyncMachine``.
    """

    def __init__(self, contract_ref: Any) -> None:
        self.contract_ref = contract_ref
        self.outputs: dict[StageKind, Any] = {}
        self.results: dict[StageKind, StageResult] = {}
        self.state: str = "pending"

    # ---- Guard methods ---------------------------------------------------

    def has_contract(self, *args, **kwargs) -> bool:
        """True when a contract reference was supplied."""
        return self.contract_ref is not None

    def has_scenarios(self, *args, **kwargs) -> bool:
        """True when scenario generation produced at least one scenario."""
        output = self.outputs.get(StageKind.SCENARIO_GENERATION)
        return isinstance(output, ScenarioStageOutput) and bool(output.scenarios)

    def has_step_groups(self, *args, **kwargs) -> bool:
        """True when synthesis produced at least one group."""
        output = self.outputs.get(StageKind.CODE_SYNTHESIS)
        return isinstance(output, SynthesisStageOutput) and bool(output.groups)

    def has_test_results(self, *args, **kwargs) -> bool:
        """True when the execution stage produced a summary."""
        output = self.outputs.get(StageKind.TEST_EXECUTION)
        return isinstance(output, ExecutionStageOutput)


@dataclass(frozen=True)
class WorkflowOutput:
    """Aggregate output of a successful run."""
    scenario_count: int
    group_keys: tuple[str, ...]
    stub_count: int
    collision_count: int
    runs: tuple[TestRunResult, ...]
    summary: RunSummary
    artifact_paths: dict[str, tuple[str, ...]] = field(default_factory=dict)
    elapsed_ms: int = 0


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of :func:`execute_workflow`."""
    success: bool
    run_id: str
    final_state: str
    stage_results: tuple[tuple[StageKind, StageResult], ...] = ()
    output: Optional[WorkflowOutput] = None
    error_message: Optional[str] = None
    failed_stage: Optional[StageKind] = None
    elapsed_ms: int = 0


async def execute_workflow(
    contract_ref: Any,
    config: WorkflowConfig | None = None,
    *,
    outcome_source: OutcomeSource | None = None,
) -> WorkflowResult:
    """Run scenario generation, code synthesis and test execution in order.

    Parameters
    ----------
    contract_ref:
        Contract file path, decoded contract document, or a sequence of
        endpoints (see :func:`resolve_endpoints`).
    config:
        Workflow configuration.  Defaults to :class:`WorkflowConfig`.
    outcome_source:
        Test outcome provider for the execution stage.  Defaults to a
        :class:`SeededOutcomeSource` using the configured seed.

    Returns
    -------
    WorkflowResult
        ``success`` is ``False`` when any stage failed; ``error_message``
        then names the stage and its error.
    """
    config = config or WorkflowConfig()
    runtime = StageRuntime(outcome_source or SeededOutcomeSource(config.execution.seed))
    output_dir = Path(config.output_dir) if config.output_dir else None

    state = WorkflowState(contract_ref=_describe_ref(contract_ref))
    token = run_id_var.set(state.run_id)
    start = time.monotonic()
    try:
        model = WorkflowModel(contract_ref)
        create_workflow_machine(model)
        logger.info("Starting workflow run %s for %s", state.run_id, state.contract_ref)

        error = _prepare_output_dir(output_dir)
        if error is not None:
            output_dir = None
        else:
            await model.start()  # type: ignore[attr-defined]
            if model.state == "pending":
                error = "No contract reference supplied"

        if error is not None:
            await model.fail()  # type: ignore[attr-defined]
            state.failed_stage = StageKind.SCENARIO_GENERATION.value
            state.error_message = _failure_message(StageKind.SCENARIO_GENERATION, error)
            state.current_state = model.state
            _save_state(state, output_dir)
        else:
            await _run_workflow_loop(model, config, runtime, state, output_dir)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = None
        if model.state == "complete" and not state.error_message:
            output = _compose_output(model, state, elapsed_ms)

        stage_results = tuple(model.results.items())
        if output is None:
            logger.error(state.error_message)
            return WorkflowResult(
                success=False,
                run_id=state.run_id,
                final_state=model.state,
                stage_results=stage_results,
                error_message=state.error_message,
                failed_stage=StageKind(state.failed_stage) if state.failed_stage else None,
                elapsed_ms=elapsed_ms,
            )

        logger.info(
            "Workflow run %s complete: %d scenarios, %d stubs, %d/%d tests passed",
            state.run_id,
            output.scenario_count,
            output.stub_count,
            output.summary.passed,
            output.summary.total,
        )
        return WorkflowResult(
            success=True,
            run_id=state.run_id,
            final_state=model.state,
            stage_results=stage_results,
            output=output,
            elapsed_ms=elapsed_ms,
        )
    finally:
        run_id_var.reset(token)


async def _run_workflow_loop(
    model: WorkflowModel,
    config: WorkflowConfig,
    runtime: StageRuntime,
    state: WorkflowState,
    output_dir: Path | None,
) -> None:
    """Drive the model from ``scenario_stage`` to a terminal state."""
    previous_output: Any = None
    stage_configs = {
        StageKind.SCENARIO_GENERATION: config.scenarios,
        StageKind.CODE_SYNTHESIS: config.synthesis,
        StageKind.TEST_EXECUTION: config.execution,
    }

    while model.state not in TERMINAL_STATES:
        current = model.state
        if current not in _STATE_STAGES:
            raise WorkflowError(f"No stage for state '{current}'")
        kind, trigger = _STATE_STAGES[current]

        context = StageContext(
            contract_ref=model.contract_ref,
            output_id=str(output_dir) if output_dir is not None else "",
            input=previous_output,
            configuration=stage_configs[kind],
        )
        result = await execute_stage(kind, context, runtime)
        model.results[kind] = result
        state.stage_timings_ms[kind.value] = result.execution_time_ms

        if result.success:
            model.outputs[kind] = result.output
            state.artifacts[kind.value] = list(result.output.artifact_paths)
            if isinstance(result.output, ExecutionStageOutput):
                state.summary = result.output.summary.to_dict()
            await getattr(model, trigger)()
            if model.state == current:
                error = "stage produced no usable output"
            else:
                state.completed_stages.append(kind.value)
                previous_output = result.output
                error = None
        else:
            error = result.error_message

        if error is not None:
            state.failed_stage = kind.value
            state.error_message = _failure_message(kind, error)
            await model.fail()  # type: ignore[attr-defined]

        state.current_state = model.state
        save_error = _save_state(state, output_dir)
        if save_error is not None and not state.error_message:
            # the stage's own failure, if any, takes precedence
            state.failed_stage = kind.value
            state.error_message = _failure_message(kind, save_error)
            await model.fail()  # type: ignore[attr-defined]
            state.current_state = model.state
            return


def _prepare_output_dir(output_dir: Path | None) -> Optional[str]:
    """Create *output_dir*; return an error message when that is impossible."""
    if output_dir is None:
        return None
    try:
        ensure_dir(output_dir)
    except OSError as exc:
        logger.error("Cannot create output directory %s: %s", output_dir, exc)
        return f"Cannot create output directory {output_dir}: {exc}"
    return None


def _save_state(state: WorkflowState, output_dir: Path | None) -> Optional[str]:
    """Persist *state*; return an error message when the write fails."""
    if output_dir is None:
        return None
    try:
        state.save(output_dir)
    except OSError as exc:
        logger.error("Cannot save workflow state to %s: %s", output_dir, exc)
        return f"Cannot save workflow state: {exc}"
    return None


def _compose_output(model: WorkflowModel, state: WorkflowState, elapsed_ms: int) -> WorkflowOutput:
    scenarios: ScenarioStageOutput = model.outputs[StageKind.SCENARIO_GENERATION]
    synthesis: SynthesisStageOutput = model.outputs[StageKind.CODE_SYNTHESIS]
    execution: ExecutionStageOutput = model.outputs[StageKind.TEST_EXECUTION]
    return WorkflowOutput(
        scenario_count=len(scenarios.scenarios),
        group_keys=tuple(synthesis.group_keys),
        stub_count=synthesis.stub_count,
        collision_count=synthesis.collision_count,
        runs=execution.runs,
        summary=execution.summary,
        artifact_paths={kind: tuple(paths) for kind, paths in state.artifacts.items()},
        elapsed_ms=elapsed_ms,
    )


def _failure_message(kind: StageKind, error: str) -> str:
    return f"Workflow failed at stage {kind.value}: {error}"


def _describe_ref(contract_ref: Any) -> str:
    if isinstance(contract_ref, (str, Path)):
        return str(contract_ref)
    if isinstance(contract_ref, dict):
        return "<contract document>"
    try:
        return f"<{len(contract_ref)} endpoints>"
    except TypeError:
        return repr(contract_ref)
