"""Tests for src.workflow.display."""

from __future__ import annotations

import io

from rich.console import Console

import src.workflow.display as display_mod
from src.shared.models.execution import RunSummary, TestRunResult
from src.scenario_engine.services.scenario_generator import generate
from src.workflow.display import (
    print_error_panel,
    print_final_summary,
    print_info,
    print_scenarios,
    print_stage_table,
    print_suite_table,
    print_workflow_header,
    print_workflow_state,
)
from src.workflow.orchestrator import WorkflowOutput, WorkflowResult
from src.workflow.stages import StageKind, StageResult, ScenarioStageOutput
from src.workflow.state import WorkflowState


def _capture_output(fn, *args, **kwargs) -> str:
    """Capture Rich console output by temporarily replacing the console."""
    buf = io.StringIO()
    original = display_mod._console
    display_mod._console = Console(file=buf, width=160)
    try:
        fn(*args, **kwargs)
    finally:
        display_mod._console = original
    return buf.getvalue()


def _success_result() -> WorkflowResult:
    run = TestRunResult(category="users", total=4, passed=3, failed=1)
    output = WorkflowOutput(
        scenario_count=4,
        group_keys=("users",),
        stub_count=7,
        collision_count=2,
        runs=(run,),
        summary=RunSummary.from_runs([run]),
    )
    ok = StageResult.ok(ScenarioStageOutput(endpoints=(), scenarios=()), 3)
    return WorkflowResult(
        success=True,
        run_id="abc123",
        final_state="complete",
        stage_results=(
            (StageKind.SCENARIO_GENERATION, ok),
            (StageKind.CODE_SYNTHESIS, ok),
            (StageKind.TEST_EXECUTION, ok),
        ),
        output=output,
    )


def _failed_result() -> WorkflowResult:
    return WorkflowResult(
        success=False,
        run_id="def456",
        final_state="failed",
        stage_results=((StageKind.SCENARIO_GENERATION, StageResult.failed("bad contract")),),
        error_message="Workflow failed at stage scenario_generation: bad contract",
        failed_stage=StageKind.SCENARIO_GENERATION,
    )


class TestHeaderAndInfo:
    def test_header_names_contract(self):
        out = _capture_output(print_workflow_header, "api.json", "out")
        assert "scenario-forge" in out
        assert "api.json" in out
        assert "out" in out

    def test_header_in_memory(self):
        out = _capture_output(print_workflow_header, "api.json")
        assert "(in memory)" in out

    def test_info(self):
        assert "hello" in _capture_output(print_info, "hello")

    def test_error_panel(self):
        out = _capture_output(print_error_panel, ValueError("kaboom"))
        assert "Error" in out
        assert "kaboom" in out


class TestStageTable:
    def test_all_complete(self):
        out = _capture_output(print_stage_table, _success_result())
        assert out.count("COMPLETE") == 3
        assert "Test Execution" in out

    def test_failed_and_not_run(self):
        out = _capture_output(print_stage_table, _failed_result())
        assert "FAILED" in out
        assert out.count("NOT RUN") == 2


class TestSuiteTable:
    def test_rows(self):
        out = _capture_output(print_suite_table, _success_result().output.runs)
        assert "users" in out
        assert "75.0%" in out

    def test_empty(self):
        assert "No test suites" in _capture_output(print_suite_table, ())


class TestScenarios:
    def test_lists_scenarios(self, get_user_endpoint):
        scenarios = generate(get_user_endpoint)
        out = _capture_output(print_scenarios, scenarios)
        assert scenarios[0].name in out
        assert "@positive" in out


class TestFinalSummary:
    def test_success(self):
        out = _capture_output(print_final_summary, _success_result())
        assert "Workflow Complete" in out
        assert "abc123" in out
        assert "3/4 passed" in out
        assert "(2 renamed)" in out

    def test_failure(self):
        out = _capture_output(print_final_summary, _failed_result())
        assert "Workflow Failed" in out
        assert "bad contract" in out


class TestWorkflowState:
    def test_state_table(self):
        state = WorkflowState(
            run_id="r1",
            contract_ref="api.json",
            current_state="failed",
            completed_stages=["scenario_generation"],
            stage_timings_ms={"scenario_generation": 4},
            summary={"passed": 2, "total": 3},
            error_message="boom",
        )
        out = _capture_output(print_workflow_state, state)
        assert "r1" in out
        assert "scenario_generation" in out
        assert "2/3 passed" in out
        assert "boom" in out
