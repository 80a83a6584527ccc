"""Tests for stage hand-off records and stage execution."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.shared.models.execution import OutcomePlan, TestRunResult
from src.workflow.config import (
    ExecutionStageConfig,
    ScenarioStageConfig,
    SynthesisStageConfig,
)
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


async def _scenario_output(endpoints, **config) -> ScenarioStageOutput:
    result = await execute_stage(
        StageKind.SCENARIO_GENERATION,
        StageContext(contract_ref=endpoints, configuration=ScenarioStageConfig(**config)),
    )
    assert result.success, result.error_message
    return result.output


class TestStageResult:
    def test_ok(self):
        output = ScenarioStageOutput(endpoints=(), scenarios=())
        result = StageResult.ok(output, 5)
        assert result.success is True
        assert result.error_message is None
        assert result.execution_time_ms == 5

    def test_failed(self):
        result = StageResult.failed("boom")
        assert result.success is False
        assert result.error_message == "boom"
        assert result.output is None

    def test_error_message_iff_failed(self):
        with pytest.raises(ValueError):
            StageResult(success=True, error_message="oops")
        with pytest.raises(ValueError):
            StageResult(success=False)

    def test_frozen(self):
        result = StageResult.failed("boom")
        with pytest.raises(AttributeError):
            result.success = True


class TestScenarioStage:
    @pytest.mark.asyncio
    async def test_generates_scenarios(self, sample_endpoints):
        output = await _scenario_output(sample_endpoints)
        assert len(output.endpoints) == 3
        assert len(output.scenarios) == 9
        assert output.artifact_paths == ()

    @pytest.mark.asyncio
    async def test_filters_classifications(self, sample_endpoints):
        output = await _scenario_output(
            sample_endpoints, include_negative=False, include_edge_cases=False
        )
        assert {s.classification for s in output.scenarios} == {"positive"}
        assert len(output.scenarios) == 3

    @pytest.mark.asyncio
    async def test_unusable_contract_fails(self):
        result = await execute_stage(
            StageKind.SCENARIO_GENERATION, StageContext(contract_ref=[])
        )
        assert result.success is False
        assert result.error_message == "Contract defines no endpoints"

    @pytest.mark.asyncio
    async def test_writes_features(self, tmp_dir, sample_endpoints):
        result = await execute_stage(
            StageKind.SCENARIO_GENERATION,
            StageContext(contract_ref=sample_endpoints, output_id=str(tmp_dir)),
        )
        assert (tmp_dir / "stage1_scenarios" / "features" / "users.feature").exists()
        assert len(result.output.artifact_paths) == 2


class TestSynthesisStage:
    @pytest.mark.asyncio
    async def test_missing_input_names_scenarios(self):
        result = await execute_stage(
            StageKind.CODE_SYNTHESIS, StageContext(contract_ref="x", input={})
        )
        assert result.success is False
        assert "scenarios" in result.error_message

    @pytest.mark.asyncio
    async def test_wrong_variant_rejected(self):
        wrong = SynthesisStageOutput(scenarios=(), groups=())
        result = await execute_stage(
            StageKind.CODE_SYNTHESIS, StageContext(contract_ref="x", input=wrong)
        )
        assert result.success is False
        assert "scenarios" in result.error_message

    @pytest.mark.asyncio
    async def test_synthesizes_groups(self, sample_endpoints):
        scenarios = await _scenario_output(sample_endpoints)
        result = await execute_stage(
            StageKind.CODE_SYNTHESIS,
            StageContext(
                contract_ref=sample_endpoints,
                input=scenarios,
                configuration=SynthesisStageConfig(),
            ),
        )
        assert result.success is True
        assert result.output.group_keys == ["users", "orders"]
        assert result.output.stub_count > 0
        assert result.output.scenarios == scenarios.scenarios

    @pytest.mark.asyncio
    async def test_collision_error_policy_fails_stage(self):
        endpoints = [
            {"path": "/api/users", "method": "GET", "operationId": "a"},
            {"path": "/api/users/", "method": "GET", "operationId": "b"},
        ]
        scenarios = await _scenario_output(endpoints)
        result = await execute_stage(
            StageKind.CODE_SYNTHESIS,
            StageContext(
                contract_ref=endpoints,
                input=scenarios,
                configuration=SynthesisStageConfig(collision_policy="error"),
            ),
        )
        assert result.success is False
        assert "ISendAGETRequestToApiusers" in result.error_message


class TestExecutionStage:
    @pytest.mark.asyncio
    async def test_missing_input(self):
        result = await execute_stage(StageKind.TEST_EXECUTION, StageContext(contract_ref="x"))
        assert result.success is False
        assert "step definitions" in result.error_message

    @pytest.mark.asyncio
    async def test_one_suite_per_group(self, sample_endpoints):
        scenarios = await _scenario_output(sample_endpoints)
        synthesis = await execute_stage(
            StageKind.CODE_SYNTHESIS, StageContext(contract_ref=None, input=scenarios)
        )
        result = await execute_stage(
            StageKind.TEST_EXECUTION,
            StageContext(
                contract_ref=None,
                input=synthesis.output,
                configuration=ExecutionStageConfig(fail_ratio=0.5),
            ),
        )
        assert result.success is True
        output: ExecutionStageOutput = result.output
        assert [run.category for run in output.runs] == ["users", "orders"]
        assert output.summary.total == 9
        users = output.runs[0]
        assert users.failed == users.total // 2
        assert users.records[0].scenario_name == "SuccessfulGetUsersOperation"

    @pytest.mark.asyncio
    async def test_uses_injected_outcome_source(self, sample_endpoints):
        scenarios = await _scenario_output(sample_endpoints)
        synthesis = await execute_stage(
            StageKind.CODE_SYNTHESIS, StageContext(contract_ref=None, input=scenarios)
        )
        source = MagicMock()
        source.run.side_effect = lambda category, names, plan: TestRunResult(
            category=category, total=plan.total, passed=plan.passed
        )
        result = await execute_stage(
            StageKind.TEST_EXECUTION,
            StageContext(contract_ref=None, input=synthesis.output),
            StageRuntime(outcome_source=source),
        )
        assert result.success is True
        assert source.run.call_count == 2
        category, names, plan = source.run.call_args_list[1].args
        assert category == "orders"
        assert names == ["SuccessfulCreateOrderOperation"]
        assert plan == OutcomePlan(total=1, passed=1)

    @pytest.mark.asyncio
    async def test_simulated_delay_awaits_sleep(self, sample_endpoints):
        scenarios = await _scenario_output(sample_endpoints)
        synthesis = await execute_stage(
            StageKind.CODE_SYNTHESIS, StageContext(contract_ref=None, input=scenarios)
        )
        with patch("src.workflow.stages.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await execute_stage(
                StageKind.TEST_EXECUTION,
                StageContext(
                    contract_ref=None,
                    input=synthesis.output,
                    configuration=ExecutionStageConfig(simulated_delay_seconds=0.25),
                ),
            )
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.25)


class TestExecuteStageErrors:
    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failed_result(self):
        handler = AsyncMock(side_effect=RuntimeError("disk on fire"))
        with patch.dict(
            "src.workflow.stages._STAGE_HANDLERS", {StageKind.SCENARIO_GENERATION: handler}
        ):
            result = await execute_stage(
                StageKind.SCENARIO_GENERATION, StageContext(contract_ref="x")
            )
        assert result.success is False
        assert result.error_message == "RuntimeError: disk on fire"
