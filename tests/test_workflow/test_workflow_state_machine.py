"""Tests for the workflow state machine."""

from __future__ import annotations

import pytest
from transitions import State

from src.workflow.state_machine import (
    STATES,
    TERMINAL_STATES,
    TRANSITIONS,
    create_workflow_machine,
)


# ---------------------------------------------------------------------------
# State Machine Model stub -- provides all guard methods
# ---------------------------------------------------------------------------
class WorkflowModelStub:
    """Stub model implementing all guard conditions."""

    def __init__(self) -> None:
        self.state: str = "pending"
        self._has_contract = True
        self._has_scenarios = True
        self._has_step_groups = True
        self._has_test_results = True

    def has_contract(self, *args, **kwargs) -> bool:
        return self._has_contract

    def has_scenarios(self, *args, **kwargs) -> bool:
        return self._has_scenarios

    def has_step_groups(self, *args, **kwargs) -> bool:
        return self._has_step_groups

    def has_test_results(self, *args, **kwargs) -> bool:
        return self._has_test_results


@pytest.fixture
def model() -> WorkflowModelStub:
    return WorkflowModelStub()


@pytest.fixture
def machine(model: WorkflowModelStub):
    return create_workflow_machine(model)


class TestStateMachineConstants:
    def test_states_count(self) -> None:
        assert len(STATES) == 6

    def test_transitions_count(self) -> None:
        assert len(TRANSITIONS) == 5

    def test_all_states_are_state_objects(self) -> None:
        for s in STATES:
            assert isinstance(s, State)

    def test_pending_is_first_state(self) -> None:
        assert STATES[0].name == "pending"

    def test_terminal_states(self) -> None:
        names = {s.name for s in STATES}
        assert TERMINAL_STATES <= names

    def test_no_retry_or_loop_transitions(self) -> None:
        for transition in TRANSITIONS:
            assert transition["source"] != transition["dest"]
            assert transition["dest"] != "pending"


class TestStateMachineTransitions:
    @pytest.mark.asyncio
    async def test_happy_path(self, model, machine) -> None:
        assert model.state == "pending"
        await model.start()
        assert model.state == "scenario_stage"
        await model.scenarios_done()
        assert model.state == "synthesis_stage"
        await model.synthesis_done()
        assert model.state == "execution_stage"
        await model.execution_done()
        assert model.state == "complete"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("steps", [0, 1, 2, 3])
    async def test_fail_from_every_non_terminal_state(self, model, machine, steps) -> None:
        for trigger in ["start", "scenarios_done", "synthesis_done"][:steps]:
            await getattr(model, trigger)()
        await model.fail()
        assert model.state == "failed"

    @pytest.mark.asyncio
    async def test_fail_ignored_from_complete(self, model, machine) -> None:
        await model.start()
        await model.scenarios_done()
        await model.synthesis_done()
        await model.execution_done()
        await model.fail()
        assert model.state == "complete"

    @pytest.mark.asyncio
    async def test_invalid_trigger_ignored(self, model, machine) -> None:
        await model.synthesis_done()
        assert model.state == "pending"


class TestStateMachineGuards:
    @pytest.mark.asyncio
    async def test_guard_blocks_start(self, model, machine) -> None:
        model._has_contract = False
        await model.start()
        assert model.state == "pending"

    @pytest.mark.asyncio
    async def test_guard_blocks_scenarios_done(self, model, machine) -> None:
        await model.start()
        model._has_scenarios = False
        await model.scenarios_done()
        assert model.state == "scenario_stage"

    @pytest.mark.asyncio
    async def test_guard_blocks_synthesis_done(self, model, machine) -> None:
        await model.start()
        await model.scenarios_done()
        model._has_step_groups = False
        await model.synthesis_done()
        assert model.state == "synthesis_stage"

    @pytest.mark.asyncio
    async def test_guard_blocks_execution_done(self, model, machine) -> None:
        await model.start()
        await model.scenarios_done()
        await model.synthesis_done()
        model._has_test_results = False
        await model.execution_done()
        assert model.state == "execution_stage"
