"""Workflow state machine using the ``transitions`` library.

Defines 6 states and 5 transitions.  Every forward transition is guarded
by a check that the stage it leaves produced its output; ``fail`` is
reachable from every non-terminal state.  There are no retry or resume
transitions.
"""

from __future__ import annotations

import logging
from typing import Any

from transitions.extensions.asyncio import AsyncMachine, AsyncState

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
STATES: list[AsyncState] = [
    AsyncState("pending"),
    AsyncState("scenario_stage"),
    AsyncState("synthesis_stage"),
    AsyncState("execution_stage"),
    AsyncState("complete"),
    AsyncState("failed"),
]

TERMINAL_STATES: frozenset[str] = frozenset({"complete", "failed"})

# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
TRANSITIONS: list[dict[str, Any]] = [
    {
        "trigger": "start",
        "source": "pending",
        "dest": "scenario_stage",
        "conditions": ["has_contract"],
    },
    {
        "trigger": "scenarios_done",
        "source": "scenario_stage",
        "dest": "synthesis_stage",
        "conditions": ["has_scenarios"],
    },
    {
        "trigger": "synthesis_done",
        "source": "synthesis_stage",
        "dest": "execution_stage",
        "conditions": ["has_step_groups"],
    },
    {
        "trigger": "execution_done",
        "source": "execution_stage",
        "dest": "complete",
        "conditions": ["has_test_results"],
    },
    {
        "trigger": "fail",
        "source": ["pending", "scenario_stage", "synthesis_stage", "execution_stage"],
        "dest": "failed",
    },
]


def create_workflow_machine(model: Any, initial_state: str = "pending") -> AsyncMachine:
    """Create and return an ``AsyncMachine`` bound to *model*.

    The model must implement the guard methods referenced in
    ``TRANSITIONS`` (``has_contract``, ``has_scenarios``, ...).
    """
    machine = AsyncMachine(
        model=model,
        states=STATES,
        transitions=TRANSITIONS,
        initial=initial_state,
        auto_transitions=False,
        send_event=True,
        queued=True,
        ignore_invalid_triggers=True,
    )
    return machine
