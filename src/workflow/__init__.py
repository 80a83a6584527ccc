"""Three-stage scenario workflow: generation, synthesis, simulated execution.

The orchestrator drives the stages through a ``transitions`` state machine
and stops at the first failed stage.
"""

__version__ = "1.0.0"
