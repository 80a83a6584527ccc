"""Custom exceptions for the scenario workflow."""

from __future__ import annotations


class WorkflowError(Exception):
    """Base exception for all workflow errors."""

    pass


class MissingStageInputError(WorkflowError):
    """Raised when a stage runs without the output of the stage before it."""

    def __init__(self, stage_name: str, dependency: str) -> None:
        self.stage_name = stage_name
        self.dependency = dependency
        super().__init__(
            f"Stage '{stage_name}' requires '{dependency}' from the previous stage"
        )


class ConfigurationError(WorkflowError):
    """Raised for invalid workflow configuration values."""

    pass
