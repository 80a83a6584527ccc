"""Custom exception classes shared by the scenario engine and the workflow."""
from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class ContractUnavailableError(AppError):
    """The contract could not be turned into a usable endpoint list."""

    def __init__(self, detail: str = "No usable endpoint list") -> None:
        super().__init__(detail=detail)


class ScenarioShapeError(AppError):
    """Scenario steps do not form a Given*-When-Then* sequence."""

    def __init__(self, detail: str = "Invalid scenario step sequence") -> None:
        super().__init__(detail=detail)


class SynthesisCollisionError(AppError):
    """Two distinct step texts sanitize to the same stub identifier."""

    def __init__(
        self,
        identifier: str = "",
        first_step: str = "",
        second_step: str = "",
        group: str = "",
    ) -> None:
        self.identifier = identifier
        self.first_step = first_step
        self.second_step = second_step
        self.group = group
        super().__init__(
            detail=(
                f"Stub identifier '{identifier}' in group '{group}' is produced by "
                f"both '{first_step}' and '{second_step}'"
            )
        )


class SimulatorPreconditionError(AppError):
    """Outcome counts do not add up to the requested total."""

    def __init__(self, total: int, passed: int, failed: int, skipped: int) -> None:
        self.total = total
        self.passed = passed
        self.failed = failed
        self.skipped = skipped
        super().__init__(
            detail=(
                f"Invalid simulation counts: passed={passed} failed={failed} "
                f"skipped={skipped} do not sum to total={total}"
            )
        )
