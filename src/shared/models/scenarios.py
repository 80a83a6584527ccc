"""Gherkin scenario Pydantic v2 data models."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from src.shared.constants import CLASSIFICATION_TAGS


class StepKeyword(str, Enum):
    """Leading keyword of a Gherkin step."""
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"
    AND = "And"
    BUT = "But"


class Scenario(BaseModel):
    """One Given/When/Then test case.

    Frozen and hashable so that scenario sets can be compared directly.
    Construction fails with :class:`~src.shared.errors.ScenarioShapeError`
    when the tags or steps break the scenario invariants.
    """
    name: str = Field(..., min_length=1)
    category: str | None = None
    tags: tuple[str, ...] = ()
    steps: tuple[str, ...] = ()

    model_config = {"frozen": True, "from_attributes": True}

    @model_validator(mode="after")
    def check_invariants(self) -> "Scenario":
        from src.scenario_engine.services.step_classifier import validate_step_sequence
        from src.shared.errors import ScenarioShapeError

        classifications = [t for t in self.tags if t in CLASSIFICATION_TAGS]
        if len(classifications) != 1:
            raise ScenarioShapeError(
                f"Scenario '{self.name}' must carry exactly one classification tag, "
                f"got {classifications}"
            )
        validate_step_sequence(self.steps, scenario_name=self.name)
        return self

    @property
    def classification(self) -> str:
        """Classification without the ``@`` prefix (``positive``, ...)."""
        tag = next(t for t in self.tags if t in CLASSIFICATION_TAGS)
        return tag.lstrip("@")

    @property
    def grouping_tags(self) -> list[str]:
        """Tags other than the classification tag, without ``@``."""
        return [t.lstrip("@") for t in self.tags if t not in CLASSIFICATION_TAGS]
