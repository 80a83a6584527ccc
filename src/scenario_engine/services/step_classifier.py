"""Prefix-based Gherkin step classification.

A step's keyword is its first whitespace-delimited word when that word is
one of Given/When/Then/And/But.  Anything else classifies as ``Given``.
The module also turns step texts into stub identifiers and regex patterns
for the code synthesizer, and checks the Given*-When-Then* step shape.
"""

from __future__ import annotations

import keyword
import re
from typing import Iterable

from src.shared.errors import ScenarioShapeError
from src.shared.models.scenarios import StepKeyword

_KEYWORDS: dict[str, StepKeyword] = {k.value: k for k in StepKeyword}
_PUNCTUATION = re.compile(r"[^\w\s]")


def _split(step: str) -> tuple[str, str]:
    parts = step.strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def classify_step(step: str) -> StepKeyword:
    """Return the keyword of *step*, defaulting to ``Given``."""
    head, _ = _split(step)
    return _KEYWORDS.get(head, StepKeyword.GIVEN)


def has_keyword(step: str) -> bool:
    """True when *step* starts with a recognised keyword."""
    head, _ = _split(step)
    return head in _KEYWORDS


def strip_keyword(step: str) -> str:
    """Return the step text without its leading keyword.

    Unrecognised prefixes are kept, since there is no keyword to strip.
    """
    head, rest = _split(step)
    if head in _KEYWORDS:
        return rest
    return step.strip()


def annotation_keyword(step: str) -> StepKeyword:
    """Keyword used to annotate a generated stub (``But`` annotates as ``And``)."""
    keyword = classify_step(step)
    return StepKeyword.AND if keyword is StepKeyword.BUT else keyword


def sanitize_identifier(text: str) -> str:
    """Turn step text into a PascalCase identifier.

    Punctuation is removed, every whitespace run becomes a case boundary
    and each word's first letter is capitalised:
    ``I send a GET request to "/api/users/{id}"`` ->
    ``ISendAGETRequestToApiusersid``.
    A ``Step`` prefix keeps the result a valid Python name that is not a
    keyword such as ``None``.
    """
    words = _PUNCTUATION.sub("", text).split()
    identifier = "".join(w[0].upper() + w[1:] for w in words)
    if not identifier or identifier[0].isdigit() or keyword.iskeyword(identifier):
        identifier = "Step" + identifier
    return identifier


def stub_identifier(step: str) -> str:
    """Identifier for the stub implementing *step*."""
    return sanitize_identifier(strip_keyword(step))


def escape_step_pattern(step: str) -> str:
    """Regex pattern that matches the step text literally (keyword stripped)."""
    return re.escape(strip_keyword(step))


def validate_step_sequence(steps: Iterable[str], scenario_name: str = "") -> None:
    """Check that *steps* form a Given*-When-Then* sequence.

    ``And``/``But`` continue the current phase and may not open a scenario
    or follow the ``When`` step.  Exactly one When-class step is allowed.

    Raises:
        ScenarioShapeError: When the sequence is malformed.
    """
    label = f"Scenario '{scenario_name}'" if scenario_name else "Scenario"
    phase = "start"
    whens = 0

    for step in steps:
        keyword = classify_step(step)
        if keyword is StepKeyword.GIVEN:
            if phase not in ("start", "given"):
                raise ScenarioShapeError(f"{label}: Given step after When: {step!r}")
            phase = "given"
        elif keyword is StepKeyword.WHEN:
            if phase not in ("start", "given"):
                raise ScenarioShapeError(f"{label}: more than one When step: {step!r}")
            phase = "when"
            whens += 1
        elif keyword is StepKeyword.THEN:
            if phase in ("start", "given"):
                raise ScenarioShapeError(f"{label}: Then step before When: {step!r}")
            phase = "then"
        else:
            if phase == "start":
                raise ScenarioShapeError(f"{label}: cannot open with {step!r}")
            if phase == "when":
                raise ScenarioShapeError(
                    f"{label}: {step!r} would be a second When-class step"
                )

    if whens != 1:
        raise ScenarioShapeError(f"{label}: expected exactly one When step, got {whens}")
