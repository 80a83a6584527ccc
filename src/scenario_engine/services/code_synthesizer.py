"""Code synthesizer: groups scenarios and derives step-definition stubs.

Scenarios are grouped by their ``category`` (falling back to the first
non-classification tag, then to the default ``api`` bucket).  Within a
group every distinct step text, by exact equality and in first-seen
order, yields exactly one :class:`StepStub`.

Stub identifiers come from :func:`stub_identifier`.  Two different step
texts can sanitize to the same identifier; how that is resolved is set by
:class:`CollisionPolicy`.  A stub is never silently overwritten.

:func:`render_step_module` renders a group's stubs as pytest-bdd step
definitions; :func:`render_test_module` renders one pytest test per scenario.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from src.scenario_engine.services.step_classifier import (
    annotation_keyword,
    escape_step_pattern,
    sanitize_identifier,
    strip_keyword,
    stub_identifier,
)
from src.shared.constants import DEFAULT_GROUP
from src.shared.errors import SynthesisCollisionError
from src.shared.models.scenarios import Scenario, StepKeyword

logger = logging.getLogger(__name__)


class CollisionPolicy(str, Enum):
    """What to do when two step texts map to one stub identifier."""
    SUFFIX = "suffix"
    ERROR = "error"


@dataclass(frozen=True)
class StepStub:
    """Placeholder implementation for one distinct step text."""
    identifier: str
    keyword: StepKeyword
    pattern: str
    step_text: str

    @property
    def body(self) -> str:
        return f"raise NotImplementedError({('Step not implemented: ' + self.step_text)!r})"


@dataclass(frozen=True)
class StubCollision:
    """A step text whose identifier was already taken in its group."""
    identifier: str
    assigned: str
    first_step: str
    step_text: str


@dataclass(frozen=True)
class SynthesizedGroup:
    """All scenarios of one group and the stubs their steps need."""
    key: str
    scenarios: tuple[Scenario, ...]
    stubs: dict[str, StepStub] = field(default_factory=dict)
    collisions: tuple[StubCollision, ...] = ()

    @property
    def class_name(self) -> str:
        return f"{sanitize_identifier(self.key.replace('_', ' ').replace('-', ' '))}Steps"

    @property
    def module_name(self) -> str:
        return f"test_{self.key}_steps"

    @property
    def test_module_name(self) -> str:
        return f"test_{self.key}_scenarios"

    @property
    def step_texts(self) -> list[str]:
        return [stub.step_text for stub in self.stubs.values()]


def group_key(scenario: Scenario, default_group: str = DEFAULT_GROUP) -> str:
    """Return the group *scenario* belongs to."""
    if scenario.category:
        return scenario.category
    tags = scenario.grouping_tags
    return tags[0] if tags else default_group


def group_scenarios(
    scenarios: Iterable[Scenario], default_group: str = DEFAULT_GROUP
) -> dict[str, list[Scenario]]:
    """Partition *scenarios* by :func:`group_key`, keeping first-seen order."""
    buckets: dict[str, list[Scenario]] = {}
    for scenario in scenarios:
        buckets.setdefault(group_key(scenario, default_group), []).append(scenario)
    return buckets


def synthesize(
    scenarios: Iterable[Scenario],
    collision_policy: CollisionPolicy | str = CollisionPolicy.SUFFIX,
    default_group: str = DEFAULT_GROUP,
) -> dict[str, SynthesizedGroup]:
    """Synthesize one :class:`SynthesizedGroup` per scenario group.

    Args:
        scenarios: Scenarios to synthesize, usually from the generator.
        collision_policy: ``suffix`` appends ``_2``, ``_3``, ... to later
            colliding identifiers; ``error`` raises.
        default_group: Bucket for scenarios without category or tag.

    Returns:
        Groups keyed by group key, in first-seen order.

    Raises:
        SynthesisCollisionError: On a collision under the ``error`` policy.
    """
    policy = CollisionPolicy(collision_policy)
    groups = {
        key: _build_group(key, members, policy)
        for key, members in group_scenarios(scenarios, default_group).items()
    }
    logger.info(
        "Synthesized %d groups with %d stubs",
        len(groups),
        sum(len(g.stubs) for g in groups.values()),
    )
    return groups


def _build_group(
    key: str, members: list[Scenario], policy: CollisionPolicy
) -> SynthesizedGroup:
    stubs: dict[str, StepStub] = {}
    collisions: list[StubCollision] = []
    seen: set[str] = set()

    for scenario in members:
        for step in scenario.steps:
            if step in seen:
                continue
            seen.add(step)

            base = stub_identifier(step)
            identifier = base
            if base in stubs:
                first = stubs[base].step_text
                if policy is CollisionPolicy.ERROR:
                    raise SynthesisCollisionError(
                        identifier=base, first_step=first, second_step=step, group=key
                    )
                suffix = 2
                while f"{base}_{suffix}" in stubs:
                    suffix += 1
                identifier = f"{base}_{suffix}"
                collisions.append(
                    StubCollision(
                        identifier=base,
                        assigned=identifier,
                        first_step=first,
                        step_text=step,
                    )
                )
                logger.warning(
                    "Stub identifier collision in group %s: %r and %r -> %s",
                    key,
                    first,
                    step,
                    identifier,
                )

            stubs[identifier] = StepStub(
                identifier=identifier,
                keyword=annotation_keyword(step),
                pattern=escape_step_pattern(step),
                step_text=step,
            )

    return SynthesizedGroup(
        key=key,
        scenarios=tuple(members),
        stubs=stubs,
        collisions=tuple(collisions),
    )


# ---------------------------------------------------------------------------
# Python source rendering (pytest-bdd step definitions)
# ---------------------------------------------------------------------------

_DECORATORS: dict[StepKeyword, str] = {
    StepKeyword.GIVEN: "given",
    StepKeyword.WHEN: "when",
    StepKeyword.THEN: "then",
    StepKeyword.AND: "step",
}


def render_step_module(group: SynthesizedGroup) -> str:
    """Render *group* as a pytest-bdd step-definition module."""
    lines: list[str] = [
        f'"""Auto-generated step definitions for the {group.key} feature.',
        "",
        f"Class: {group.class_name}",
        f"Scenarios: {len(group.scenarios)}",
        f"Stubs: {len(group.stubs)}",
        '"""',
        "from pytest_bdd import given, parsers, step, then, when",
        "",
        "",
    ]
    for stub in group.stubs.values():
        decorator = _DECORATORS.get(stub.keyword, "step")
        lines.extend(
            [
                f"@{decorator}(parsers.re({stub.pattern!r}))",
                f"def {stub.identifier}():",
                f"    # {stub.keyword.value} {strip_keyword(stub.step_text)}",
                f"    {stub.body}",
                "",
                "",
            ]
        )
    return "\n".join(lines).rstrip() + "\n"


# ---------------------------------------------------------------------------
# Python source rendering (one pytest test per scenario)
# ---------------------------------------------------------------------------


def marker_name(tag: str) -> str:
    """pytest marker for a scenario tag: ``@edge-case`` -> ``edge_case``."""
    name = re.sub(r"\W+", "_", tag.lstrip("@")).strip("_") or "untagged"
    return f"tag_{name}" if name[0].isdigit() else name


def scenario_function_names(scenarios: Iterable[Scenario]) -> list[str]:
    """One ``test_<scenario>`` name per scenario, unique within the list.

    Names that snake-case to the same text get ``_2``, ``_3``, ... suffixes.
    """
    names: list[str] = []
    taken: set[str] = set()
    for scenario in scenarios:
        base = "test_" + re.sub(r"[^0-9a-zA-Z]+", "_", scenario.name).strip("_").lower()
        name = base
        suffix = 2
        while name in taken:
            name = f"{base}_{suffix}"
            suffix += 1
        taken.add(name)
        names.append(name)
    return names


def render_test_module(group: SynthesizedGroup) -> str:
    """Render *group* as a pytest module with one test per scenario.

    Each test carries the scenario tags as markers and its steps as
    comments; the body is a placeholder until the steps are wired up.
    """
    lines: list[str] = [
        f'"""Auto-generated scenario tests for the {group.key} feature.',
        "",
        f"Scenarios: {len(group.scenarios)}",
        f"Step definitions: {group.module_name}",
        '"""',
        "import pytest",
        "",
        "",
    ]
    for scenario, function in zip(group.scenarios, scenario_function_names(group.scenarios)):
        lines.extend(f"@pytest.mark.{marker_name(tag)}" for tag in scenario.tags)
        lines.append(f"def {function}():")
        lines.append(f"    # Scenario: {scenario.name}")
        lines.extend(f"    # {step}" for step in scenario.steps)
        lines.append(
            f"    raise NotImplementedError({('Scenario not implemented: ' + scenario.name)!r})"
        )
        lines.extend(["", ""])
    return "\n".join(lines).rstrip() + "\n"
