"""Render and persist the per-stage workflow artifacts.

Directory layout under the configured output directory::

    stage1_scenarios/features/{group}.feature
    stage2_step_definitions/test_{group}_steps.py
    stage2_step_definitions/test_{group}_scenarios.py
    stage3_reports/{group}-test-log.txt
    stage3_reports/test-summary-report.md
    stage3_reports/test-summary.json

All files are written atomically.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from src.scenario_engine.services.code_synthesizer import (
    SynthesizedGroup,
    group_scenarios,
    render_step_module,
    render_test_module,
)
from src.shared.constants import DEFAULT_GROUP
from src.shared.models.execution import TestRunResult
from src.shared.models.scenarios import Scenario
from src.shared.utils import atomic_write_json, atomic_write_text

logger = logging.getLogger(__name__)

SCENARIOS_DIR = "stage1_scenarios"
STEP_DEFINITIONS_DIR = "stage2_step_definitions"
REPORTS_DIR = "stage3_reports"
SUMMARY_REPORT_FILE = "test-summary-report.md"
SUMMARY_JSON_FILE = "test-summary.json"


def render_feature(key: str, scenarios: Iterable[Scenario]) -> str:
    """Render the scenarios of group *key* as a Gherkin feature file."""
    title = key.replace("_", " ").replace("-", " ")
    title = title[:1].upper() + title[1:]
    lines: list[str] = [
        f"Feature: {title} API Tests",
        "  As an API user",
        f"  I want to ensure the {key} endpoints work correctly",
        "  So that I can rely on the API functionality",
        "",
    ]
    for scenario in scenarios:
        lines.append(f"  {' '.join(scenario.tags)}")
        lines.append(f"  Scenario: {scenario.name}")
        lines.extend(f"    {step}" for step in scenario.steps)
        lines.append("")
    return "\n".join(lines)


def write_features(
    output_dir: Path | str,
    scenarios: Iterable[Scenario],
    default_group: str = DEFAULT_GROUP,
) -> list[Path]:
    """Write one ``.feature`` file per scenario group."""
    features_dir = Path(output_dir) / SCENARIOS_DIR / "features"
    written = [
        atomic_write_text(features_dir / f"{key}.feature", render_feature(key, members))
        for key, members in group_scenarios(scenarios, default_group).items()
    ]
    logger.info("Wrote %d feature files to %s", len(written), features_dir)
    return written


def write_step_modules(
    output_dir: Path | str, groups: Mapping[str, SynthesizedGroup]
) -> list[Path]:
    """Write one pytest-bdd step-definition module per synthesized group."""
    steps_dir = Path(output_dir) / STEP_DEFINITIONS_DIR
    written = [
        atomic_write_text(steps_dir / f"{group.module_name}.py", render_step_module(group))
        for group in groups.values()
    ]
    logger.info("Wrote %d step-definition modules to %s", len(written), steps_dir)
    return written


def write_test_modules(
    output_dir: Path | str, groups: Mapping[str, SynthesizedGroup]
) -> list[Path]:
    """Write one pytest module per synthesized group, one test per scenario."""
    steps_dir = Path(output_dir) / STEP_DEFINITIONS_DIR
    written = [
        atomic_write_text(steps_dir / f"{group.test_module_name}.py", render_test_module(group))
        for group in groups.values()
    ]
    logger.info("Wrote %d scenario test modules to %s", len(written), steps_dir)
    return written


def write_execution_reports(
    output_dir: Path | str,
    runs: Iterable[TestRunResult],
    summary_markdown: str,
    summary: dict[str, Any],
) -> list[Path]:
    """Write per-suite logs plus the Markdown and JSON summaries."""
    reports_dir = Path(output_dir) / REPORTS_DIR
    written = [
        atomic_write_text(reports_dir / f"{run.category}-test-log.txt", run.detailed_log)
        for run in runs
    ]
    written.append(atomic_write_text(reports_dir / SUMMARY_REPORT_FILE, summary_markdown))
    written.append(atomic_write_json(reports_dir / SUMMARY_JSON_FILE, summary))
    logger.info("Wrote %d report files to %s", len(written), reports_dir)
    return written
