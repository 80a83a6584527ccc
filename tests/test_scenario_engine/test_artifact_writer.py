"""Tests for feature, step-module and report artifact writing."""
from __future__ import annotations

import json

from src.scenario_engine.services.artifact_writer import (
    REPORTS_DIR,
    SUMMARY_JSON_FILE,
    SUMMARY_REPORT_FILE,
    render_feature,
    write_execution_reports,
    write_features,
    write_step_modules,
    write_test_modules,
)
from src.scenario_engine.services.code_synthesizer import synthesize
from src.scenario_engine.services.scenario_generator import generate, generate_all
from src.shared.models.execution import RunSummary, TestRunResult


class TestRenderFeature:
    def test_header_and_scenarios(self, get_user_endpoint):
        scenarios = generate(get_user_endpoint)
        text = render_feature("users", scenarios)
        lines = text.splitlines()
        assert lines[0] == "Feature: Users API Tests"
        assert lines[1] == "  As an API user"
        assert "  I want to ensure the users endpoints work correctly" in lines
        assert text.count("  Scenario: ") == len(scenarios)
        assert "  @negative @security @get" in lines
        assert "    Given I have a valid API client" in lines

    def test_multi_word_group_title(self):
        assert render_feature("order_items", []).startswith("Feature: Order items API Tests")


class TestWriters:
    def test_write_features(self, tmp_dir, sample_endpoints):
        paths = write_features(tmp_dir, generate_all(sample_endpoints))
        names = sorted(p.name for p in paths)
        assert names == ["orders.feature", "users.feature"]
        assert all(p.parent == tmp_dir / "stage1_scenarios" / "features" for p in paths)

    def test_write_step_modules(self, tmp_dir, sample_endpoints):
        groups = synthesize(generate_all(sample_endpoints))
        paths = write_step_modules(tmp_dir, groups)
        assert sorted(p.name for p in paths) == ["test_orders_steps.py", "test_users_steps.py"]
        assert "def " in paths[0].read_text(encoding="utf-8")

    def test_write_test_modules(self, tmp_dir, sample_endpoints):
        groups = synthesize(generate_all(sample_endpoints))
        paths = write_test_modules(tmp_dir, groups)
        assert sorted(p.name for p in paths) == [
            "test_orders_scenarios.py",
            "test_users_scenarios.py",
        ]
        assert all(p.parent == tmp_dir / "stage2_step_definitions" for p in paths)
        assert "import pytest" in paths[0].read_text(encoding="utf-8")

    def test_write_execution_reports(self, tmp_dir):
        run = TestRunResult(category="users", total=1, passed=1, detailed_log="log text\n")
        summary = RunSummary.from_runs([run])
        paths = write_execution_reports(tmp_dir, [run], "# Report\n", summary.to_dict())
        reports = tmp_dir / REPORTS_DIR
        assert (reports / "users-test-log.txt").read_text(encoding="utf-8") == "log text\n"
        assert (reports / SUMMARY_REPORT_FILE).read_text(encoding="utf-8") == "# Report\n"
        assert json.loads((reports / SUMMARY_JSON_FILE).read_text(encoding="utf-8"))["total"] == 1
        assert len(paths) == 3
