"""Configuration dataclasses and loader for the scenario workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.scenario_engine.services.code_synthesizer import CollisionPolicy
from src.shared.constants import DEFAULT_GROUP, DEFAULT_SIMULATION_SEED
from src.workflow.exceptions import ConfigurationError


@dataclass
class ScenarioStageConfig:
    """Configuration for the scenario generation stage."""

    include_negative: bool = True
    include_edge_cases: bool = True


@dataclass
class SynthesisStageConfig:
    """Configuration for the code synthesis stage."""

    collision_policy: str = CollisionPolicy.SUFFIX.value
    default_group: str = DEFAULT_GROUP


@dataclass
class ExecutionStageConfig:
    """Configuration for the simulated test execution stage."""

    seed: int = DEFAULT_SIMULATION_SEED
    fail_ratio: float = 0.0
    skip_ratio: float = 0.0
    simulated_delay_seconds: float = 0.0


@dataclass
class WorkflowConfig:
    """Top-level configuration composing all stage configs."""

    scenarios: ScenarioStageConfig = field(default_factory=ScenarioStageConfig)
    synthesis: SynthesisStageConfig = field(default_factory=SynthesisStageConfig)
    execution: ExecutionStageConfig = field(default_factory=ExecutionStageConfig)
    output_dir: str = ""  # empty: keep artifacts in memory only
    log_level: str = "info"


def validate_workflow_config(cfg: WorkflowConfig) -> WorkflowConfig:
    """Reject values the stages cannot work with.

    Raises:
        ConfigurationError: On an unknown collision policy or ratios
            outside ``[0, 1]`` whose sum exceeds 1.
    """
    try:
        CollisionPolicy(cfg.synthesis.collision_policy)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown collision_policy '{cfg.synthesis.collision_policy}' "
            f"(expected one of {[p.value for p in CollisionPolicy]})"
        ) from exc

    execution = cfg.execution
    for name in ("fail_ratio", "skip_ratio"):
        value = getattr(execution, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")
    if execution.fail_ratio + execution.skip_ratio > 1.0:
        raise ConfigurationError("fail_ratio + skip_ratio must not exceed 1")
    if execution.simulated_delay_seconds < 0:
        raise ConfigurationError("simulated_delay_seconds must not be negative")
    return cfg


def load_workflow_config(path: Path | str | None = None) -> WorkflowConfig:
    """Load workflow configuration from a YAML file.

    Missing sections fall back to defaults.  Unknown keys are silently
    ignored so that forward-compatible config files work.

    Args:
        path: Path to config YAML.  If ``None`` or the file does not
              exist, returns full defaults.

    Returns:
        Populated, validated configuration dataclass.
    """
    if path is None:
        return WorkflowConfig()

    path = Path(path)
    if not path.exists():
        return WorkflowConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    def _pick(data: dict[str, Any], cls: type) -> dict[str, Any]:
        """Filter *data* to only keys accepted by *cls*."""
        valid = {f.name for f in cls.__dataclass_fields__.values()}
        return {k: v for k, v in (data or {}).items() if k in valid}

    top_level = _pick(raw, WorkflowConfig)
    for key in ("scenarios", "synthesis", "execution"):
        top_level.pop(key, None)

    cfg = WorkflowConfig(
        scenarios=ScenarioStageConfig(**_pick(raw.get("scenarios", {}), ScenarioStageConfig)),
        synthesis=SynthesisStageConfig(**_pick(raw.get("synthesis", {}), SynthesisStageConfig)),
        execution=ExecutionStageConfig(**_pick(raw.get("execution", {}), ExecutionStageConfig)),
        **top_level,
    )
    return validate_workflow_config(cfg)
