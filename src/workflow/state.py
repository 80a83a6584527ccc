"""Workflow state persistence with atomic writes."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from src.shared.utils import atomic_write_json, load_json, now_iso

STATE_FILE = "WORKFLOW_STATE.json"


@dataclass
class WorkflowState:
    """Progress record of one workflow run.

    Persisted to ``WORKFLOW_STATE.json`` in the output directory after
    every stage.
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    contract_ref: str = ""
    current_state: str = "pending"
    completed_stages: list[str] = field(default_factory=list)
    failed_stage: str = ""
    error_message: str = ""
    stage_timings_ms: dict[str, int] = field(default_factory=dict)
    artifacts: dict[str, list[str]] = field(default_factory=dict)
    summary: dict[str, Any] = field(default_factory=dict)
    started_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    schema_version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialise the state to a plain dictionary."""
        return asdict(self)

    def save(self, directory: Path | str) -> Path:
        """Persist state to ``directory/WORKFLOW_STATE.json`` atomically."""
        self.updated_at = now_iso()
        return atomic_write_json(Path(directory) / STATE_FILE, self.to_dict())

    @classmethod
    def load(cls, directory: Path | str) -> WorkflowState | None:
        """Load state from *directory*.

        Returns:
            Reconstructed ``WorkflowState``, or ``None`` if the file is
            missing or invalid.
        """
        data = load_json(Path(directory) / STATE_FILE)
        if not isinstance(data, dict):
            return None
        # Filter to only known fields
        known = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in data.items() if k in known})
