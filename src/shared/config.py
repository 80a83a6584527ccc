"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class SharedConfig(BaseSettings):
    """Base configuration shared across all entry points."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class WorkflowSettings(SharedConfig):
    """Environment-driven defaults for the workflow CLI."""
    output_dir: str = Field(default="", validation_alias="OUTPUT_DIR")
    config_path: str = Field(default="", validation_alias="WORKFLOW_CONFIG")
