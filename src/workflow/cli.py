"""Typer command-line interface for the scenario workflow.

Commands:

* ``init``      -- write a default ``scenario-forge.yaml``
* ``run``       -- run all three stages against a contract
* ``scenarios`` -- print the scenarios a contract would produce
* ``status``    -- show the persisted state of the last run
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer

from src.shared.config import WorkflowSettings
from src.shared.constants import APP_NAME, VERSION
from src.shared.errors import AppError
from src.shared.logging import setup_logging
from src.workflow.config import load_workflow_config
from src.workflow.display import (
    print_error_panel,
    print_final_summary,
    print_info,
    print_scenarios,
    print_stage_table,
    print_suite_table,
    print_workflow_header,
    print_workflow_state,
)
from src.workflow.exceptions import WorkflowError
from src.workflow.state import STATE_FILE, WorkflowState

CONFIG_FILENAME = "scenario-forge.yaml"

_DEFAULT_CONFIG_TEMPLATE = """\
# scenario-forge configuration
# Unknown keys are ignored; missing keys fall back to these defaults.

# Directory for stage artifacts and WORKFLOW_STATE.json ("" keeps them in memory)
output_dir: "scenario-output"
log_level: "info"

scenarios:
  include_negative: true     # missing-parameter and unauthorized scenarios
  include_edge_cases: true   # long-string and boundary-value scenarios

synthesis:
  collision_policy: "suffix" # "suffix" renames later stubs (_2, _3, ...); "error" aborts
  default_group: "api"       # group for scenarios without category or tag

execution:
  seed: 42                   # seed for simulated test durations
  fail_ratio: 0.0            # share of tests per suite simulated as failed
  skip_ratio: 0.0            # share of tests per suite simulated as skipped
  simulated_delay_seconds: 0.0
"""

app = typer.Typer(
    name=APP_NAME,
    help="Generate BDD scenarios, step stubs and simulated test reports from API contracts.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{APP_NAME} {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """scenario-forge command-line interface."""


@app.command()
def init(
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Where to write the config file."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file."),
) -> None:
    """Write a default configuration file."""
    target = output_dir / CONFIG_FILENAME
    if target.exists() and not force:
        print_error_panel(f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)
    output_dir.mkdir(parents=True, exist_ok=True)
    target.write_text(_DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    print_info(f"[green]Wrote {target}[/green]")


@app.command()
def run(
    contract: Path = typer.Argument(..., help="OpenAPI/Swagger contract (.json, .yaml, .yml)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Workflow config YAML."),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Artifact directory."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Override the simulation seed."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the log level."),
) -> None:
    """Run scenario generation, code synthesis and simulated execution."""
    from src.workflow.orchestrator import execute_workflow

    settings = WorkflowSettings()
    try:
        cfg = load_workflow_config(config or settings.config_path or None)
    except (WorkflowError, OSError) as exc:
        print_error_panel(exc)
        raise typer.Exit(code=1)

    if output_dir is not None:
        cfg.output_dir = output_dir
    elif settings.output_dir:
        cfg.output_dir = settings.output_dir
    if seed is not None:
        cfg.execution.seed = seed
    setup_logging("src", log_level or cfg.log_level or settings.log_level)

    print_workflow_header(str(contract), cfg.output_dir)
    try:
        result = asyncio.run(execute_workflow(contract, cfg))
    except (WorkflowError, OSError) as exc:
        print_error_panel(exc)
        raise typer.Exit(code=1)

    print_stage_table(result)
    if result.output is not None:
        print_suite_table(result.output.runs)
    print_final_summary(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def scenarios(
    contract: Path = typer.Argument(..., help="OpenAPI/Swagger contract (.json, .yaml, .yml)."),
    as_json: bool = typer.Option(False, "--json", help="Print scenarios as JSON."),
) -> None:
    """Print the scenarios generated for a contract without running the workflow."""
    from src.scenario_engine.services.contract_loader import resolve_endpoints
    from src.scenario_engine.services.scenario_generator import generate_all

    try:
        generated = generate_all(resolve_endpoints(contract))
    except AppError as exc:
        print_error_panel(exc.detail)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps([s.model_dump() for s in generated], indent=2))
    else:
        print_scenarios(generated)


@app.command()
def status(
    output_dir: Path = typer.Option(Path("scenario-output"), "--output-dir", "-o", help="Artifact directory of the run."),
) -> None:
    """Show the persisted state of the last workflow run."""
    state = WorkflowState.load(output_dir)
    if state is None:
        print_error_panel(f"No workflow state found at {output_dir / STATE_FILE}")
        raise typer.Exit(code=1)

    print_workflow_state(state)


if __name__ == "__main__":
    app()
