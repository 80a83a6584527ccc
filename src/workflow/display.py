"""Rich-based terminal display layer for workflow progress and results.

All display functions share the module-level ``_console`` so that Rich
formatting is consistent across the session.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.shared.constants import APP_NAME, VERSION
from src.shared.models.execution import TestRunResult
from src.shared.models.scenarios import Scenario
from src.workflow.stages import STAGE_ORDER, StageKind

# ---------------------------------------------------------------------------
# Module-level Console singleton
# ---------------------------------------------------------------------------

_console = Console()

_STAGE_DISPLAY: dict[StageKind, str] = {
    StageKind.SCENARIO_GENERATION: "Scenario Generation",
    StageKind.CODE_SYNTHESIS: "Code Synthesis",
    StageKind.TEST_EXECUTION: "Test Execution",
}


# ---------------------------------------------------------------------------
# Display functions
# ---------------------------------------------------------------------------


def print_workflow_header(contract: str, output_dir: str = "") -> None:
    """Print a Rich panel identifying the contract and output directory."""
    header = Text()
    header.append(APP_NAME, style="bold white")
    header.append(f" v{VERSION}\n", style="dim")
    header.append("Contract: ", style="bold")
    header.append(f"{contract}\n", style="green")
    header.append("Output: ", style="bold")
    header.append(output_dir or "(in memory)", style="cyan")

    _console.print(
        Panel(
            header,
            title="[bold]Workflow Overview[/bold]",
            border_style="blue",
            expand=False,
        )
    )


def print_stage_table(result: Any) -> None:
    """Print the status and duration of each stage of a ``WorkflowResult``."""
    table = Table(title="Stage Status", show_header=True, header_style="bold magenta")
    table.add_column("Stage", style="cyan", min_width=22)
    table.add_column("Status", justify="center", min_width=12)
    table.add_column("Duration", justify="right", min_width=10)

    results = dict(result.stage_results)
    for kind in STAGE_ORDER:
        stage_result = results.get(kind)
        if stage_result is None:
            status = "[dim]NOT RUN[/dim]"
            duration = "-"
        elif stage_result.success:
            status = "[green]COMPLETE[/green]"
            duration = f"{stage_result.execution_time_ms} ms"
        else:
            status = "[red]FAILED[/red]"
            duration = f"{stage_result.execution_time_ms} ms"
        table.add_row(_STAGE_DISPLAY[kind], status, duration)

    _console.print(table)


def print_suite_table(runs: Sequence[TestRunResult]) -> None:
    """Print per-suite test counts."""
    if not runs:
        _console.print("[dim]No test suites were executed.[/dim]")
        return

    table = Table(title="Test Suites", show_header=True, header_style="bold magenta")
    table.add_column("Suite", style="cyan", min_width=16)
    table.add_column("Total", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Pass Rate", justify="right")

    for run in runs:
        table.add_row(
            run.category,
            str(run.total),
            str(run.passed),
            str(run.failed),
            str(run.skipped),
            f"{run.pass_rate:.1f}%",
        )
    _console.print(table)


def print_scenarios(scenarios: Iterable[Scenario]) -> None:
    """Print generated scenarios as a table of name, tags and step count."""
    table = Table(title="Generated Scenarios", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Scenario", style="cyan")
    table.add_column("Tags")
    table.add_column("Steps", justify="right")

    for index, scenario in enumerate(scenarios, start=1):
        table.add_row(str(index), scenario.name, " ".join(scenario.tags), str(len(scenario.steps)))
    _console.print(table)


def print_error_panel(error: str | Exception) -> None:
    """Print an error message in a red Rich panel."""
    _console.print(
        Panel(
            Text(str(error), style="bold white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )


def print_final_summary(result: Any) -> None:
    """Print the final workflow summary for a ``WorkflowResult``."""
    if result.success:
        style = "green"
        title = "Workflow Complete"
    else:
        style = "red"
        title = "Workflow Failed"

    content = Text()
    content.append("Run ID: ", style="bold")
    content.append(f"{result.run_id}\n", style="cyan")
    content.append("Final State: ", style="bold")
    content.append(f"{result.final_state}\n", style=style)
    content.append(f"Elapsed: {result.elapsed_ms} ms\n")

    output = result.output
    if output is not None:
        content.append(f"Scenarios: {output.scenario_count}\n")
        content.append(f"Groups: {', '.join(output.group_keys)}\n")
        content.append(f"Step stubs: {output.stub_count}")
        if output.collision_count:
            content.append(f" ({output.collision_count} renamed)", style="yellow")
        content.append("\n")
        summary = output.summary
        content.append(
            f"Tests: {summary.passed}/{summary.total} passed, "
            f"{summary.failed} failed, {summary.skipped} skipped "
            f"({summary.pass_rate:.1f}%)\n"
        )
    elif result.error_message:
        content.append(f"\n{result.error_message}\n", style="red")

    _console.print(
        Panel(
            content,
            title=f"[bold]{title}[/bold]",
            border_style=style,
            expand=False,
        )
    )


def print_info(message: str) -> None:
    """Print a one-line informational message."""
    _console.print(message)


def print_workflow_state(state: Any) -> None:
    """Print a persisted ``WorkflowState``."""
    table = Table(title="Workflow State", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", state.run_id)
    table.add_row("Contract", state.contract_ref)
    table.add_row("State", state.current_state)
    table.add_row("Completed stages", ", ".join(state.completed_stages) or "-")
    for stage, elapsed in state.stage_timings_ms.items():
        table.add_row(f"  {stage}", f"{elapsed} ms")
    if state.summary:
        table.add_row(
            "Tests",
            f"{state.summary.get('passed', 0)}/{state.summary.get('total', 0)} passed",
        )
    if state.error_message:
        table.add_row("Error", f"[red]{state.error_message}[/red]")
    _console.print(table)
