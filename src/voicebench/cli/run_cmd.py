"""voicebench create / execute / run -- run lifecycle commands.

`create` stores a pending run, `execute` executes or resumes one with a
progress bar, and `run` does both in one step.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from voicebench.cli.output import (
    create_pair_progress,
    output_json,
    render_execution_summary,
)
from voicebench.cli.project import Project, console, open_project
from voicebench.execution.engine import EvaluationEngine
from voicebench.models.run import EvalRun, ExecutionSummary
from voicebench.storage.json_store import RunNotFoundError, new_id


def create_run(
    project: Project,
    name: str,
    scenario_ids: list[str] | None,
    provider_ids: list[str] | None,
) -> EvalRun:
    """Build and save a pending run.

    Defaults to every stored scenario and every active provider.
    Exits with code 1 if an id is unknown or nothing is selected.
    """
    store = project.store
    if not scenario_ids:
        scenario_ids = [s.id for s in store.list_scenarios()]
    if not provider_ids:
        provider_ids = [p.id for p in store.list_providers(active_only=True)]

    if not scenario_ids:
        console.print("[bold red]No scenarios.[/bold red] Import some with `voicebench import`.")
        raise typer.Exit(code=1)
    if not provider_ids:
        console.print("[bold red]No providers.[/bold red] Configure them in voicebench.yaml.")
        raise typer.Exit(code=1)

    try:
        for scenario_id in scenario_ids:
            store.load_scenario(scenario_id)
        for provider_id in provider_ids:
            store.load_provider(provider_id)
    except LookupError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    run = EvalRun(id=new_id(), name=name, scenario_ids=scenario_ids, provider_ids=provider_ids)
    store.save_run(run)
    return run


async def execute_run(project: Project, run_id: str, show_progress: bool) -> ExecutionSummary:
    engine = EvaluationEngine.from_config(project.store, project.config, project_root=project.root)
    progress = create_pair_progress(console) if show_progress else None
    if progress is None:
        return await engine.execute(run_id)

    with progress:
        task = progress.add_task("Evaluating pairs", total=None)

        def on_progress(completed: int, total: int) -> None:
            progress.update(task, completed=completed, total=total)

        return await engine.execute(run_id, progress_callback=on_progress)


def _execute_and_report(project: Project, run_id: str, format_json: bool) -> None:
    try:
        summary = asyncio.run(execute_run(project, run_id, show_progress=not format_json))
    except RunNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        console.print(f"[bold red]Run {run_id} failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if format_json:
        output_json(summary.model_dump(mode="json"))
    else:
        render_execution_summary(summary, Console())


def create(
    name: str = typer.Option(..., "--name", "-n", help="Run name"),
    scenario: Optional[list[str]] = typer.Option(
        None, "--scenario", "-s", help="Scenario id, in order (repeatable; default: all)"
    ),
    provider: Optional[list[str]] = typer.Option(
        None, "--provider", "-p", help="Provider id (repeatable; default: all active)"
    ),
) -> None:
    """Create a pending run and print its id."""
    project = open_project()
    run = create_run(project, name, scenario, provider)
    typer.echo(run.id)


def execute(
    run_id: str = typer.Argument(..., help="Run id"),
    format_json: bool = typer.Option(False, "--json", help="Output the summary as JSON"),
) -> None:
    """Execute a run, resuming from any pairs already recorded."""
    project = open_project()
    _execute_and_report(project, run_id, format_json)


def run(
    name: str = typer.Option(..., "--name", "-n", help="Run name"),
    scenario: Optional[list[str]] = typer.Option(
        None, "--scenario", "-s", help="Scenario id, in order (repeatable; default: all)"
    ),
    provider: Optional[list[str]] = typer.Option(
        None, "--provider", "-p", help="Provider id (repeatable; default: all active)"
    ),
    format_json: bool = typer.Option(False, "--json", help="Output the summary as JSON"),
) -> None:
    """Create a run and execute it immediately."""
    project = open_project()
    new_run = create_run(project, name, scenario, provider)
    if not format_json:
        console.print(f"[dim]Created run {new_run.id}[/dim]")
    _execute_and_report(project, new_run.id, format_json)
