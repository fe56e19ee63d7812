"""Rich terminal output for runs, leaderboards and result rows."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

if TYPE_CHECKING:
    from voicebench.evaluation.aggregation import ProviderSummary
    from voicebench.models.run import EvalResult, EvalRun, ExecutionSummary
    from voicebench.models.scenario import Scenario


_STATUS_STYLES: dict[str, str] = {
    "pending": "dim",
    "running": "bold blue",
    "completed": "bold green",
    "failed": "bold red",
    "cancelled": "bold yellow",
}


def _fmt(value: float | None, pattern: str = "{:.1f}") -> str:
    return "-" if value is None else pattern.format(value)


def create_pair_progress(console: Console) -> Progress | None:
    """Progress bar for pair execution, or None when not on a terminal."""
    if not console.is_terminal:
        return None
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def status_markup(status: str) -> str:
    style = _STATUS_STYLES.get(status, "bold")
    return f"[{style}]{status}[/{style}]"


def render_execution_summary(summary: ExecutionSummary, console: Console) -> None:
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Run", summary.run_id)
    table.add_row("Status", status_markup(summary.status.value))
    table.add_row("Pairs", f"{summary.completed_pairs}/{summary.total_pairs} complete")
    table.add_row("Executed", str(summary.executed_pairs))
    if summary.skipped_pairs:
        table.add_row("Resumed", f"{summary.skipped_pairs} already recorded")
    if summary.failed_pairs:
        table.add_row("Failed", f"[red]{summary.failed_pairs}[/red] pair(s) recorded as errors")
    console.print()
    console.print(table)


def render_run_header(run: EvalRun, console: Console) -> None:
    console.print()
    console.print(f"[bold]Run:[/bold] {run.id}  [bold]Name:[/bold] {run.name}")
    console.print(
        f"[bold]Status:[/bold] {status_markup(run.status.value)}  "
        f"[bold]Progress:[/bold] {run.progress:.1f}%  "
        f"[bold]Failed pairs:[/bold] {run.failed_pairs}"
    )
    console.print(
        f"[bold]Scenarios:[/bold] {len(run.scenario_ids)}  "
        f"[bold]Providers:[/bold] {', '.join(run.provider_ids)}"
    )
    console.print()


def render_leaderboard(summaries: list[ProviderSummary], console: Console) -> None:
    """Providers ranked by overall judge score."""
    table = Table(title="Leaderboard", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Provider")
    table.add_column("Overall", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Helpful", justify="right")
    table.add_column("Natural", justify="right")
    table.add_column("Efficient", justify="right")
    table.add_column("Task done", justify="right")
    table.add_column("WER", justify="right")
    table.add_column("TTFB", justify="right")
    table.add_column("p50 / p95", justify="right")
    table.add_column("Errors", justify="right")

    for rank, s in enumerate(summaries, 1):
        table.add_row(
            str(rank),
            s.provider_id,
            _fmt(s.overall_score),
            _fmt(s.mean_accuracy),
            _fmt(s.mean_helpfulness),
            _fmt(s.mean_naturalness),
            _fmt(s.mean_efficiency),
            _fmt(s.task_completion_rate, "{:.0%}"),
            _fmt(s.mean_wer, "{:.3f}"),
            _fmt(s.mean_ttfb_ms, "{:.0f}ms"),
            f"{_fmt(s.total_ms_p50, '{:.0f}')} / {_fmt(s.total_ms_p95, '{:.0f}')}ms",
            f"{s.errors}/{s.pairs}",
        )
    console.print(table)


def render_results(
    results: list[EvalResult],
    scenarios: dict[str, Scenario],
    console: Console,
) -> None:
    """Per-pair table; error rows show their message instead of scores."""
    table = Table(title="Results", box=box.ROUNDED)
    table.add_column("Scenario")
    table.add_column("Provider")
    table.add_column("WER", justify="right")
    table.add_column("Scores (A/H/N/E)", justify="right")
    table.add_column("Done")
    table.add_column("Latency", justify="right")

    for r in results:
        scenario = scenarios.get(r.scenario_id)
        label = scenario.name if scenario else r.scenario_id
        if r.is_error:
            table.add_row(label, r.provider_id, "-", f"[red]{escape(r.error_message or '')}[/red]", "[red]✗[/red]", "-")
            continue
        scores = "/".join(
            "-" if v is None else str(v)
            for v in (r.accuracy_score, r.helpfulness_score, r.naturalness_score, r.efficiency_score)
        )
        done = "-" if r.task_completed is None else ("[green]✓[/green]" if r.task_completed else "[red]✗[/red]")
        latency = f"{_fmt(r.ttfb_ms, '{:.0f}')} / {_fmt(r.total_ms, '{:.0f}')}ms"
        table.add_row(label, r.provider_id, _fmt(r.wer, "{:.3f}"), scores, done, latency)
    console.print(table)


def output_json(payload: Any) -> None:
    """Write payload as pure JSON to stdout."""
    sys.stdout.write(json.dumps(payload, indent=2, default=str))
    sys.stdout.write("\n")
