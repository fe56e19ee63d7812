"""VoiceBench CLI entry point."""

import logging
import sys

import structlog
import typer

from voicebench import __version__
from voicebench.cli.export_cmd import export
from voicebench.cli.import_cmd import import_scenarios
from voicebench.cli.report_cmd import report
from voicebench.cli.run_cmd import create, execute, run
from voicebench.cli.validate_cmd import validate

app = typer.Typer(
    name="voicebench",
    help="Benchmark voice AI providers against scenario suites",
    no_args_is_help=True,
)

app.command()(validate)
app.command(name="import")(import_scenarios)
app.command()(create)
app.command()(execute)
app.command()(run)
app.command()(report)
app.command()(export)


def configure_logging(log_format: str, log_level: str) -> None:
    """Configure structlog for console or JSON rendering."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        typer.echo(f"Invalid log level: {log_level!r}.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"voicebench {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    log_format: str = typer.Option("console", "--log-format", help="Log format: console or json."),
    log_level: str = typer.Option("warning", "--log-level", help="Minimum log level."),
) -> None:
    """Benchmark voice AI providers against scenario suites."""
    configure_logging(log_format, log_level)
