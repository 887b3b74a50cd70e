"""Main analysis command: mine new tests and print the report."""

import dataclasses
from pathlib import Path
from typing import Optional

import click
import typer
from rich.markup import escape

from ..api import analyze
from ..exceptions import TestInsightError
from ..formatters import JsonFormatter, ReportContext, get_formatter
from ..logging_config import get_logger, setup_logging
from . import app
from ._common import console, err_console, resolve_config
from .progress import CommitProgress

logger = get_logger(__name__)


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository to analyze (default: current directory)",
        file_okay=False,
        dir_okay=True,
    ),
    days: Optional[int] = typer.Option(
        None,
        "--days",
        "-d",
        help="Report tests authored in the last N calendar days (default: 7, or from config)",
        min=0,
    ),
    all_time: bool = typer.Option(
        False,
        "--all-time",
        help="Report the whole history",
    ),
    fmt: str = typer.Option(
        "rich",
        "--format",
        "-f",
        help="Output format: rich | json | csv",
        click_type=click.Choice(["rich", "json", "csv"], case_sensitive=False),
    ),
    by_system: bool = typer.Option(
        False,
        "--by-system",
        help="Also break totals down by @System",
    ),
    export: Optional[Path] = typer.Option(
        None,
        "--export",
        help="Classify the full history and write every record to this JSON file",
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="List every new test and enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors; no progress bar",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Append debug logs, including worker thread names, to this file",
        dir_okay=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Concurrent git processes (default: CPU count)",
        min=1,
        max=256,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Count genuinely new tests per author in a git repository.

    Renamed test files, moved tests and body-only edits are not counted.
    Tests inherit the owning system from the nearest @System annotation.

    [bold cyan]Examples:[/bold cyan]

      test-insight

      test-insight -C /path/to/repo --days 30 --by-system

      test-insight --all-time --format json

      test-insight --export all-tests.json
    """
    target = Path(path) if path else Path.cwd()
    ctx.ensure_object(dict)
    ctx.obj["path"] = target

    if ctx.invoked_subcommand is not None:
        return

    from .. import __version__

    if version:
        console.print(f"[bold cyan]Test Insight[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    fmt = fmt.lower()

    try:
        settings = resolve_config(
            target,
            config=config,
            days=days,
            all_time=all_time,
            workers=workers,
            verbose=verbose,
            quiet=quiet,
        )
        setup_logging(settings.verbosity, log_file=str(log_file) if log_file else None)
        quiet = settings.verbosity == "quiet"

        full_history = export is not None
        with CommitProgress(console=err_console, enabled=fmt == "rich" and not quiet) as progress:
            result = analyze(settings, full_history=full_history, progress=progress)

        ledger = result.ledger
        if full_history:
            ledger = ledger.within_days(settings.days)

        context = ReportContext(
            config=settings,
            repo_path=str(target.resolve()),
            commits_analyzed=result.processed,
            failed_commits=len(result.failed),
            by_system=by_system,
            show_details=settings.verbosity == "verbose",
        )
        get_formatter(fmt).render(ledger, context)

        if export is not None:
            export_context = dataclasses.replace(
                context, config=dataclasses.replace(settings, days=None)
            )
            export.write_text(
                JsonFormatter().format(result.ledger, export_context) + "\n", encoding="utf-8"
            )
            err_console.print(f"Records exported to: [bold green]{export}[/bold green]")

    except typer.Exit:
        raise

    except TestInsightError as e:
        logger.debug(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Analysis interrupted by user")
        err_console.print("\n[yellow]Analysis interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during analysis")
        err_console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
