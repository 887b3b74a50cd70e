"""Classify command -- run the diff classifier on a saved diff."""

import sys
from pathlib import Path
from typing import Optional

import typer

from ..diff import DiffClassifier
from . import app
from ._common import console, resolve_config


@app.command()
def classify(
    ctx: typer.Context,
    diff_file: Optional[Path] = typer.Argument(
        None,
        help="Unified diff to classify (default: read stdin)",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """
    Show which tests a single diff introduces.

    Useful for checking how a particular commit was counted.

    [bold cyan]Examples:[/bold cyan]

      git diff-tree -M -U999999 -p HEAD -- '*.kt' | test-insight classify

      test-insight classify change.diff
    """
    settings = resolve_config(ctx.obj.get("path", Path.cwd()), config=config)
    text = diff_file.read_text(encoding="utf-8") if diff_file else sys.stdin.read()

    classifier = DiffClassifier(settings.test_markers, settings.system_marker)
    new_tests = classifier.classify(text)

    if not new_tests:
        console.print("[yellow]No new tests in this diff.[/yellow]")
        raise typer.Exit(0)

    for test in new_tests:
        system = f"  [{test.system_id}]" if test.system_id else ""
        console.print(f"{test.function_name}  {test.file_path}{system}", markup=False, highlight=False)
