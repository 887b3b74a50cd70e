"""Typer app for Test Insight; importing it registers every subcommand."""

import typer

app = typer.Typer(
    name="test-insight",
    help="Test Insight - who wrote the new tests, and for which system",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .analyze import main as _main_callback  # noqa: F401, E402
from .classify import classify as _classify  # noqa: F401, E402

__all__ = ["app"]
