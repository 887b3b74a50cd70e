"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalyzerConfig, load_config

console = Console()
err_console = Console(stderr=True)


def resolve_config(
    repo_path: Path,
    config: Optional[Path] = None,
    days: Optional[int] = None,
    all_time: bool = False,
    workers: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> AnalyzerConfig:
    """Build configuration from CLI options."""
    overrides = {
        "repo_path": str(repo_path),
        "days": days,
        "all_time": all_time,
        "workers": workers,
        "verbose": verbose,
        "quiet": quiet,
    }
    return load_config(config_file=config, **overrides)
