"""
Logging setup for Test Insight.

Terminal logs go through rich on stderr so stdout carries only the report.
Commits are classified on worker threads, so the optional log file records
the thread each message came from.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "test_insight"

_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Route test_insight logs to the terminal and, optionally, a file.

    Args:
        verbosity: "quiet" (errors only), "normal" (warnings) or "verbose" (debug)
        log_file: Path appended to at debug level regardless of verbosity

    Returns:
        The test_insight package logger
    """
    level = _LEVELS.get(verbosity, logging.WARNING)
    verbose = verbosity == "verbose"

    terminal = RichHandler(
        console=Console(stderr=True),
        level=level,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_path=verbose,
    )
    handlers: list[logging.Handler] = [terminal]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    # Handlers filter; the package logger must let debug through for the file
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the test_insight namespace (the package logger for None)."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
