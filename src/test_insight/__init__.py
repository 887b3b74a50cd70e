"""
Test Insight - who writes the tests?

Mines a git repository's history for genuinely new test functions (not
renames, moves or body edits), attributes them to authors and to the
owning system declared with ``@System`` annotations, and reports totals.
"""

__version__ = "0.3.0"

from .api import analyze
from .config import AnalyzerConfig, load_config
from .diff import DiffClassifier, NewTest, find_new_tests
from .ledger import TestLedger, TestRecord
from .pipeline import CommitPipeline, PipelineResult

__all__ = [
    "analyze",  # Main entry point
    "AnalyzerConfig",
    "load_config",
    "CommitPipeline",
    "PipelineResult",
    "DiffClassifier",
    "NewTest",
    "find_new_tests",
    "TestLedger",
    "TestRecord",
]
