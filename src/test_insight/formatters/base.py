"""Base formatter interface for Test Insight output rendering."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import AnalyzerConfig
from ..ledger import TestLedger


@dataclass
class ReportContext:
    """Everything a formatter needs besides the records themselves."""

    config: AnalyzerConfig
    repo_path: str
    commits_analyzed: int = 0
    failed_commits: int = 0
    by_system: bool = False
    show_details: bool = False

    @property
    def period_label(self) -> str:
        return self.config.period_label


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, ledger: TestLedger, context: ReportContext) -> None:
        """Render the ledger to stdout."""

    @abstractmethod
    def format(self, ledger: TestLedger, context: ReportContext) -> str:
        """Return formatted string representation of the ledger."""
