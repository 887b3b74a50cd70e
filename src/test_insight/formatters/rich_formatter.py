"""Rich terminal formatter for Test Insight."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..ledger import TestLedger
from .base import BaseFormatter, ReportContext


class RichFormatter(BaseFormatter):
    """Summary panel, per-author table, optional per-system table and details."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, ledger: TestLedger, context: ReportContext) -> None:
        self._print_summary(ledger, context)
        if not ledger:
            self.console.print("  [yellow]No new tests found for the specified period.[/yellow]")
            self.console.print()
            return
        self._print_authors(ledger, context)
        if context.by_system:
            self._print_systems(ledger, context)
        if context.show_details:
            self._print_details(ledger, context)

    def format(self, ledger: TestLedger, context: ReportContext) -> str:
        # Rich output goes directly to console; return empty string
        self.render(ledger, context)
        return ""

    # -- private helpers --

    def _print_summary(self, ledger: TestLedger, context: ReportContext) -> None:
        summary_text = (
            f"Repository: [bold]{context.repo_path}[/bold]\n"
            f"Period: [cyan]{context.period_label}[/cyan]  |  "
            f"Commits analyzed: [bold]{context.commits_analyzed}[/bold]  |  "
            f"New tests: [green]{len(ledger)}[/green]"
        )
        if context.failed_commits:
            summary_text += f"  |  [yellow]{context.failed_commits} commits unreadable[/yellow]"
        self.console.print(
            Panel(summary_text, title="[bold cyan]Test Insight Report[/bold cyan]", expand=False)
        )
        self.console.print()

    def _print_authors(self, ledger: TestLedger, context: ReportContext) -> None:
        table = Table(title="New Tests by Author", show_footer=True)
        table.add_column("Author", style="yellow", footer="TOTAL")
        table.add_column("New Tests", justify="right", style="bold", footer=str(len(ledger)))

        for author, count in ledger.author_counts(context.config.author_names):
            table.add_row(escape(author), str(count))

        self.console.print(table)
        self.console.print()

    def _print_systems(self, ledger: TestLedger, context: ReportContext) -> None:
        table = Table(title="New Tests by System", show_footer=True)
        table.add_column("System", style="cyan", footer="TOTAL")
        table.add_column("New Tests", justify="right", style="bold", footer=str(len(ledger)))

        for system_id, count in ledger.system_counts():
            table.add_row(escape(context.config.display_system(system_id)), str(count))

        self.console.print(table)
        self.console.print()

    def _print_details(self, ledger: TestLedger, context: ReportContext) -> None:
        self.console.print("[bold]Details:[/bold]")
        self.console.print()
        grouped = ledger.by_author(context.config.author_names)
        for author, _ in ledger.author_counts(context.config.author_names):
            self.console.print(f"  [yellow]{escape(author)}[/yellow]:")
            for r in grouped[author]:
                system = f" [dim]{escape('[' + r.system_id + ']')}[/dim]" if r.system_id else ""
                self.console.print(
                    f"    - {escape(r.function_name)} [dim]({escape(r.file_path)})[/dim]{system}",
                    highlight=False,
                )
            self.console.print()
