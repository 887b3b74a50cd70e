"""CSV formatter for Test Insight."""

import csv
import io

from ..ledger import TestLedger
from .base import BaseFormatter, ReportContext


class CsvFormatter(BaseFormatter):
    """Render one row per new test."""

    def render(self, ledger: TestLedger, context: ReportContext) -> None:
        print(self.format(ledger, context), end="")

    def format(self, ledger: TestLedger, context: ReportContext) -> str:
        config = context.config
        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow([
            "date", "author", "function", "file", "system_id", "system_name", "commit",
        ])
        for r in ledger.records():
            writer.writerow([
                r.timestamp.isoformat(),
                config.display_author(r.author),
                r.function_name,
                r.file_path,
                r.system_id or "",
                config.system_names.get(r.system_id, "") if r.system_id else "",
                r.commit_hash,
            ])
        return output.getvalue()
