"""JSON formatter for Test Insight."""

import json

from ..ledger import TestLedger
from .base import BaseFormatter, ReportContext


class JsonFormatter(BaseFormatter):
    """Render the ledger as a JSON document with totals and records."""

    def render(self, ledger: TestLedger, context: ReportContext) -> None:
        print(self.format(ledger, context))

    def format(self, ledger: TestLedger, context: ReportContext) -> str:
        config = context.config
        data = {
            "repository": context.repo_path,
            "period": context.period_label,
            "commits_analyzed": context.commits_analyzed,
            "failed_commits": context.failed_commits,
            "total": len(ledger),
            "authors": [
                {"author": author, "count": count}
                for author, count in ledger.author_counts(config.author_names)
            ],
            "systems": [
                {
                    "system_id": system_id,
                    "name": config.system_names.get(system_id) if system_id else None,
                    "count": count,
                }
                for system_id, count in ledger.system_counts()
            ],
            "records": [r.to_dict() for r in ledger.records()],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
