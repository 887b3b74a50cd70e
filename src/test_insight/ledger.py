"""Aggregate new-test records into flat, per-author and per-system views.

The ledger keeps records grouped by commit. Merging a batch is a union over
disjoint commits, so the views below depend only on which commits were
merged, never on the order batches finished in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional


@dataclass(frozen=True)
class TestRecord:
    """A new test attributed to the commit that introduced it."""

    __test__ = False

    author: str
    function_name: str
    file_path: str
    system_id: Optional[str]
    timestamp: datetime
    commit_hash: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class TestLedger:
    """Order-independent collection of TestRecords."""

    __test__ = False

    def __init__(self, records: Iterable[TestRecord] = ()):
        self._by_commit: dict[str, list[TestRecord]] = {}
        self.merge(records)

    def merge(self, records: Iterable[TestRecord]) -> None:
        """Fold records into the ledger, keeping within-commit order."""
        incoming: dict[str, list[TestRecord]] = {}
        for record in records:
            incoming.setdefault(record.commit_hash, []).append(record)
        # A commit is classified once; re-merging it replaces, never duplicates
        self._by_commit.update(incoming)

    def __len__(self) -> int:
        return sum(len(v) for v in self._by_commit.values())

    def __bool__(self) -> bool:
        return any(self._by_commit.values())

    def records(self) -> list[TestRecord]:
        """All records, oldest commit first, diff order within a commit."""
        ordered = sorted(
            self._by_commit.values(), key=lambda rs: (rs[0].timestamp, rs[0].commit_hash)
        )
        return [r for rs in ordered for r in rs]

    def within_days(self, days: Optional[int], now: Optional[datetime] = None) -> TestLedger:
        """Records whose commit date falls within the last ``days`` calendar days.

        Commit dates are taken in the author's own offset. ``None`` returns
        the whole ledger. The cutoff is inclusive: a commit made on the
        cutoff date itself counts.
        """
        if days is None:
            return self
        today = (now or datetime.now(timezone.utc).astimezone()).date()
        cutoff = today - timedelta(days=days)
        return TestLedger(r for r in self.records() if r.timestamp.date() >= cutoff)

    def by_author(
        self, author_names: Optional[dict[str, str]] = None
    ) -> dict[str, list[TestRecord]]:
        """Records grouped by author.

        ``author_names`` maps e-mails to display names; several e-mails with
        the same display name are merged under it.
        """
        names = author_names or {}
        return self._group(lambda r: names.get(r.author, r.author))

    def by_system(self) -> dict[Optional[str], list[TestRecord]]:
        return self._group(lambda r: r.system_id)

    def author_counts(self, author_names: Optional[dict[str, str]] = None) -> list[tuple[str, int]]:
        """(author, count) pairs, most tests first, ties by name."""
        grouped = self.by_author(author_names)
        return sorted(((a, len(rs)) for a, rs in grouped.items()), key=lambda p: (-p[1], p[0]))

    def system_counts(self) -> list[tuple[Optional[str], int]]:
        grouped = self.by_system()
        return sorted(
            ((s, len(rs)) for s, rs in grouped.items()),
            key=lambda p: (-p[1], p[0] is None, p[0] or ""),
        )

    def _group(self, key: Callable[[TestRecord], Optional[str]]) -> dict:
        grouped: dict = {}
        for record in self.records():
            grouped.setdefault(key(record), []).append(record)
        return grouped
