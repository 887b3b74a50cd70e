"""Run the diff classifier over many commits with bounded git concurrency.

Commits are processed in batches of ``workers * batch_multiplier``. Each
batch is fanned out over a fixed thread pool and the coordinator waits for
the whole batch before folding its records into the ledger and submitting
the next one, so no more than ``workers`` git processes ever run at once.
Classification itself is pure, which is why workers need no locks.
"""

from __future__ import annotations

import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, Sequence

from .diff import DiffClassifier
from .exceptions import GitCommandError
from .git.models import Commit
from .ledger import TestLedger, TestRecord
from .logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class CommitSource(Protocol):
    """What the pipeline needs from a repository."""

    def root_commits(self, hashes: Iterable[str]) -> set[str]: ...

    def diff_for_commit(self, commit_hash: str, is_root: bool = False) -> str: ...


@dataclass
class PipelineResult:
    ledger: TestLedger
    processed: int = 0
    failed: list[str] = field(default_factory=list)  # hashes whose diff could not be read


class CommitPipeline:
    """Batched fan-out/fan-in of commit classification."""

    def __init__(
        self,
        source: CommitSource,
        workers: Optional[int] = None,
        batch_multiplier: int = 4,
        classifier: Optional[DiffClassifier] = None,
    ):
        if workers is not None and workers < 1:
            raise ValueError("workers must be at least 1")
        if batch_multiplier < 1:
            raise ValueError("batch_multiplier must be at least 1")
        self.source = source
        self.workers = workers or os.cpu_count() or 1
        self.batch_size = self.workers * batch_multiplier
        self.classifier = classifier or DiffClassifier()

    def run(
        self, commits: Sequence[Commit], progress: Optional[ProgressCallback] = None
    ) -> PipelineResult:
        result = PipelineResult(ledger=TestLedger())
        if not commits:
            return result

        roots = self.source.root_commits([c.hash for c in commits])
        total = len(commits)

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="commit") as pool:
            for start in range(0, total, self.batch_size):
                batch = commits[start : start + self.batch_size]
                futures = [pool.submit(self._process, c, c.hash in roots) for c in batch]
                self._fold(batch, futures, result)

                logger.debug("Processed %d/%d commits", result.processed, total)
                if progress is not None:
                    progress(result.processed, total)

        return result

    def _fold(
        self, batch: Sequence[Commit], futures: list[Future], result: PipelineResult
    ) -> None:
        """Wait for every commit of the batch, then merge its records."""
        for commit, future in zip(batch, futures):
            try:
                records = future.result()
            except GitCommandError as e:
                logger.warning("Skipping commit %s: %s", commit.hash[:8], e)
                result.failed.append(commit.hash)
                records = []
            except Exception:
                logger.warning("Skipping commit %s", commit.hash[:8], exc_info=True)
                result.failed.append(commit.hash)
                records = []
            result.ledger.merge(records)
            result.processed += 1

    def _process(self, commit: Commit, is_root: bool) -> list[TestRecord]:
        diff = self.source.diff_for_commit(commit.hash, is_root)
        if not diff.strip():
            return []
        return [
            TestRecord(
                author=commit.author,
                function_name=test.function_name,
                file_path=test.file_path,
                system_id=test.system_id,
                timestamp=commit.timestamp,
                commit_hash=commit.hash,
            )
            for test in self.classifier.classify(diff)
        ]
