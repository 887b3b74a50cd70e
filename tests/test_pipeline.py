"""Tests for the batched commit pipeline."""

import threading
import time

import pytest

from conftest import make_commit
from test_insight.diff import DiffClassifier
from test_insight.exceptions import GitCommandError
from test_insight.pipeline import CommitPipeline


def added_tests_diff(path: str, *names: str, system: str = None) -> str:
    lines = [f"+++ b/{path}", "@@ -0,0 +1,9 @@"]
    if system:
        lines.append(f'+@System("{system}")')
    lines.append("+class Generated {")
    for name in names:
        lines.append("+    @Test")
        lines.append(f"+    fun {name}() {{}}")
    lines.append("+}")
    return "\n".join(lines)


class FakeSource:
    """In-memory commit source that records concurrency and calls."""

    def __init__(self, diffs, roots=(), delay=0.0, failing=()):
        self.diffs = diffs
        self.roots = set(roots)
        self.delay = delay
        self.failing = set(failing)
        self.root_queries = 0
        self.diff_calls = []
        self.max_in_flight = 0
        # hash -> (start, finish) positions in one shared event sequence
        self.spans = {}
        self._events = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def root_commits(self, hashes):
        self.root_queries += 1
        return self.roots & set(hashes)

    def diff_for_commit(self, commit_hash, is_root=False):
        with self._lock:
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            self.diff_calls.append((commit_hash, is_root))
            started = self._tick()
        try:
            if self.delay:
                time.sleep(self.delay)
            if commit_hash in self.failing:
                raise GitCommandError(["git", "diff-tree", commit_hash], 128, "fatal: bad object")
            return self.diffs.get(commit_hash, "")
        finally:
            with self._lock:
                self._in_flight -= 1
                self.spans[commit_hash] = (started, self._tick())

    def _tick(self):
        # Caller holds self._lock
        self._events += 1
        return self._events


def build_history(count: int):
    """Commits spread over three authors and systems, newest first."""
    authors = ["alice@example.com", "bob@example.com", "carol@example.com"]
    systems = ["CI00001", "CI00002", None]
    commits, diffs = [], {}
    for i in range(count):
        sha = f"{i:040x}"
        commits.append(make_commit(sha, day=1 + i % 28, author=authors[i % 3]))
        diffs[sha] = added_tests_diff(
            f"src/test/kotlin/T{i}.kt", f"first{i}", f"second{i}", system=systems[i % 3]
        )
    commits.reverse()
    return commits, diffs


class TestCommitPipeline:
    """Tests for CommitPipeline."""

    def test_empty_commit_list(self):
        source = FakeSource({})
        result = CommitPipeline(source, workers=2).run([])
        assert len(result.ledger) == 0
        assert result.processed == 0
        assert source.root_queries == 0

    def test_records_carry_commit_attribution(self):
        commit = make_commit("a" * 40, day=5, author="bob@example.com")
        source = FakeSource({commit.hash: added_tests_diff("src/T.kt", "one", system="CI07777")})

        result = CommitPipeline(source, workers=1).run([commit])

        (record,) = result.ledger.records()
        assert record.author == "bob@example.com"
        assert record.function_name == "one"
        assert record.file_path == "src/T.kt"
        assert record.system_id == "CI07777"
        assert record.timestamp == commit.timestamp
        assert record.commit_hash == commit.hash

    def test_empty_diff_contributes_nothing(self):
        commit = make_commit("a" * 40)
        result = CommitPipeline(FakeSource({commit.hash: "   \n"}), workers=1).run([commit])
        assert len(result.ledger) == 0
        assert result.processed == 1

    @pytest.mark.parametrize("workers", [1, 4, 64])
    def test_aggregate_independent_of_worker_count(self, workers):
        commits, diffs = build_history(50)
        baseline = CommitPipeline(FakeSource(diffs), workers=1, batch_multiplier=1).run(commits)

        result = CommitPipeline(FakeSource(diffs), workers=workers).run(commits)

        assert result.ledger.records() == baseline.ledger.records()
        assert result.ledger.by_author() == baseline.ledger.by_author()
        assert result.ledger.by_system() == baseline.ledger.by_system()
        assert len(result.ledger) == 100

    @pytest.mark.parametrize("workers", [1, 3])
    def test_concurrency_never_exceeds_workers(self, workers):
        commits, diffs = build_history(20)
        source = FakeSource(diffs, delay=0.01)

        CommitPipeline(source, workers=workers, batch_multiplier=2).run(commits)

        assert source.max_in_flight <= workers
        assert len(source.diff_calls) == 20

    def test_each_batch_finishes_before_the_next_starts(self):
        commits, diffs = build_history(12)
        source = FakeSource(diffs, delay=0.01)

        CommitPipeline(source, workers=2, batch_multiplier=2).run(commits)

        batches = [commits[i : i + 4] for i in range(0, 12, 4)]
        for current, following in zip(batches, batches[1:]):
            last_finish = max(source.spans[c.hash][1] for c in current)
            first_start = min(source.spans[c.hash][0] for c in following)
            assert last_finish < first_start

    def test_root_commits_queried_once(self):
        commits, diffs = build_history(10)
        root = commits[-1].hash
        source = FakeSource(diffs, roots=[root])

        CommitPipeline(source, workers=2, batch_multiplier=1).run(commits)

        assert source.root_queries == 1
        flags = dict(source.diff_calls)
        assert flags[root] is True
        assert sum(flags.values()) == 1

    def test_failing_commit_is_isolated(self):
        commits, diffs = build_history(6)
        bad = commits[2].hash
        source = FakeSource(diffs, failing=[bad])

        result = CommitPipeline(source, workers=2).run(commits)

        assert result.failed == [bad]
        assert result.processed == 6
        assert len(result.ledger) == 10
        assert bad not in {r.commit_hash for r in result.ledger.records()}

    def test_unexpected_worker_error_is_isolated(self):
        commits, diffs = build_history(3)
        diffs[commits[0].hash] = None  # .strip() on None raises AttributeError

        result = CommitPipeline(FakeSource(diffs), workers=2).run(commits)

        assert result.failed == [commits[0].hash]
        assert len(result.ledger) == 4

    def test_progress_reported_after_each_batch(self):
        commits, diffs = build_history(10)
        calls = []

        CommitPipeline(FakeSource(diffs), workers=2, batch_multiplier=2).run(
            commits, progress=lambda done, total: calls.append((done, total))
        )

        assert calls == [(4, 10), (8, 10), (10, 10)]

    def test_custom_classifier_is_used(self):
        commit = make_commit("a" * 40)
        diff = "+++ b/T.kt\n@@ -0,0 +1,2 @@\n+@Property\n+fun prop() {}"
        pipeline = CommitPipeline(
            FakeSource({commit.hash: diff}),
            workers=1,
            classifier=DiffClassifier(test_markers=["Property"]),
        )

        assert [r.function_name for r in pipeline.run([commit]).ledger.records()] == ["prop"]

    @pytest.mark.parametrize("kwargs", [{"workers": 0}, {"batch_multiplier": 0}])
    def test_rejects_invalid_settings(self, kwargs):
        with pytest.raises(ValueError):
            CommitPipeline(FakeSource({}), **kwargs)

    def test_batch_size(self):
        assert CommitPipeline(FakeSource({}), workers=3, batch_multiplier=5).batch_size == 15
