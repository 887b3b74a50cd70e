"""Public API for Test Insight.

Example:
    >>> from test_insight import analyze, load_config
    >>>
    >>> config = load_config(repo_path="/path/to/repo", days=30)
    >>> result = analyze(config)
    >>> result.ledger.author_counts()
    [('alice@example.com', 12), ('bob@example.com', 3)]
"""

from __future__ import annotations

from typing import Optional

from .config import AnalyzerConfig
from .diff import DiffClassifier
from .git import GitClient
from .logging_config import get_logger
from .pipeline import CommitPipeline, PipelineResult, ProgressCallback

logger = get_logger(__name__)

# git filters on exact committer time; widen so every commit whose author
# calendar date is in the window survives any pair of UTC offsets
_SINCE_SLACK_DAYS = 3


def build_client(config: AnalyzerConfig) -> GitClient:
    return GitClient(
        config.repo_path,
        pathspecs=config.pathspecs,
        context_lines=config.diff_context_lines,
        timeout=config.git_timeout_seconds,
    )


def analyze(
    config: AnalyzerConfig,
    full_history: bool = False,
    progress: Optional[ProgressCallback] = None,
    client: Optional[GitClient] = None,
) -> PipelineResult:
    """Mine new tests from a repository.

    The repository is validated before any commit is touched. The
    ``config.days`` window is applied to the ledger with ``within_days``
    (author calendar date, inclusive cutoff); git only pre-selects a
    slightly wider range. With ``full_history`` every commit is classified
    and the ledger is left unfiltered, so callers can narrow it later with
    the same ``within_days`` and get the same answer.

    Raises:
        InvalidRepositoryError: If ``config.repo_path`` is not a git work tree
        GitCommandError: If the commit list cannot be read
    """
    client = client or build_client(config)
    client.validate()

    window = None if full_history else config.days
    since = None if window is None else window + _SINCE_SLACK_DAYS
    commits = client.list_commits(since_days=since)
    logger.info("Found %d commits to analyze", len(commits))

    pipeline = CommitPipeline(
        client,
        workers=config.effective_workers,
        batch_multiplier=config.batch_multiplier,
        classifier=DiffClassifier(config.test_markers, config.system_marker),
    )
    result = pipeline.run(commits, progress=progress)
    result.ledger = result.ledger.within_days(window)

    if result.failed:
        logger.warning(
            "%d of %d commits could not be read; results are partial",
            len(result.failed),
            len(commits),
        )
    return result
