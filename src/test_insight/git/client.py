"""Enumerate commits and fetch per-commit diffs via git subprocess."""

import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..exceptions import GitCommandError, InvalidRepositoryError
from ..logging_config import get_logger
from .models import Commit

logger = get_logger(__name__)


class GitClient:
    """Commit source backed by the ``git`` executable.

    All diff and log queries are restricted to ``pathspecs`` so that only
    test sources reach the classifier.
    """

    def __init__(
        self,
        repo_path: str,
        pathspecs: Sequence[str] = ("*.kt",),
        context_lines: int = 999999,
        timeout: int = 120,
    ):
        self.repo_path = str(Path(repo_path).resolve())
        self.pathspecs = list(pathspecs)
        self.context_lines = context_lines
        self.timeout = timeout

    def validate(self) -> None:
        """Raise InvalidRepositoryError unless repo_path is inside a git work tree."""
        if not Path(self.repo_path).is_dir():
            raise InvalidRepositoryError(self.repo_path, "directory not found")
        try:
            output = self._run_git("rev-parse", "--is-inside-work-tree", timeout=10)
        except GitCommandError as e:
            raise InvalidRepositoryError(self.repo_path, e.stderr.strip() or "git rev-parse failed")
        if output.strip() != "true":
            raise InvalidRepositoryError(self.repo_path, "not inside a work tree")

    # Matches: 40-char hex hash | author email | ISO-8601 author date
    _HEADER_RE = re.compile(r"^[0-9a-f]{40}\|[^|]*\|.+$")

    def list_commits(self, since_days: Optional[int] = None) -> list[Commit]:
        """Non-merge commits touching the pathspecs, newest first."""
        args = ["log", "--format=%H|%aE|%aI", "--no-merges"]
        if since_days is not None:
            args.append(f"--since={since_days} days ago")
        args.append("--")
        args.extend(self.pathspecs)

        try:
            raw = self._run_git(*args)
        except GitCommandError as e:
            # An empty repository has no HEAD yet
            if "does not have any commits" in e.stderr:
                return []
            raise
        return self._parse_log(raw)

    def _parse_log(self, raw: str) -> list[Commit]:
        commits = []
        for line in raw.splitlines():
            line = line.strip()
            if not self._HEADER_RE.match(line):
                continue
            sha, author, date = line.split("|", 2)
            try:
                timestamp = datetime.fromisoformat(date)
            except ValueError:
                logger.warning("Skipping commit %s with unparseable date %r", sha[:8], date)
                continue
            commits.append(Commit(hash=sha, author=author, timestamp=timestamp))
        return commits

    def is_root_commit(self, commit_hash: str) -> bool:
        output = self._run_git("rev-list", "--parents", "-1", commit_hash)
        return len(output.split()) == 1

    def root_commits(self, hashes: Iterable[str]) -> set[str]:
        """Return the subset of ``hashes`` that have no parent.

        One ``rev-list --max-parents=0`` query covers the whole set, so the
        pipeline never has to ask per commit.
        """
        wanted = set(hashes)
        if not wanted:
            return set()
        try:
            output = self._run_git("rev-list", "--max-parents=0", "--all")
        except GitCommandError as e:
            logger.warning("Root commit lookup failed: %s", e)
            return set()
        roots = {line.strip() for line in output.splitlines() if line.strip()}
        return roots & wanted

    def diff_for_commit(self, commit_hash: str, is_root: bool = False) -> str:
        """Unified diff of one commit against its parent, or the empty tree for roots.

        Raises:
            GitCommandError: If git exits non-zero or times out
        """
        args = ["diff-tree"]
        if is_root:
            args.append("--root")
        args.extend(["-M", f"-U{self.context_lines}", "-p", commit_hash, "--"])
        args.extend(self.pathspecs)
        return self._run_git(*args)

    def _run_git(self, *args: str, timeout: Optional[int] = None) -> str:
        cmd = ["git", "-C", self.repo_path, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout or self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitCommandError(cmd, -1, f"timed out after {timeout or self.timeout}s")
        except FileNotFoundError:
            raise GitCommandError(cmd, -1, "git executable not found")

        if result.returncode != 0:
            logger.debug("git %s failed: %s", args[0], result.stderr.strip())
            raise GitCommandError(cmd, result.returncode, result.stderr)
        return result.stdout
