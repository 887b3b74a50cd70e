"""Shared fixtures for Test Insight tests."""

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

from test_insight.git.models import Commit

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not found")


def make_commit(
    sha: str,
    day: int = 1,
    author: str = "alice@example.com",
) -> Commit:
    """Create a commit on the given day of January 2024."""
    return Commit(
        hash=sha,
        author=author,
        timestamp=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
    )


class GitRepo:
    """Throwaway repository with deterministic authors and dates."""

    def __init__(self, path: Path):
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        self._git("init", "-q")
        self._git("config", "user.name", "Test")
        self._git("config", "user.email", "test@example.com")
        self._git("config", "commit.gpgsign", "false")

    def write(self, relpath: str, content: str) -> None:
        target = self.path / relpath
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)

    def remove(self, relpath: str) -> None:
        self._git("rm", "-q", relpath)

    def move(self, old: str, new: str) -> None:
        (self.path / new).parent.mkdir(parents=True, exist_ok=True)
        self._git("mv", old, new)

    def commit(
        self,
        message: str,
        author: str = "alice@example.com",
        when: Optional[datetime] = None,
        committed: Optional[datetime] = None,
    ) -> str:
        """Stage everything and commit; returns the new hash.

        ``when`` is the author date; the committer date defaults to it.
        """
        when = (when or datetime.now(timezone.utc)).replace(microsecond=0)
        committed = (committed or when).replace(microsecond=0)
        env = dict(os.environ)
        env.update(
            GIT_AUTHOR_NAME=author.split("@")[0],
            GIT_AUTHOR_EMAIL=author,
            GIT_AUTHOR_DATE=when.isoformat(),
            GIT_COMMITTER_NAME="Test",
            GIT_COMMITTER_EMAIL="test@example.com",
            GIT_COMMITTER_DATE=committed.isoformat(),
        )
        self._git("add", "-A")
        self._git("commit", "-q", "--allow-empty", "-m", message, env=env)
        return self._git("rev-parse", "HEAD").strip()

    def _git(self, *args: str, env=None) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            capture_output=True,
            text=True,
            env=env,
            check=True,
        )
        return result.stdout


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository in a temporary directory."""
    return GitRepo(tmp_path / "repo")
