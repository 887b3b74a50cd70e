"""Repository exceptions: validation and git subprocess failures."""

from pathlib import Path
from typing import Sequence, Union

from .base import TestInsightError


class RepositoryError(TestInsightError):
    """Base class for repository-related errors."""

    pass


class InvalidRepositoryError(RepositoryError):
    """Raised when the target path is missing or not a git work tree."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            f"'{path}' is not a valid git repository",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class GitCommandError(RepositoryError):
    """Raised when a git subprocess exits non-zero or times out."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        details = {"command": " ".join(args), "returncode": str(returncode)}
        if stderr:
            details["stderr"] = stderr.strip()
        super().__init__("git command failed", details=details)
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
