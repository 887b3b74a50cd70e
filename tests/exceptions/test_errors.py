"""Tests for the exception hierarchy."""

import pytest

from test_insight.exceptions import (
    ConfigurationError,
    GitCommandError,
    InvalidConfigError,
    InvalidRepositoryError,
    RepositoryError,
    TestInsightError,
)


class TestHierarchy:
    """Every error is catchable as TestInsightError."""

    @pytest.mark.parametrize(
        "error, parent",
        [
            (InvalidConfigError("days", -1, "must be non-negative"), ConfigurationError),
            (InvalidRepositoryError("/nowhere", "directory not found"), RepositoryError),
            (GitCommandError(["git", "log"], 128, "fatal: bad"), RepositoryError),
        ],
    )
    def test_parents(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, TestInsightError)


class TestMessages:
    def test_details_are_appended(self):
        error = InvalidConfigError("workers", 0, "must be at least 1")
        assert str(error) == (
            "Invalid configuration for workers: 0 (key=workers, value=0, reason=must be at least 1)"
        )

    def test_git_command_error_keeps_process_info(self):
        error = GitCommandError(["git", "diff-tree", "abc"], 128, "fatal: bad object abc\n")
        assert error.returncode == 128
        assert error.args_list == ["git", "diff-tree", "abc"]
        assert error.details["stderr"] == "fatal: bad object abc"
        assert error.details["command"] == "git diff-tree abc"

    def test_no_details(self):
        assert str(TestInsightError("plain")) == "plain"
