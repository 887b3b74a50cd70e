"""Exception hierarchy for Test Insight."""

from .base import TestInsightError
from .config import ConfigurationError, InvalidConfigError
from .git import GitCommandError, InvalidRepositoryError, RepositoryError

__all__ = [
    "TestInsightError",
    "ConfigurationError",
    "InvalidConfigError",
    "RepositoryError",
    "InvalidRepositoryError",
    "GitCommandError",
]
