"""Commit source: git history enumeration and per-commit diffs."""

from .client import GitClient
from .models import Commit

__all__ = ["Commit", "GitClient"]
