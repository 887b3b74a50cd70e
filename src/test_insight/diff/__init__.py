"""Diff classification: which test functions a commit really introduced."""

from .classifier import DiffClassifier, find_new_tests
from .lines import classify_line
from .models import DiffLine, LineKind, NewTest, TestCandidate

__all__ = [
    "DiffClassifier",
    "DiffLine",
    "LineKind",
    "NewTest",
    "TestCandidate",
    "classify_line",
    "find_new_tests",
]
