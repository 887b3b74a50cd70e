"""Data models for diff classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class LineKind(Enum):
    FILE_HEADER = "file_header"
    HUNK_BOUNDARY = "hunk_boundary"
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"
    METADATA = "metadata"


@dataclass(frozen=True)
class DiffLine:
    """One classified line of unified diff text.

    ``text`` is the line without its diff prefix; for FILE_HEADER it is the
    new-side path, or None when the file was deleted.
    """

    kind: LineKind
    text: Optional[str] = None


@dataclass(frozen=True)
class TestCandidate:
    """A test declaration seen on one side of a hunk."""

    __test__ = False

    function_name: str
    system_id: Optional[str] = None


@dataclass(frozen=True)
class NewTest:
    """A test function introduced by a commit."""

    function_name: str
    file_path: str
    system_id: Optional[str] = None
