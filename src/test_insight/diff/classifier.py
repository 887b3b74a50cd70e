"""Find genuinely new test functions in the diff of a single commit.

The diff is scanned once. Per hunk, test declarations on added lines are
collected in order and test names on removed lines are counted; at every
hunk boundary an added test survives only if no removed test in that hunk
had the same name. This rejects renames of the enclosing file, body-only
edits and annotation rewrites, and still works when git emits the whole
file as one hunk (``-U999999``), because matching is by name rather than
position. Survivors whose name was removed elsewhere in the same commit
are moves between files and are dropped as well.

Owning-system tags come from ``@System("ID")`` style annotations. They are
tracked on added and context lines (the new side of the file), since the
class annotation a new test inherits is usually unchanged context.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..config import DEFAULT_TEST_MARKERS
from .declarations import (
    Annotation,
    annotation_value,
    extract_function_name,
    indent_width,
    is_function_declaration,
    is_type_declaration,
    split_annotations,
)
from .lines import classify_line
from .models import DiffLine, LineKind, NewTest, TestCandidate


@dataclass
class _PendingTest:
    """A test marker seen on the added side, waiting for its ``fun`` line."""

    # System annotation inside the test's own annotation stack
    direct_system: Optional[str] = None
    # Unattached system annotation seen just before the test marker
    preceding_system: Optional[str] = None


@dataclass
class _Scope:
    indent: int
    system_id: Optional[str]


@dataclass
class _ScanState:
    current_file: Optional[str] = None
    hunk_open: bool = False

    # Type scopes of the current file, outermost first
    scopes: list[_Scope] = field(default_factory=list)
    last_seen_system: Optional[str] = None

    # Current hunk
    added: list[TestCandidate] = field(default_factory=list)
    removed: Counter = field(default_factory=Counter)
    added_pending: Optional[_PendingTest] = None
    removed_pending: bool = False

    # Whole commit
    survivors: list[NewTest] = field(default_factory=list)
    removed_in_commit: Counter = field(default_factory=Counter)

    def enclosing_system(self, indent: int) -> Optional[str]:
        for scope in reversed(self.scopes):
            if scope.indent < indent:
                return scope.system_id
        return None


class DiffClassifier:
    """Line state machine over unified diff text.

    Holds only immutable settings; every ``classify`` call starts from a
    fresh scan state, so one instance can be shared between threads.
    """

    def __init__(
        self,
        test_markers: Iterable[str] = DEFAULT_TEST_MARKERS,
        system_marker: str = "System",
    ):
        self.test_markers = frozenset(test_markers)
        self.system_marker = system_marker

    def classify(self, diff_text: str) -> list[NewTest]:
        """Return the new tests of one commit, in diff order."""
        state = _ScanState()
        follows_old_header = False
        for raw in diff_text.split("\n"):
            raw = raw.rstrip("\r")
            line = classify_line(raw)
            if raw.startswith("diff "):
                state.hunk_open = False
            # Inside a hunk "+++ " is an added "++ " line unless it pairs with a "--- " header
            if line.kind is LineKind.FILE_HEADER and state.hunk_open and not follows_old_header:
                line = DiffLine(LineKind.ADDED, raw[1:])
            follows_old_header = raw.startswith("--- ")
            self._step(state, line)
        self._flush_hunk(state)
        return [t for t in state.survivors if state.removed_in_commit[t.function_name] == 0]

    def _step(self, state: _ScanState, line: DiffLine) -> None:
        kind = line.kind
        if kind is LineKind.FILE_HEADER:
            self._flush_hunk(state)
            state.current_file = line.text
            state.hunk_open = False
            state.scopes.clear()
            state.last_seen_system = None
        elif kind is LineKind.HUNK_BOUNDARY:
            self._flush_hunk(state)
            state.hunk_open = True
            state.last_seen_system = None
        elif kind is LineKind.ADDED:
            self._on_added(state, line.text)
        elif kind is LineKind.REMOVED:
            self._on_removed(state, line.text)
        elif kind is LineKind.CONTEXT:
            self._on_context(state, line.text)

    def _flush_hunk(self, state: _ScanState) -> None:
        if state.current_file is not None:
            for candidate in state.added:
                if state.removed[candidate.function_name] == 0:
                    state.survivors.append(
                        NewTest(candidate.function_name, state.current_file, candidate.system_id)
                    )
        state.removed_in_commit.update(state.removed)
        state.added.clear()
        state.removed.clear()
        state.added_pending = None
        state.removed_pending = False

    # -- new side ----------------------------------------------------------

    def _on_added(self, state: _ScanState, text: str) -> None:
        content = text.strip()
        if not content:
            return

        annotations, rest = split_annotations(content)
        system_here = self._system_of(annotations)

        if self._has_test_marker(annotations):
            if state.added_pending is None:
                state.added_pending = _PendingTest(preceding_system=state.last_seen_system)
            if system_here is not None:
                state.added_pending.direct_system = system_here
        elif system_here is not None and state.added_pending is not None:
            state.added_pending.direct_system = system_here
            system_here = None

        if not rest:
            if system_here is not None and state.added_pending is None:
                state.last_seen_system = system_here
            return

        if is_type_declaration(rest):
            self._enter_type(state, indent_width(text), system_here)
            state.added_pending = None
            return

        pending = state.added_pending
        if pending is not None and is_function_declaration(rest):
            name = extract_function_name(rest)
            if name is not None:
                system_id = (
                    pending.direct_system
                    or pending.preceding_system
                    or state.enclosing_system(indent_width(text))
                )
                state.added.append(TestCandidate(name, system_id))

        state.added_pending = None
        state.last_seen_system = None

    def _on_context(self, state: _ScanState, text: str) -> None:
        content = text.strip()
        if not content:
            return

        # The annotation, if any, already existed before this commit
        state.added_pending = None
        state.removed_pending = False

        annotations, rest = split_annotations(content)
        system_here = self._system_of(annotations)

        if not rest:
            if system_here is not None:
                state.last_seen_system = system_here
            return

        if is_type_declaration(rest):
            self._enter_type(state, indent_width(text), system_here)
            return

        state.last_seen_system = None

    def _enter_type(self, state: _ScanState, indent: int, system_here: Optional[str]) -> None:
        while state.scopes and state.scopes[-1].indent >= indent:
            state.scopes.pop()

        system_id = system_here or state.last_seen_system
        if system_id is None and state.scopes:
            # Nested type without its own tag inherits; top level resets to None
            system_id = state.scopes[-1].system_id

        state.scopes.append(_Scope(indent, system_id))
        state.last_seen_system = None

    # -- old side ----------------------------------------------------------

    def _on_removed(self, state: _ScanState, text: str) -> None:
        content = text.strip()
        if not content:
            return

        annotations, rest = split_annotations(content)
        if self._has_test_marker(annotations):
            state.removed_pending = True
        if not rest:
            return

        if (
            state.removed_pending
            and not is_type_declaration(rest)
            and is_function_declaration(rest)
        ):
            name = extract_function_name(rest)
            if name is not None:
                state.removed[name] += 1
        state.removed_pending = False

    # -- helpers -----------------------------------------------------------

    def _has_test_marker(self, annotations: list[Annotation]) -> bool:
        return any(a.name in self.test_markers for a in annotations)

    def _system_of(self, annotations: list[Annotation]) -> Optional[str]:
        for a in annotations:
            if a.name == self.system_marker:
                return annotation_value(a)
        return None


_default_classifier = DiffClassifier()


def find_new_tests(diff_text: str) -> list[NewTest]:
    """Classify ``diff_text`` with the default JUnit markers."""
    return _default_classifier.classify(diff_text)
