"""Line-level classification of unified diff text.

Anything that is not a file header, hunk marker, or a ``+``/``-``/space
prefixed line is metadata noise. Classification never raises.
"""

import re

from .models import DiffLine, LineKind

_NEW_FILE_PREFIX = "+++ "

# Extended git headers; all no-ops for the classifier
_METADATA_PREFIXES = (
    "---",
    "diff ",
    "index ",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "Binary files",
    "\\",  # "\ No newline at end of file"
)

# Escapes git uses inside a quoted path; \ooo is one raw byte of the UTF-8 name
_QUOTED_ESCAPE_RE = re.compile(r'\\([0-3][0-7]{2}|[abfnrtv"\\])')
_C_ESCAPES = {"a": 7, "b": 8, "f": 12, "n": 10, "r": 13, "t": 9, "v": 11, '"': 34, "\\": 92}

HUNK_BOUNDARY = DiffLine(LineKind.HUNK_BOUNDARY)
METADATA = DiffLine(LineKind.METADATA)


def classify_line(line: str) -> DiffLine:
    """Classify a single diff line."""
    if line.startswith(_NEW_FILE_PREFIX):
        return DiffLine(LineKind.FILE_HEADER, _header_path(line[len(_NEW_FILE_PREFIX):]))
    if line.startswith(_METADATA_PREFIXES):
        return METADATA
    if line.startswith("@@"):
        return HUNK_BOUNDARY
    if line.startswith("+"):
        return DiffLine(LineKind.ADDED, line[1:])
    if line.startswith("-"):
        return DiffLine(LineKind.REMOVED, line[1:])
    if line.startswith(" "):
        return DiffLine(LineKind.CONTEXT, line[1:])
    if not line.strip():
        return DiffLine(LineKind.CONTEXT, "")
    return METADATA


def _header_path(raw: str):
    path = raw.rstrip("\t\r\n")
    # Paths with non-ASCII or control characters are C-quoted by git
    if len(path) >= 2 and path[0] == '"' and path[-1] == '"':
        path = _unquote(path[1:-1])
    if path == "/dev/null":
        return None
    if path.startswith("b/"):
        return path[2:]
    return path


def _unquote(quoted: str) -> str:
    raw = bytearray()
    pos = 0
    for match in _QUOTED_ESCAPE_RE.finditer(quoted):
        raw += quoted[pos : match.start()].encode("utf-8")
        code = match.group(1)
        raw.append(int(code, 8) if len(code) == 3 else _C_ESCAPES[code])
        pos = match.end()
    raw += quoted[pos:].encode("utf-8")
    return raw.decode("utf-8", errors="replace")
