"""Line-oriented recognition of annotations, type and function declarations.

These are heuristics over a single source line, not a parser. Each helper
takes already-stripped line content.
"""

import re
from dataclasses import dataclass
from typing import Optional

# @Name, @pkg.Name, @Name(args) where args may hold string literals with
# parentheses and one level of nested parentheses
_ANNOTATION_RE = re.compile(
    r"""@(?P<name>[A-Za-z_][\w.]*)
        (?:\s*\((?P<args>(?:"(?:[^"\\]|\\.)*"|[^()"]|\([^()]*\))*)\))?
        \s*""",
    re.VERBOSE,
)

_STRING_LITERAL_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')

_TYPE_MODIFIERS = (
    "public|private|protected|internal|open|abstract|sealed|data|inner|enum|"
    "annotation|final|value|inline|expect|actual|external|fun"
)

# "companion object" and "object : Foo" expressions never match
_TYPE_DECL_RE = re.compile(
    rf"^(?:(?:{_TYPE_MODIFIERS})\s+)*(?:class|object|interface)\s+(?:`[^`]+`|[A-Za-z_]\w*)"
)

# Modifiers are lowercase keywords; "fun" must follow them directly
_FUN_DECL_RE = re.compile(r"^(?:[a-z]+\s+)*fun\b")

_FUN_NAME_RE = re.compile(r"\bfun\s+(?:<[^>]*>\s*)?(`[^`]+`|\w+)\s*\(")


@dataclass(frozen=True)
class Annotation:
    name: str  # simple name, package prefix dropped
    args: Optional[str] = None


def split_annotations(content: str) -> tuple[list[Annotation], str]:
    """Split leading annotations off a line.

    Returns the annotations in order and the remaining declaration text.
    ``@DisplayName("fun stuff")`` yields one annotation and an empty rest.
    """
    annotations = []
    pos = 0
    while pos < len(content) and content[pos] == "@":
        match = _ANNOTATION_RE.match(content, pos)
        if match is None:
            break
        name = match.group("name").rsplit(".", 1)[-1]
        annotations.append(Annotation(name, match.group("args")))
        pos = match.end()
    return annotations, content[pos:].strip()


def annotation_value(annotation: Annotation) -> Optional[str]:
    """First string literal argument, else the raw argument text."""
    if annotation.args is None:
        return None
    literal = _STRING_LITERAL_RE.search(annotation.args)
    if literal:
        return literal.group(1)
    raw = annotation.args.strip()
    return raw or None


def is_type_declaration(rest: str) -> bool:
    return _TYPE_DECL_RE.match(rest) is not None


def is_function_declaration(rest: str) -> bool:
    return _FUN_DECL_RE.match(rest) is not None


def extract_function_name(rest: str) -> Optional[str]:
    """Name of the first ``fun`` immediately followed by an argument list.

    Backtick-quoted names are returned with their backticks.
    """
    match = _FUN_NAME_RE.search(rest)
    return match.group(1) if match else None


def indent_width(line: str) -> int:
    """Leading whitespace width, tabs counted as four columns."""
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4
        else:
            break
    return width
