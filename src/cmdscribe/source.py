"""Recover declared parameter names from a function's source line."""

import re

from cmdscribe.errors import SourceUnavailable
from cmdscribe.introspect import FunctionIdentity

# First parenthesized group; tolerates one level of nested parentheses
_PARAMETER_LIST_RE = re.compile(r"\(((?:[^()]|\([^()]*\))*)\)")
_DEF_LINE_RE = re.compile(r"^\s*(?:async\s+)?def\s+\w+")
# Commas nested one level inside brackets or parentheses do not split parameters
_SEGMENT_SPLIT_RE = re.compile(r",(?![^\[(]*[\])])")
_NAME_RE = re.compile(r"^\**\s*([^\W\d]\w*)")
_MARKER_SEGMENTS = frozenset(("*", "/"))


def read_source_lines(path: str) -> list[str]:
    """Read a source file into lines.

    Raises:
        SourceUnavailable: If the file cannot be read as UTF-8 text
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailable(f"Cannot read source file {path}: {e}") from e


def find_definition_line(lines: list[str], first_line: int) -> str:
    """Return the `def` line at or after a 1-based line number.

    Code objects of decorated functions start at the first decorator, so
    decorator lines are skipped until the definition itself.
    """
    if first_line < 1 or first_line > len(lines):
        raise SourceUnavailable(
            f"Line {first_line} is out of range ({len(lines)} lines)"
        )

    for line in lines[first_line - 1:]:
        if _DEF_LINE_RE.match(line):
            return line
    return lines[first_line - 1]


def extract_parameter_segments(line: str) -> list[str]:
    """Return the comma-separated segments of the first parameter list on a line."""
    match = _PARAMETER_LIST_RE.search(line)
    if not match:
        return []
    segments = [segment.strip() for segment in _SEGMENT_SPLIT_RE.split(match.group(1))]
    return [s for s in segments if s and s not in _MARKER_SEGMENTS]


def parameter_name(segment: str) -> str:
    """Return the declared name of one parameter segment.

    Annotation and default text are discarded; types come from reflection.

    Examples:
        "target: str" -> "target"
        "*opts" -> "opts"
        "force=False" -> "force"
    """
    match = _NAME_RE.match(segment)
    if match:
        return match.group(1)
    return segment.split()[0]


def resolve_parameter_names(identity: FunctionIdentity) -> list[str]:
    """Resolve the literal parameter names of the function behind an identity.

    The result is not checked against the reflected arity here; a source line
    that spans several physical lines or holds a default with commas yields a
    different count, which descriptor construction rejects.
    """
    lines = read_source_lines(identity.source_file)
    line = find_definition_line(lines, identity.first_line)
    return [parameter_name(segment) for segment in extract_parameter_segments(line)]
