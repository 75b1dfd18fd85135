"""Line classification for HTTP request files.

Every line of a request file is classified on its own, against its trimmed
text, by trying a fixed list of patterns in priority order. The result is a
``LineMatch`` carrying the kind of line and whatever the pattern captured.
The dialect parsers decide what each kind means in their current state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

HTTP_METHODS = (
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "HEAD",
    "OPTIONS",
    "TRACE",
    "CONNECT",
)

PRE_SCRIPT_RE = re.compile(r"^<\s*\{%")
POST_SCRIPT_RE = re.compile(r"^>\s*\{%")
SEPARATOR_RE = re.compile(r"^###\s*(.*)$")
METADATA_RE = re.compile(r"^#\s*@([\w-]+)\s+(.*)$")
COMMENT_RE = re.compile(r"^(?:#|//)")
VARIABLE_DEF_RE = re.compile(r"^@([\w-]+)\s*=\s*(.*)$")
METHOD_RE = re.compile(
    r"^(" + "|".join(HTTP_METHODS) + r")\s+(.+?)(?:\s+(HTTP/[\d.]+))?$"
)
HEADER_RE = re.compile(r"^([\w-]+):\s*(.*)$")

BARE_URL_PREFIXES = ("http://", "https://", "/")
SCRIPT_END = "%}"


class LineKind(Enum):
    PRE_SCRIPT = auto()
    POST_SCRIPT = auto()
    SEPARATOR = auto()
    BLANK = auto()
    METADATA = auto()
    COMMENT = auto()
    VARIABLE = auto()
    METHOD = auto()
    HEADER = auto()
    BARE_URL = auto()
    UNCLASSIFIED = auto()


@dataclass(frozen=True)
class LineMatch:
    """A classified line: its kind plus the captured groups (possibly empty)."""

    kind: LineKind
    groups: tuple[str | None, ...] = ()


def classify_line(line: str) -> LineMatch:
    """Classify a single line of a request file.

    Patterns are tried in this order, first match wins: script openers,
    separator, blank, metadata annotation, comment, variable definition,
    method line, header, bare URL. Anything else is ``UNCLASSIFIED``.

    Args:
        line: The raw line; it is trimmed before matching.

    Returns:
        The LineMatch for the line.
    """
    trimmed = line.strip()

    if PRE_SCRIPT_RE.match(trimmed):
        return LineMatch(LineKind.PRE_SCRIPT)
    if POST_SCRIPT_RE.match(trimmed):
        return LineMatch(LineKind.POST_SCRIPT)

    m = SEPARATOR_RE.match(trimmed)
    if m:
        return LineMatch(LineKind.SEPARATOR, (m.group(1).strip(),))

    if not trimmed:
        return LineMatch(LineKind.BLANK)

    m = METADATA_RE.match(trimmed)
    if m:
        return LineMatch(LineKind.METADATA, m.groups())

    if COMMENT_RE.match(trimmed):
        return LineMatch(LineKind.COMMENT)

    m = VARIABLE_DEF_RE.match(trimmed)
    if m:
        return LineMatch(LineKind.VARIABLE, m.groups())

    m = METHOD_RE.match(trimmed)
    if m:
        return LineMatch(LineKind.METHOD, m.groups())

    m = HEADER_RE.match(trimmed)
    if m:
        return LineMatch(LineKind.HEADER, m.groups())

    if trimmed.startswith(BARE_URL_PREFIXES):
        return LineMatch(LineKind.BARE_URL, (trimmed,))

    return LineMatch(LineKind.UNCLASSIFIED)


def split_lines(content: str) -> list[str]:
    """Split text on ``\\n`` and ``\\r\\n`` only.

    Unlike ``str.splitlines`` this leaves form feeds, ``\\x85``, U+2028 and
    the other Unicode line separators inside the line they appear in. A
    trailing newline does not produce an extra empty line.
    """
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def extract_script_block(
    lines: list[str], start: int
) -> tuple[str, int] | None:
    """Collect the body of a ``{% ... %}`` script block.

    The opener sits on ``lines[start]``; collection starts on the next line
    and stops at the first line whose trimmed text is ``%}`` or ends with
    ``%}``. Text in front of ``%}`` on that line becomes the last script
    line. Script lines are kept raw, indentation included.

    Args:
        lines: All lines of the document.
        start: Index of the opener line.

    Returns:
        ``(script, end_index)`` where ``end_index`` is the closing line, or
        None when a ``###`` separator (or the end of input) comes first.
    """
    script_lines: list[str] = []

    for idx in range(start + 1, len(lines)):
        line = lines[idx]
        trimmed = line.strip()
        if trimmed.endswith(SCRIPT_END):
            if trimmed != SCRIPT_END:
                tail = trimmed
                while tail.endswith(SCRIPT_END):
                    tail = tail[: -len(SCRIPT_END)]
                tail = tail.strip()
                if tail:
                    script_lines.append(tail)
            return "\n".join(script_lines), idx
        if trimmed.startswith("###"):
            return None
        script_lines.append(line)

    return None
