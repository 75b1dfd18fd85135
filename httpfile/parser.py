"""HTTP request file parsing engine.

Turns the text of a ``.http`` / ``.rest`` file into an ordered list of
``ParsedRequest`` objects. Two dialects are understood:

  - JetBrains HTTP Client: ``###`` separators, ``# @key value`` metadata,
    ``< {% %}`` pre-request and ``> {% %}`` post-request script blocks.
  - VS Code REST Client: the same request grammar without scripts or
    metadata, usually driven by ``@name = value`` file variables.

Parsing is pure: no I/O, no state kept between calls. Lines that match no
rule are ignored.
"""

from __future__ import annotations

import logging
from enum import Enum

from httpfile.errors import ParseError
from httpfile.lexer import (
    POST_SCRIPT_RE,
    PRE_SCRIPT_RE,
    VARIABLE_DEF_RE,
    LineKind,
    classify_line,
    extract_script_block,
    split_lines,
)

logger = logging.getLogger(__name__)


class HttpFileFormat(Enum):
    """The request file dialects understood by the parser."""

    JETBRAINS = "jetbrains"
    VSCODE = "vscode"


class ParsedRequest:
    """Container for one request extracted from a request file."""

    __slots__ = (
        "name",
        "method",
        "url",
        "http_version",
        "headers",
        "body",
        "line_number",
        "variables",
        "metadata",
        "pre_script",
        "post_script",
    )

    def __init__(
        self,
        method: str = "GET",
        url: str = "",
        headers: dict[str, str] | None = None,
        body: str | None = None,
        name: str | None = None,
        http_version: str | None = None,
        line_number: int = 0,
        variables: dict[str, str] | None = None,
        metadata: dict[str, str] | None = None,
        pre_script: str | None = None,
        post_script: str | None = None,
    ) -> None:
        self.name = name
        self.method = method
        self.url = url
        self.http_version = http_version
        self.headers = headers if headers is not None else {}
        self.body = body
        self.line_number = line_number
        self.variables = variables if variables is not None else {}
        self.metadata = metadata if metadata is not None else {}
        self.pre_script = pre_script
        self.post_script = post_script

    def __repr__(self) -> str:
        return (
            f"ParsedRequest(name={self.name!r}, method={self.method!r}, "
            f"url={self.url!r}, line={self.line_number}, "
            f"headers=<{len(self.headers)} headers>, "
            f"body={'<present>' if self.body else '<none>'})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParsedRequest):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def to_dict(self) -> dict:
        """Return the request as a JSON-serialisable dictionary."""
        return {slot: _copy_field(getattr(self, slot)) for slot in self.__slots__}


def _copy_field(value):
    if isinstance(value, dict):
        return dict(value)
    return value


class _ParserState:
    """Mutable state of a single parse call."""

    def __init__(self) -> None:
        self.requests: list[ParsedRequest] = []
        self.current: ParsedRequest | None = None
        self.in_body = False
        self.body_lines: list[str] = []
        self.file_variables: dict[str, str] = {}

    def start_request(self, line_number: int, name: str | None = None) -> ParsedRequest:
        self.current = ParsedRequest(name=name or None, line_number=line_number)
        self.in_body = False
        self.body_lines = []
        return self.current

    def ensure_request(self, line_number: int) -> ParsedRequest:
        if self.current is None:
            self.current = ParsedRequest(line_number=line_number)
        return self.current

    def end_body(self) -> None:
        """Leave body mode, storing the lines buffered so far as the body.

        The buffer is kept, so body lines that follow a post-request script
        extend the body instead of replacing it.
        """
        if self.current is not None and self.in_body and self.body_lines:
            body = "\n".join(self.body_lines).strip()
            self.current.body = body or None
        self.in_body = False

    def finish_request(self) -> None:
        """Close the in-progress request, keeping it only if it has a URL."""
        self.end_body()
        self.body_lines = []
        request = self.current
        self.current = None
        if request is None:
            return
        if request.url:
            self.requests.append(request)
        else:
            logger.debug(
                "Dropping request started at line %d: no URL",
                request.line_number,
            )

    def result(self) -> list[ParsedRequest]:
        # File variables apply to every request, wherever they were defined.
        for request in self.requests:
            request.variables = dict(self.file_variables)
        return self.requests


def detect_format(content: str) -> HttpFileFormat:
    """Decide which dialect grammar applies to ``content``.

    Script blocks only exist in the JetBrains dialect, so their presence
    wins. Otherwise ``@name = value`` definitions mean VS Code. Anything
    else, including an empty document, is parsed as JetBrains.

    Args:
        content: The full text of the request file.

    Returns:
        The detected HttpFileFormat.
    """
    lines = [line.strip() for line in split_lines(content)]

    for trimmed in lines:
        if trimmed.startswith("< {%") or trimmed.startswith("> {%"):
            return HttpFileFormat.JETBRAINS

    for trimmed in lines:
        if VARIABLE_DEF_RE.match(trimmed):
            return HttpFileFormat.VSCODE

    return HttpFileFormat.JETBRAINS


def parse_jetbrains(content: str) -> list[ParsedRequest]:
    """Parse content following the JetBrains HTTP Client format.

    Handles:
      - ``### name`` separators and unnamed ``###`` separators
      - Method lines with an optional ``HTTP/x`` version
      - Bare ``/path`` lines as an implicit GET
      - Headers (last value wins on duplicate names)
      - Bodies after the first blank line, trimmed
      - ``# @key value`` metadata annotations
      - ``< {% %}`` pre-request and ``> {% %}`` post-request scripts
      - ``@name = value`` file variables, applied to every request

    Args:
        content: The full text of the request file.

    Returns:
        The requests in document order. Requests without a URL are dropped.
    """
    state = _ParserState()
    lines = split_lines(content)

    idx = 0
    while idx < len(lines):
        line = lines[idx]
        line_number = idx + 1
        trimmed = line.strip()

        if PRE_SCRIPT_RE.match(trimmed):
            block = extract_script_block(lines, idx)
            if block is not None:
                script, end_idx = block
                state.ensure_request(line_number).pre_script = script
                idx = end_idx + 1
                continue
            logger.debug("Unclosed pre-request script at line %d", line_number)

        if POST_SCRIPT_RE.match(trimmed):
            block = extract_script_block(lines, idx)
            if block is not None:
                script, end_idx = block
                if state.current is not None:
                    state.current.post_script = script
                state.end_body()
                idx = end_idx + 1
                continue
            logger.debug("Unclosed post-request script at line %d", line_number)

        match = classify_line(line)
        kind = match.kind
        idx += 1

        if kind is LineKind.SEPARATOR:
            state.finish_request()
            state.start_request(line_number, match.groups[0])
            continue

        if state.current is None and kind is LineKind.BLANK:
            continue

        request = state.ensure_request(line_number)

        if state.in_body:
            state.body_lines.append(line)
            continue

        if kind is LineKind.METADATA:
            key, value = match.groups
            request.metadata[key] = value
        elif kind is LineKind.VARIABLE:
            name, value = match.groups
            state.file_variables[name] = value
        elif kind is LineKind.METHOD:
            _apply_method_line(request, match.groups)
        elif kind is LineKind.HEADER:
            key, value = match.groups
            request.headers[key] = value
        elif kind is LineKind.BLANK and request.url:
            state.in_body = True
        elif kind is LineKind.BARE_URL and not request.url:
            request.url = match.groups[0]
        elif kind is not LineKind.COMMENT:
            logger.debug("Ignoring line %d: %r", line_number, trimmed)

    state.finish_request()
    return state.result()


def parse_vscode(content: str) -> list[ParsedRequest]:
    """Parse content following the VS Code REST Client format.

    A subset of the JetBrains grammar: no script blocks and no metadata.
    ``@name = value`` definitions are recognised on any line, even inside a
    body. Comments are dropped in the header section but kept verbatim
    once the body has started.

    Args:
        content: The full text of the request file.

    Returns:
        The requests in document order. Requests without a URL are dropped.
    """
    state = _ParserState()

    for idx, line in enumerate(split_lines(content)):
        line_number = idx + 1
        match = classify_line(line)
        kind = match.kind

        if kind is LineKind.VARIABLE:
            name, value = match.groups
            state.file_variables[name] = value
            continue

        if kind is LineKind.SEPARATOR:
            state.finish_request()
            state.start_request(line_number, match.groups[0])
            continue

        is_comment = kind in (LineKind.COMMENT, LineKind.METADATA)

        if state.current is None and (kind is LineKind.BLANK or is_comment):
            continue

        request = state.ensure_request(line_number)

        if state.in_body:
            state.body_lines.append(line)
            continue

        if is_comment:
            continue

        if kind is LineKind.METHOD:
            _apply_method_line(request, match.groups)
        elif kind is LineKind.HEADER:
            key, value = match.groups
            request.headers[key] = value
        elif kind is LineKind.BLANK and request.url:
            state.in_body = True
        elif kind is LineKind.BARE_URL and not request.url:
            request.url = match.groups[0]
        else:
            logger.debug("Ignoring line %d: %r", line_number, line.strip())

    state.finish_request()
    return state.result()


def _apply_method_line(
    request: ParsedRequest, groups: tuple[str | None, ...]
) -> None:
    method, url, version = groups
    request.method = method
    request.url = url
    if version:
        request.http_version = version


def parse_http_content(
    content: str | bytes, fmt: HttpFileFormat | None = None
) -> list[ParsedRequest]:
    """Parse a request file, detecting its dialect unless one is given.

    Args:
        content: The file content; bytes are decoded as UTF-8.
        fmt: Force a dialect instead of detecting it.

    Returns:
        The parsed requests in document order.

    Raises:
        ParseError: If bytes content is not valid UTF-8.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Content is not valid UTF-8: {exc}") from exc

    if fmt is None:
        fmt = detect_format(content)
    logger.debug("Parsing request file as %s", fmt.value)

    if fmt is HttpFileFormat.VSCODE:
        return parse_vscode(content)
    return parse_jetbrains(content)


def load_http_file(filepath: str) -> str:
    """Read and return the contents of a request file.

    Args:
        filepath: Path to the ``.http`` file.

    Returns:
        The text content of the file.

    Raises:
        FileNotFoundError: If the file does not exist.
        IOError: If the file cannot be read.
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        return fh.read()
