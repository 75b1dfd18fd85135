"""cURL command import.

Converts a ``curl ...`` command line into request file text in the
JetBrains dialect, ready to be appended to a ``.http`` file and parsed.
"""

from __future__ import annotations

import base64
import json
import re
import shlex
from dataclasses import dataclass, field
from urllib.parse import quote

from httpfile.errors import ParseError

CONTINUATION_RE = re.compile(r"\\\s*\r?\n\s*")

# Options whose value is consumed and ignored
IGNORED_VALUE_OPTIONS = {"-o", "--output"}


@dataclass
class CurlCommand:
    """The parts of a cURL invocation that map onto a request."""

    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None
    auth: tuple[str, str] | None = None
    flags: list[str] = field(default_factory=list)


def _split_header(header: str) -> tuple[str, str] | None:
    key, sep, value = header.partition(":")
    if not sep:
        return None
    return key.strip(), value.strip()


def tokenize(command: str) -> list[str]:
    """Split a command line into shell words, joining ``\\`` continuations.

    Raises:
        ParseError: On an unclosed quote.
    """
    normalized = CONTINUATION_RE.sub(" ", command)
    try:
        return shlex.split(normalized)
    except ValueError as exc:
        raise ParseError(f"Invalid cURL command: {exc}") from exc


def parse_curl(command: str) -> CurlCommand:
    """Parse a cURL command string into its components.

    Handles:
      - ``-X/--request``, ``-H/--header``
      - ``-d/--data/--data-raw``, ``--data-binary`` (``@file`` becomes a
        ``< file`` body reference), ``--data-urlencode``
      - ``-u/--user`` basic credentials
      - ``-A``, ``-b``, ``-e`` as User-Agent, Cookie and Referer headers
      - ``-L`` and ``-k``, recorded as flags

    Sending data switches the default method to POST. Unknown options are
    skipped.

    Args:
        command: The cURL command line, possibly spread over several lines.

    Returns:
        The parsed CurlCommand.

    Raises:
        ParseError: If the command is empty, has an unclosed quote, or
            contains no URL.
    """
    tokens = tokenize(command)
    if not tokens:
        raise ParseError("Empty cURL command")

    cmd = CurlCommand()
    explicit_method = False
    it = iter(tokens)

    for token in it:
        if token == "curl":
            continue

        if token in ("-X", "--request"):
            value = next(it, None)
            if value is not None:
                cmd.method = value.upper()
                explicit_method = True
        elif token in ("-H", "--header"):
            value = next(it, None)
            header = _split_header(value) if value is not None else None
            if header is not None:
                cmd.headers[header[0]] = header[1]
        elif token in ("-d", "--data", "--data-raw", "--data-ascii"):
            value = next(it, None)
            if value is not None:
                cmd.body = value
        elif token == "--data-binary":
            value = next(it, None)
            if value is not None:
                cmd.body = f"< {value[1:]}" if value.startswith("@") else value
        elif token == "--data-urlencode":
            value = next(it, None)
            if value is not None:
                encoded = quote(value, safe="")
                cmd.body = f"{cmd.body}&{encoded}" if cmd.body else encoded
        elif token in ("-u", "--user"):
            value = next(it, None)
            if value is not None:
                user, _, password = value.partition(":")
                cmd.auth = (user, password)
        elif token in ("-A", "--user-agent"):
            value = next(it, None)
            if value is not None:
                cmd.headers["User-Agent"] = value
        elif token in ("-b", "--cookie"):
            value = next(it, None)
            if value is not None:
                cmd.headers["Cookie"] = value
        elif token in ("-e", "--referer"):
            value = next(it, None)
            if value is not None:
                cmd.headers["Referer"] = value
        elif token in ("-L", "--location"):
            cmd.flags.append("follow-redirects")
        elif token in ("-k", "--insecure"):
            cmd.flags.append("insecure")
        elif token == "--compressed":
            cmd.flags.append("compressed")
        elif token in ("-v", "--verbose", "-s", "--silent"):
            pass
        elif token in IGNORED_VALUE_OPTIONS:
            next(it, None)
        elif token.startswith(("http://", "https://")):
            cmd.url = token
        elif not token.startswith("-") and not cmd.url:
            cmd.url = token

    if not cmd.url:
        raise ParseError("No URL found in cURL command")

    if cmd.body is not None and not explicit_method:
        cmd.method = "POST"

    return cmd


def _format_body(body: str) -> str:
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return body


def curl_to_http(cmd: CurlCommand) -> str:
    """Render a CurlCommand as request file text.

    Args:
        cmd: The parsed cURL command.

    Returns:
        ``# Note:`` comments for flags that have no request file
        equivalent, the method line, headers (sorted case-insensitively),
        then a blank line and the body (JSON pretty-printed) if any. The
        notes come first so they never end up inside the body.
    """
    lines = [f"# Note: {flag} flag was set in cURL" for flag in cmd.flags]
    lines.append(f"{cmd.method} {cmd.url}")

    if cmd.auth is not None:
        credentials = f"{cmd.auth[0]}:{cmd.auth[1]}".encode("utf-8")
        lines.append(
            f"Authorization: Basic {base64.b64encode(credentials).decode('ascii')}"
        )

    for key, value in sorted(cmd.headers.items(), key=lambda kv: kv[0].lower()):
        lines.append(f"{key}: {value}")

    if cmd.body is not None:
        lines.append("")
        lines.append(_format_body(cmd.body))

    return "\n".join(lines) + "\n"


def import_curl(command: str) -> str:
    """Parse a cURL command and return it as request file text."""
    return curl_to_http(parse_curl(command))
