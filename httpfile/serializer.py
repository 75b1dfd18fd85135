"""Write parsed requests back out as request file text (JetBrains dialect)."""

from __future__ import annotations

from httpfile.parser import ParsedRequest


def serialize_request(request: ParsedRequest) -> str:
    """Render one request as request file text.

    Layout: ``### name`` (only for named requests), ``# @key value``
    metadata, the pre-request script, ``METHOD URL [HTTP/x]``, headers, then
    a blank line and the body, then the post-request script.

    Args:
        request: The request to render.

    Returns:
        The text, without a trailing newline.
    """
    lines: list[str] = []

    if request.name:
        lines.append(f"### {request.name}")

    for key, value in request.metadata.items():
        lines.append(f"# @{key} {value}")

    if request.pre_script is not None:
        lines.extend(["< {%", request.pre_script, "%}", ""])

    version = f" {request.http_version}" if request.http_version else ""
    lines.append(f"{request.method} {request.url}{version}")

    for key, value in request.headers.items():
        lines.append(f"{key}: {value}")

    if request.body:
        lines.append("")
        lines.append(request.body)

    if request.post_script is not None:
        lines.extend(["", "> {%", request.post_script, "%}"])

    return "\n".join(lines)


def serialize_requests(
    requests: list[ParsedRequest], variables: dict[str, str] | None = None
) -> str:
    """Render a whole request file.

    File variables come first as ``@name = value`` lines. Every request is
    preceded by a ``###`` separator so requests never run into each other.
    The output is JetBrains text: read it back with ``parse_jetbrains`` (or
    ``HttpFileFormat.JETBRAINS``). Auto-detection picks VS Code when a body
    line looks like ``@name = value``, and that dialect turns the line into
    a file variable.

    Args:
        requests: The requests, in file order.
        variables: Optional file variables to write at the top.

    Returns:
        The file text, ending with a newline.
    """
    blocks: list[str] = []

    if variables:
        blocks.append("\n".join(f"@{k} = {v}" for k, v in variables.items()))

    for request in requests:
        text = serialize_request(request)
        if not request.name:
            text = f"###\n{text}"
        blocks.append(text)

    return "\n\n".join(blocks) + "\n"
