"""Request execution engine.

Resolves the placeholders of a parsed request against its variables and
sends it with the requests library. The parser never calls into this
module; it only consumes ParsedRequest objects.
"""

from __future__ import annotations

import logging
import time

import requests
import urllib3

from httpfile.errors import InvalidRequestError, RequestFailedError
from httpfile.parser import ParsedRequest
from httpfile.variables import resolve_variables

logger = logging.getLogger(__name__)

# Status codes from this value up count as failures in reports
ERROR_STATUS = 400

# Characters of the response body shown by print_response
BODY_PREVIEW = 2000


class ResolvedRequest:
    """A request with every resolvable placeholder substituted."""

    __slots__ = ("name", "method", "url", "headers", "body", "missing")

    def __init__(
        self,
        name: str | None,
        method: str,
        url: str,
        headers: dict[str, str],
        body: str | None,
        missing: list[str],
    ) -> None:
        self.name = name
        self.method = method
        self.url = url
        self.headers = headers
        self.body = body
        self.missing = missing

    def __repr__(self) -> str:
        return (
            f"ResolvedRequest(method={self.method!r}, url={self.url!r}, "
            f"missing={self.missing!r})"
        )


class ResponseRecord:
    """Container for the response to an executed request."""

    __slots__ = (
        "status",
        "status_text",
        "headers",
        "body",
        "time_ms",
        "size",
    )

    def __init__(
        self,
        status: int,
        status_text: str,
        headers: dict[str, str],
        body: str,
        time_ms: int,
        size: int,
    ) -> None:
        self.status = status
        self.status_text = status_text
        self.headers = headers
        self.body = body
        self.time_ms = time_ms
        self.size = size

    @property
    def is_error(self) -> bool:
        return self.status >= ERROR_STATUS


def merge_variables(
    request: ParsedRequest, environment: dict[str, str] | None = None
) -> dict[str, str]:
    """Combine environment variables with the request's file variables.

    Variables defined in the request file take precedence over the
    environment.

    Args:
        request: The parsed request.
        environment: Variables of the selected environment, if any.

    Returns:
        A new merged dictionary.
    """
    merged = dict(environment or {})
    merged.update(request.variables)
    return merged


def resolve_request(
    request: ParsedRequest, variables: dict[str, str]
) -> ResolvedRequest:
    """Substitute placeholders in method, URL, header values and body.

    Args:
        request: The parsed request.
        variables: The variables to substitute.

    Returns:
        A ResolvedRequest; ``missing`` lists each unresolved name once.
    """
    missing: list[str] = []

    def _resolve(text: str) -> str:
        result = resolve_variables(text, variables)
        for name in result.missing:
            if name not in missing:
                missing.append(name)
        return result.text

    headers = {key: _resolve(value) for key, value in request.headers.items()}
    body = _resolve(request.body) if request.body is not None else None

    return ResolvedRequest(
        name=request.name,
        method=_resolve(request.method),
        url=_resolve(request.url),
        headers=headers,
        body=body,
        missing=missing,
    )


def execute_request(
    resolved: ResolvedRequest,
    timeout: float = 30,
    proxy: str | None = None,
    verify: bool = True,
    follow_redirects: bool = True,
) -> ResponseRecord:
    """Send a resolved request and collect the response.

    Args:
        resolved: The request, placeholders already substituted.
        timeout: Request timeout in seconds.
        proxy: Optional proxy URL for both HTTP and HTTPS.
        verify: Verify TLS certificates.
        follow_redirects: Follow 3xx redirects.

    Returns:
        A ResponseRecord with status, headers, body, timing and size.

    Raises:
        InvalidRequestError: If the URL has no http(s) scheme.
        RequestFailedError: If requests raises while sending.
    """
    if not resolved.url.startswith(("http://", "https://")):
        raise InvalidRequestError(
            f"URL must start with http:// or https://: {resolved.url!r}"
        )

    proxies = None
    if proxy:
        proxies = {"http": proxy, "https": proxy}

    if not verify:
        # Suppress InsecureRequestWarning for self-signed certificates
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    logger.debug("Sending %s %s", resolved.method, resolved.url)
    start = time.monotonic()
    try:
        response = requests.request(
            method=resolved.method.upper(),
            url=resolved.url,
            headers=resolved.headers,
            data=resolved.body.encode("utf-8") if resolved.body is not None else None,
            proxies=proxies,
            timeout=timeout,
            verify=verify,
            allow_redirects=follow_redirects,
        )
    except requests.RequestException as exc:
        raise RequestFailedError(f"Request failed: {exc}") from exc
    elapsed_ms = int((time.monotonic() - start) * 1000)

    body = response.text
    return ResponseRecord(
        status=response.status_code,
        status_text=response.reason or "Unknown",
        headers=dict(response.headers),
        body=body,
        time_ms=elapsed_ms,
        size=len(response.content),
    )


def print_response(resolved: ResolvedRequest, record: ResponseRecord) -> None:
    """Print a formatted response report to stdout.

    Args:
        resolved: The request that was sent.
        record: Its response.
    """
    banner = "=" * 60
    title = resolved.name or f"{resolved.method} {resolved.url}"
    print(f"\n{banner}")
    print(f"  {title}")
    print(banner)
    print(f"\n  Request     : {resolved.method} {resolved.url}")
    print(f"  Status      : {record.status} {record.status_text}")
    print(f"  Time        : {record.time_ms} ms")
    print(f"  Size        : {record.size} bytes")

    print("\n  Response Headers:")
    for key, value in record.headers.items():
        print(f"    {key}: {value}")

    if record.body:
        print(f"\n  Response Body (first {BODY_PREVIEW} chars):")
        print(f"    {record.body[:BODY_PREVIEW]}")

    print(f"\n{banner}\n")
