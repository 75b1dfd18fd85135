"""httpfile — Main entry point.

Ties together the CLI, parser, environment loader and engine to list,
run or import requests.
"""

import json
import logging
import os
import sys

from httpfile.cli import parse_cli, parse_var_overrides
from httpfile.curl import import_curl
from httpfile.engine import (
    execute_request,
    merge_variables,
    print_response,
    resolve_request,
)
from httpfile.env import load_environment_config
from httpfile.errors import HttpFileError, ParseError
from httpfile.parser import (
    HttpFileFormat,
    ParsedRequest,
    load_http_file,
    parse_http_content,
)


def select_requests(
    requests: list[ParsedRequest],
    name: str | None = None,
    index: int | None = None,
    run_all: bool = False,
) -> list[ParsedRequest]:
    """Pick the requests to run.

    With no selector the first request is chosen. ``name`` matches either
    the ``###`` title or a ``# @name`` annotation.

    Raises:
        LookupError: If the selector matches nothing.
    """
    if run_all:
        return list(requests)
    if name is not None:
        matches = [
            r for r in requests if name in (r.name, r.metadata.get("name"))
        ]
        if not matches:
            raise LookupError(f"No request named {name!r}")
        return matches[:1]
    position = index if index is not None else 1
    if position > len(requests):
        raise LookupError(
            f"Request #{position} requested but the file has {len(requests)}"
        )
    return [requests[position - 1]]


def print_request_list(requests: list[ParsedRequest]) -> None:
    for number, request in enumerate(requests, start=1):
        title = request.name or request.metadata.get("name") or ""
        extras = []
        if request.pre_script is not None:
            extras.append("pre-script")
        if request.post_script is not None:
            extras.append("post-script")
        suffix = f"  [{', '.join(extras)}]" if extras else ""
        print(
            f"  {number:>3}. line {request.line_number:<5} "
            f"{request.method:<7} {request.url}"
            f"{'  # ' + title if title else ''}{suffix}"
        )


def run_requests(args, requests: list[ParsedRequest]) -> int:
    overrides = parse_var_overrides(args.var)
    workspace = args.env_dir or os.path.dirname(os.path.abspath(args.http_file))
    config = load_environment_config(workspace)
    environment = config.variables_for(args.env)
    if args.env:
        print(f"[*] Using environment: {args.env}")

    selected = select_requests(requests, args.name, args.index, args.all)

    any_failed = False
    for request in selected:
        variables = merge_variables(request, environment)
        variables.update(overrides)
        resolved = resolve_request(request, variables)
        if resolved.missing:
            print(
                f"[!] Unresolved variables: {', '.join(resolved.missing)}",
                file=sys.stderr,
            )

        print(f"\n[*] Sending {resolved.method} {resolved.url}...")
        if args.proxy:
            print(f"    Proxy  : {args.proxy}")
        record = execute_request(
            resolved,
            timeout=args.timeout,
            proxy=args.proxy,
            verify=not args.insecure,
            follow_redirects=args.follow_redirects,
        )
        print_response(resolved, record)
        any_failed = any_failed or record.is_error

    return 1 if any_failed else 0


def main(argv: list[str] | None = None) -> int:
    """Run the httpfile tool.

    Args:
        argv: Optional argument list (defaults to sys.argv).

    Returns:
        Exit code (0 = success, 1 = a response had an error status,
        2 = error).
    """
    args = parse_cli(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if args.command == "import-curl":
        try:
            print(import_curl(args.curl_command), end="")
        except ParseError as exc:
            print(f"Error importing cURL command: {exc}", file=sys.stderr)
            return 2
        return 0

    print(f"[*] Loading request file: {args.http_file}", file=sys.stderr)
    try:
        content = load_http_file(args.http_file)
    except (FileNotFoundError, IOError, UnicodeDecodeError) as exc:
        print(f"Error reading request file: {exc}", file=sys.stderr)
        return 2

    fmt = None if args.format == "auto" else HttpFileFormat(args.format)
    try:
        requests = parse_http_content(content, fmt)
    except ParseError as exc:
        print(f"Error parsing request file: {exc}", file=sys.stderr)
        return 2

    if args.command == "list":
        if args.json:
            print(json.dumps([r.to_dict() for r in requests], indent=2))
        else:
            print(f"[*] {len(requests)} request(s) found")
            print_request_list(requests)
        return 0

    if not requests:
        print("Error: no requests found in file.", file=sys.stderr)
        return 2

    try:
        return run_requests(args, requests)
    except (HttpFileError, ValueError) as exc:
        print(f"Error running request: {exc}", file=sys.stderr)
        return 2
    except LookupError as exc:
        print(f"Error selecting request: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
