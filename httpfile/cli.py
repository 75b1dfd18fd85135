"""Command-line interface.

Builds the argparse parser for the ``httpfile`` tool and validates the
arguments before anything is parsed or sent.
"""

import argparse
import os
import sys

from httpfile import __version__

FORMAT_CHOICES = ("auto", "jetbrains", "vscode")


def _add_file_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "http_file",
        metavar="FILE",
        help="Path to a .http / .rest request file.",
    )
    parser.add_argument(
        "--format",
        choices=FORMAT_CHOICES,
        default="auto",
        help="Request file dialect (default: detect from content).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for the httpfile CLI."""
    parser = argparse.ArgumentParser(
        prog="httpfile",
        description=(
            "httpfile v{ver} — Parse and run HTTP request files.\n\n"
            "Understands the JetBrains HTTP Client and VS Code REST Client "
            "dialects, resolves {{variables}} from the file and from "
            "http-client.env.json environments, and sends requests."
        ).format(ver=__version__),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  httpfile list api.http\n"
            "  httpfile run api.http --name 'Get users' --env dev\n"
            "  httpfile run api.http --all --var token=abc123\n"
            "  httpfile import-curl \"curl -X POST https://example.com -d '{}'\"\n"
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # list
    list_cmd = commands.add_parser("list", help="List the requests in a file.")
    _add_file_argument(list_cmd)
    list_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print the parsed requests as JSON.",
    )

    # run
    run_cmd = commands.add_parser("run", help="Send requests from a file.")
    _add_file_argument(run_cmd)
    selector = run_cmd.add_mutually_exclusive_group()
    selector.add_argument(
        "--name",
        default=None,
        help="Run the request with this name (### name or # @name).",
    )
    selector.add_argument(
        "--index",
        type=int,
        default=None,
        help="Run the request at this 1-based position.",
    )
    selector.add_argument(
        "--all",
        action="store_true",
        help="Run every request in file order.",
    )
    run_cmd.add_argument(
        "--env",
        default=None,
        help="Environment from http-client.env.json to use.",
    )
    run_cmd.add_argument(
        "--env-dir",
        default=None,
        help="Directory holding the env files (default: the file's directory).",
    )
    run_cmd.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a variable. May be given several times.",
    )
    run_cmd.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30).",
    )
    run_cmd.add_argument(
        "--proxy",
        default=None,
        help="Route traffic through a proxy (e.g. http://127.0.0.1:8080).",
    )
    run_cmd.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify TLS certificates.",
    )
    run_cmd.add_argument(
        "--no-follow",
        action="store_false",
        dest="follow_redirects",
        help="Do not follow redirects.",
    )

    # import-curl
    curl_cmd = commands.add_parser(
        "import-curl", help="Convert a cURL command to request file text."
    )
    curl_cmd.add_argument("curl_command", metavar="COMMAND", help="The cURL command.")

    return parser


def parse_var_overrides(values: list[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a dictionary.

    Raises:
        ValueError: If an entry has no ``=`` or an empty key.
    """
    overrides: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid --var {item!r}, expected KEY=VALUE")
        overrides[key.strip()] = value
    return overrides


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments.

    Raises:
        SystemExit: If the request file does not exist or is not readable,
            or an option value is invalid.
    """
    if args.command == "import-curl":
        if not args.curl_command.strip():
            print("Error: cURL command cannot be empty.", file=sys.stderr)
            sys.exit(1)
        return

    if not os.path.isfile(args.http_file):
        print(
            f"Error: Request file not found: '{args.http_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if not os.access(args.http_file, os.R_OK):
        print(
            f"Error: Request file is not readable: '{args.http_file}'",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.command != "run":
        return

    try:
        parse_var_overrides(args.var)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.index is not None and args.index < 1:
        print("Error: --index starts at 1.", file=sys.stderr)
        sys.exit(1)

    if args.timeout <= 0:
        print("Error: --timeout must be positive.", file=sys.stderr)
        sys.exit(1)

    if args.env_dir is not None and not os.path.isdir(args.env_dir):
        print(
            f"Error: Environment directory not found: '{args.env_dir}'",
            file=sys.stderr,
        )
        sys.exit(1)


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse and validate command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed and validated argument namespace.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(args)
    return args
