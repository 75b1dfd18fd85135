"""httpfile — parser and runner for JetBrains / VS Code HTTP request files."""

from httpfile.errors import HttpFileError, ParseError
from httpfile.parser import (
    HttpFileFormat,
    ParsedRequest,
    detect_format,
    parse_http_content,
    parse_jetbrains,
    parse_vscode,
)
from httpfile.variables import substitute_variables

__version__ = "0.1.0"

__all__ = [
    "HttpFileError",
    "HttpFileFormat",
    "ParseError",
    "ParsedRequest",
    "detect_format",
    "parse_http_content",
    "parse_jetbrains",
    "parse_vscode",
    "substitute_variables",
    "__version__",
]
