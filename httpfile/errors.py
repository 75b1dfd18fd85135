"""Exception hierarchy shared by the parser and its collaborators."""

from __future__ import annotations


class HttpFileError(Exception):
    """Base class for every error raised by httpfile."""


class ParseError(HttpFileError, ValueError):
    """A document (or cURL command) could not be parsed.

    Subclasses ValueError so callers written against plain ``ValueError``
    keep working.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is not None:
            return f"Parse error at line {self.line}: {self.message}"
        return f"Parse error: {self.message}"


class EnvFileError(HttpFileError):
    """An environment file exists but could not be read or decoded."""


class EnvironmentNotFoundError(HttpFileError, KeyError):
    """The requested environment is not defined in the workspace."""

    def __str__(self) -> str:
        return f"Unknown environment: {self.args[0]!r}"


class ExecutionError(HttpFileError):
    """Sending a resolved request failed."""


class InvalidRequestError(ExecutionError):
    """The resolved request cannot be sent as-is (e.g. no URL scheme)."""


class RequestFailedError(ExecutionError):
    """The HTTP library raised while sending the request."""
