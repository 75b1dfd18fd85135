"""Placeholder substitution for ``{{name}}`` variables."""

from __future__ import annotations

import re

from httpfile.dynamic import resolve_dynamic_variable

VARIABLE_RE = re.compile(r"\{\{([\w.-]+)\}\}")

# {{name}}, {{$uuid}} and {{$randomInt 1 100}}
PLACEHOLDER_RE = re.compile(r"\{\{(\$?[\w.-]+(?:\s+[\w.-]+)*)\}\}")

INLINE_VARIABLE_RE = re.compile(r"^@([\w-]+)\s*=\s*(.*)$", re.MULTILINE)


class SubstitutionResult:
    """Resolved text plus the placeholders that could not be resolved."""

    __slots__ = ("text", "missing")

    def __init__(self, text: str, missing: list[str]) -> None:
        self.text = text
        self.missing = missing

    def __repr__(self) -> str:
        return f"SubstitutionResult(text={self.text!r}, missing={self.missing!r})"


def substitute_variables(text: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` placeholders with values from ``variables``.

    Unknown names are left exactly as written. Replacement values are
    inserted as-is and never scanned again, so a value containing
    ``{{...}}`` is not expanded.

    Args:
        text: The string to resolve.
        variables: Mapping of variable name to value.

    Returns:
        The resolved string.
    """

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return VARIABLE_RE.sub(_replace, text)


def resolve_variables(text: str, variables: dict[str, str]) -> SubstitutionResult:
    """Resolve regular and dynamic placeholders, reporting what is missing.

    ``{{$name args}}`` is handed to the dynamic variable generators first;
    when ``name`` is not a known generator the whole token is looked up as
    a regular variable instead.

    Args:
        text: The string to resolve.
        variables: Mapping of variable name to value.

    Returns:
        A SubstitutionResult. ``missing`` lists unresolved names in order
        of appearance, duplicates included.
    """
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        content = match.group(1)
        if content.startswith("$"):
            parts = content[1:].split(None, 1)
            args = parts[1] if len(parts) > 1 else None
            value = resolve_dynamic_variable(parts[0], args)
            if value is not None:
                return value
        if content in variables:
            return variables[content]
        missing.append(content)
        return match.group(0)

    return SubstitutionResult(PLACEHOLDER_RE.sub(_replace, text), missing)


def find_variable_references(text: str) -> list[str]:
    """Return the distinct ``{{name}}`` references in order of appearance."""
    names: list[str] = []
    for match in VARIABLE_RE.finditer(text):
        if match.group(1) not in names:
            names.append(match.group(1))
    return names


def extract_inline_variables(text: str) -> dict[str, str]:
    """Collect ``@name = value`` definitions written at the start of a line."""
    return {
        name: value.strip() for name, value in INLINE_VARIABLE_RE.findall(text)
    }
