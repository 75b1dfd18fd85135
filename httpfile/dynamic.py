"""Dynamic variables, generated fresh every time a request is resolved.

Written as ``{{$name}}`` or ``{{$name arg1 arg2}}`` inside a request, e.g.
``{{$uuid}}``, ``{{$randomInt 1 100}}`` or ``{{$basicAuth user secret}}``.
"""

from __future__ import annotations

import base64
import binascii
import random
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import quote, unquote

ALNUM = string.ascii_lowercase + string.digits
ALPHA = string.ascii_letters
HEX = "0123456789abcdef"

MAX_RANDOM_LENGTH = 100


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _split_args(args: str | None) -> list[str]:
    return args.split() if args else []


def _length(args: str | None, default: int) -> int:
    parts = _split_args(args)
    try:
        length = int(parts[0]) if parts else default
    except ValueError:
        return default
    return min(length, MAX_RANDOM_LENGTH)


def _random_chars(alphabet: str, length: int) -> str:
    return "".join(random.choice(alphabet) for _ in range(length))


def _random_int(args: str | None) -> str:
    parts = _split_args(args)
    if len(parts) >= 2:
        try:
            low, high = int(parts[0]), int(parts[1])
        except ValueError:
            pass
        else:
            if high >= low:
                return str(random.randint(low, high))
    return str(random.randint(0, 1000))


def _random_float(args: str | None) -> str:
    parts = _split_args(args)
    if len(parts) >= 2:
        try:
            low, high = float(parts[0]), float(parts[1])
        except ValueError:
            pass
        else:
            if high >= low:
                return f"{random.uniform(low, high):.2f}"
    return f"{random.random():.4f}"


def _basic_auth(args: str | None) -> str:
    parts = _split_args(args)
    if len(parts) < 2:
        raise ValueError("$basicAuth requires both username and password")
    username, password = parts[0], " ".join(parts[1:])
    token = base64.b64encode(f"{username}:{password}".encode("utf-8"))
    return f"Basic {token.decode('ascii')}"


def _base64(args: str | None) -> str:
    if not args:
        return ""
    return base64.b64encode(args.encode("utf-8")).decode("ascii")


def _base64_decode(args: str | None) -> str:
    if not args:
        return ""
    try:
        return base64.b64decode(args.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return "[invalid base64]"


def _url_encode(args: str | None) -> str:
    return quote(args, safe="") if args else ""


def _url_decode(args: str | None) -> str:
    if not args:
        return ""
    try:
        return unquote(args.strip(), errors="strict")
    except UnicodeDecodeError:
        return "[invalid url encoding]"


GENERATORS: dict[str, Callable[[str | None], str]] = {
    "uuid": lambda _: str(uuid.uuid4()),
    "guid": lambda _: str(uuid.uuid4()),
    "timestamp": lambda _: str(int(time.time())),
    "timestampMs": lambda _: str(int(time.time() * 1000)),
    "isoTimestamp": lambda _: _now().isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    "date": lambda _: _now().strftime("%Y-%m-%d"),
    "time": lambda _: _now().strftime("%H:%M:%S"),
    "randomInt": _random_int,
    "randomFloat": _random_float,
    "randomString": lambda args: _random_chars(ALNUM, _length(args, 10)),
    "randomAlpha": lambda args: _random_chars(ALPHA, _length(args, 10)),
    "randomHex": lambda args: _random_chars(HEX, _length(args, 16)),
    "randomEmail": lambda _: f"{_random_chars(ALNUM, 10)}@example.com",
    "randomBoolean": lambda _: random.choice(("true", "false")),
    "basicAuth": _basic_auth,
    "base64": _base64,
    "base64Decode": _base64_decode,
    "urlEncode": _url_encode,
    "urlDecode": _url_decode,
}


def resolve_dynamic_variable(name: str, args: str | None = None) -> str | None:
    """Generate the value of a dynamic variable.

    Args:
        name: Variable name without the ``$`` prefix.
        args: Optional whitespace-separated arguments.

    Returns:
        The generated value, or None if ``name`` is not a dynamic variable.

    Raises:
        ValueError: If ``$basicAuth`` is missing its arguments.
    """
    generator = GENERATORS.get(name)
    if generator is None:
        return None
    return generator(args)


def is_dynamic_variable(name: str) -> bool:
    """Tell whether ``name`` (with or without ``$``) is a dynamic variable."""
    if name.startswith("$"):
        name = name[1:]
    parts = name.split()
    return bool(parts) and parts[0] in GENERATORS
