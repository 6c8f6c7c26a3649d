"""Error kinds used by retry and catch rules.

Kinds are plain strings compared by value, so a rule written as
``"LockExistsError"`` matches any error reporting that kind regardless of
which Python class raised it.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class ErrorKind(StrEnum):
    ALL = "States.ALL"
    RUNTIME = "States.Runtime"  # raised by the engine itself, never by a handler


MATCH_ALL_PATTERNS = frozenset({ErrorKind.ALL.value, "*"})


def error_kind_of(exc: BaseException) -> str:
    """The ``error_kind`` an exception reports, else its class name."""
    kind = getattr(exc, "error_kind", None)
    if isinstance(kind, str) and kind:
        return kind
    return type(exc).__name__


def matches(patterns: Iterable[str], kind: str) -> bool:
    return any(pattern in MATCH_ALL_PATTERNS or pattern == kind for pattern in patterns)
