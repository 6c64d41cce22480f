"""Glob matching for repository-relative paths.

Supports ``*`` (within one path segment), ``**`` (any number of whole
segments), ``?``, ``[...]`` character classes and ``{a,b}`` alternation.
Matching is case-sensitive and anchored at both ends.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

_SEGMENT_GLOBSTAR = "(?:[^/]+/)*"
_TRAILING_GLOBSTAR = "(?:/.*)?"


class GlobError(ValueError):
    """Raised when a glob pattern cannot be translated."""


def matches(filename: str, pattern: str) -> bool:
    """Return whether ``filename`` matches ``pattern``.

    A malformed pattern matches nothing instead of raising.
    """
    try:
        compiled = compile_glob(pattern)
    except GlobError as exc:
        logger.debug("Ignoring malformed glob %r: %s", pattern, exc)
        return False
    return compiled.fullmatch(filename) is not None


def matches_any(filename: str, patterns: Iterable[str]) -> bool:
    """Return whether any of ``patterns`` matches ``filename``."""
    return any(matches(filename, pattern) for pattern in patterns)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob into a regular expression for ``fullmatch``."""
    if not isinstance(pattern, str):
        raise GlobError(f"pattern must be a string, got {type(pattern).__name__}")
    try:
        return re.compile(translate(pattern))
    except re.error as exc:
        raise GlobError(str(exc)) from exc


def translate(pattern: str) -> str:
    """Translate a glob into an unanchored regular expression."""
    parts: list[str] = []
    index = 0
    length = len(pattern)

    while index < length:
        char = pattern[index]

        if char == "*" and pattern.startswith("**", index):
            index = _translate_globstar(pattern, index, parts)
            continue

        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            end = _find_class_end(pattern, index)
            if end < 0:
                raise GlobError(f"unterminated character class in {pattern!r}")
            parts.append(_translate_class(pattern[index + 1 : end]))
            index = end + 1
            continue
        elif char == "{":
            end = _find_brace_end(pattern, index)
            alternatives = _split_alternatives(pattern[index + 1 : end]) if end > 0 else []
            if len(alternatives) < 2:
                parts.append(re.escape(char))
            else:
                parts.append("(?:" + "|".join(translate(item) for item in alternatives) + ")")
                index = end + 1
                continue
        elif char == "\\" and index + 1 < length:
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        else:
            parts.append(re.escape(char))
        index += 1

    return "".join(parts)


def _translate_globstar(pattern: str, index: int, parts: list[str]) -> int:
    end = index + 2
    at_segment_start = index == 0 or pattern[index - 1] == "/"
    at_segment_end = end == len(pattern) or pattern[end] == "/"

    if not (at_segment_start and at_segment_end):
        parts.append(".*")
        return end

    if end == len(pattern):
        if parts and parts[-1] == "/":
            parts[-1] = _TRAILING_GLOBSTAR
        else:
            parts.append(".*")
        return end

    # "**/" spans zero or more directories.
    parts.append(_SEGMENT_GLOBSTAR)
    return end + 1


def _find_class_end(pattern: str, start: int) -> int:
    index = start + 1
    if index < len(pattern) and pattern[index] in "!^":
        index += 1
    if index < len(pattern) and pattern[index] == "]":
        index += 1
    return pattern.find("]", index)


def _translate_class(body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    escaped = body.replace("\\", "\\\\")
    escaped = re.sub(r"([&~|\[])", r"\\\1", escaped)
    if negate:
        return f"[^/{escaped}]"
    return f"[{escaped}]"


def _find_brace_end(pattern: str, start: int) -> int:
    depth = 0
    for index in range(start, len(pattern)):
        char = pattern[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _split_alternatives(body: str) -> list[str]:
    items: list[str] = []
    depth = 0
    current: list[str] = []
    for char in body:
        if char == "," and depth == 0:
            items.append("".join(current))
            current = []
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current.append(char)
    items.append("".join(current))
    return items
