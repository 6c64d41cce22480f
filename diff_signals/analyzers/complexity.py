"""Lexical complexity estimates for added diff text.

Nothing here parses source code. Control-flow tokens are counted with a
regular expression chosen per language, and nesting is approximated line by
line from block openers and closers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath
from re import Pattern, compile
from typing import Literal


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Limits shared by the estimator and the warning classification."""

    max_cyclomatic_complexity: int = 10
    max_nesting_depth: int = 4
    max_line_length: int = 150
    large_additions: int = 300


THRESHOLDS = Thresholds()

NestingMode = Literal["brace", "indent"]


@dataclass(frozen=True, slots=True)
class LanguageProfile:
    """Token pattern and nesting strategy for a language family."""

    name: str
    control_flow: Pattern[str]
    nesting: NestingMode


LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    "c_like": LanguageProfile(
        name="c_like",
        control_flow=compile(r"\b(?:if|else|for|while|do|switch|case|catch)\b|&&|\|\||\?\??"),
        nesting="brace",
    ),
    "go": LanguageProfile(
        name="go",
        control_flow=compile(r"\b(?:if|else|for|switch|case|select)\b|&&|\|\|"),
        nesting="brace",
    ),
    "python": LanguageProfile(
        name="python",
        control_flow=compile(r"\b(?:if|elif|else|for|while|try|except|and|or)\b"),
        nesting="indent",
    ),
    "ruby": LanguageProfile(
        name="ruby",
        control_flow=compile(
            r"\b(?:if|elsif|else|unless|case|when|while|until|for|rescue)\b|&&|\|\|"
        ),
        nesting="brace",
    ),
}

DEFAULT_LANGUAGE = "c_like"

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    "js": "c_like",
    "jsx": "c_like",
    "mjs": "c_like",
    "cjs": "c_like",
    "ts": "c_like",
    "tsx": "c_like",
    "java": "c_like",
    "kt": "c_like",
    "scala": "c_like",
    "c": "c_like",
    "h": "c_like",
    "cc": "c_like",
    "cpp": "c_like",
    "hpp": "c_like",
    "cs": "c_like",
    "php": "c_like",
    "swift": "c_like",
    "rs": "c_like",
    "go": "go",
    "py": "python",
    "pyi": "python",
    "rb": "ruby",
}

_BLOCK_OPENER = "{"
_BLOCK_CLOSER = "}"
_INDENT_OPENER_RE = compile(r":\s*$")
_DEDENT_RE = compile(r"^(?:return|pass|break|continue)\b")
_CONTINUATION_RE = compile(r"^(?:elif|else|except|finally)\b")


@dataclass(frozen=True, slots=True)
class ComplexityEstimate:
    """Complexity figures for the added text of one file."""

    complexity: int
    max_nesting: int
    long_lines: int
    language: str = DEFAULT_LANGUAGE


def file_extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower().lstrip(".")


def language_for(filename: str) -> str:
    """Return the language profile key for a path, or the default."""
    return LANGUAGE_BY_EXTENSION.get(file_extension(filename), DEFAULT_LANGUAGE)


def is_code_file(filename: str) -> bool:
    return file_extension(filename) in LANGUAGE_BY_EXTENSION


def estimate(filename: str, added_text: str) -> ComplexityEstimate:
    """Estimate complexity, nesting and long lines for added text."""
    language = language_for(filename)
    profile = LANGUAGE_PROFILES[language]

    complexity = sum(1 for _ in profile.control_flow.finditer(added_text)) + 1
    lines = added_text.split("\n")
    long_lines = sum(1 for line in lines if len(line) > THRESHOLDS.max_line_length)

    return ComplexityEstimate(
        complexity=complexity,
        max_nesting=max_nesting_depth(lines, profile.nesting),
        long_lines=long_lines,
        language=language,
    )


def max_nesting_depth(lines: list[str], mode: NestingMode) -> int:
    """Track a running block depth over ``lines`` and return its maximum."""
    step = _NESTING_STEPS[mode]
    depth = 0
    deepest = 0
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        depth, deepest = step(stripped, depth, deepest)
    return deepest


def _brace_step(stripped: str, depth: int, deepest: int) -> tuple[int, int]:
    if stripped.startswith("//"):
        return depth, deepest

    rest = stripped
    # "} else {" closes the previous block before opening the next one.
    if rest.startswith(_BLOCK_CLOSER):
        depth = max(0, depth - 1)
        rest = rest[1:]

    open_at = rest.rfind(_BLOCK_OPENER)
    if open_at >= 0:
        depth += 1
        deepest = max(deepest, depth)
        if _BLOCK_CLOSER in rest[open_at:]:
            depth -= 1
    elif _BLOCK_CLOSER in rest:
        depth = max(0, depth - 1)
    return depth, deepest


def _indent_step(stripped: str, depth: int, deepest: int) -> tuple[int, int]:
    if stripped.startswith("#"):
        return depth, deepest

    # "elif x:" closes the previous branch before opening its own.
    if _CONTINUATION_RE.match(stripped):
        depth = max(0, depth - 1)
    if _INDENT_OPENER_RE.search(stripped):
        depth += 1
        deepest = max(deepest, depth)
    if _DEDENT_RE.match(stripped):
        depth = max(0, depth - 1)
    return depth, deepest


_NESTING_STEPS: dict[str, Callable[[str, int, int], tuple[int, int]]] = {
    "brace": _brace_step,
    "indent": _indent_step,
}
