"""Glob matcher tests."""

from __future__ import annotations

import pytest

from diff_signals.globbing import GlobError, compile_glob, matches, matches_any


@pytest.mark.parametrize(
    ("filename", "pattern"),
    [
        (".env.production", "**/.env*"),
        ("config/.env", "**/.env*"),
        ("migrations/20240101_add_users.sql", "**/migrations/**"),
        ("db/migrations/001/up.sql", "**/migrations/**"),
        ("src/app.min.js", "**/*.min.js"),
        ("src/file.ts", "src/*.{ts,tsx}"),
        ("src/file.tsx", "src/*.{ts,tsx}"),
        ("a1.txt", "a?.txt"),
        ("b.py", "[abc].py"),
        ("z.py", "[!abc].py"),
        ("package.json", "**/package.json"),
    ],
)
def test_matches_positive(filename: str, pattern: str) -> None:
    assert matches(filename, pattern) is True


@pytest.mark.parametrize(
    ("filename", "pattern"),
    [
        ("src/nested/file.ts", "src/*.ts"),
        ("src/file.js", "src/*.{ts,tsx}"),
        ("a12.txt", "a?.txt"),
        ("a.py", "[!abc].py"),
        ("migrations_old/x.sql", "**/migrations/**"),
        ("Package.json", "**/package.json"),
        ("src/auth", "**/auth/**/x"),
    ],
)
def test_matches_negative(filename: str, pattern: str) -> None:
    assert matches(filename, pattern) is False


def test_trailing_globstar_matches_directory_itself() -> None:
    assert matches("vendor", "vendor/**") is True
    assert matches("vendor/lib/a.js", "vendor/**") is True
    assert matches("vendored/a.js", "vendor/**") is False


def test_malformed_pattern_matches_nothing() -> None:
    assert matches("[abc", "[abc") is False
    assert matches_any("src/app.py", ["[", "src/*.py"]) is True

    with pytest.raises(GlobError):
        compile_glob("src/[a-")


def test_single_alternative_brace_is_literal() -> None:
    assert matches("{x}.txt", "{x}.txt") is True
    assert matches("x.txt", "{x}.txt") is False


def test_empty_pattern_list_matches_nothing() -> None:
    assert matches_any("anything.py", []) is False
