"""Unified diff parsing focused on added lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from re import Match, compile
from typing import Any

from diff_signals.models import ChangedFile

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)
GIT_HEADER_RE = compile(r'^diff --git "?a/(?P<old>.+?)"? "?b/(?P<new>.+?)"?$')

DEV_NULL = "/dev/null"


@dataclass(slots=True)
class FileSection:
    """Lines of one file section collected from a unified diff."""

    header_old_path: str | None = None
    header_new_path: str | None = None
    old_path: str | None = None
    new_path: str | None = None
    added: list[str] = field(default_factory=list)
    removed: int = 0
    hunks: int = 0
    new_file: bool = False
    deleted_file: bool = False

    @property
    def path(self) -> str | None:
        """Post-change path, falling back to the pre-change path for deletions."""
        candidates = (self.new_path, self.header_new_path, self.old_path, self.header_old_path)
        for candidate in candidates:
            if candidate and candidate != DEV_NULL:
                return candidate
        return None

    @property
    def status(self) -> str:
        if self.new_file or self.old_path == DEV_NULL:
            return "added"
        if self.deleted_file or self.new_path == DEV_NULL:
            return "removed"
        old = self.old_path or self.header_old_path
        new = self.new_path or self.header_new_path
        if old and new and old != new:
            return "renamed"
        return "modified"


def parse_added_lines(diff_text: Any) -> dict[str, str]:
    """Map each file in ``diff_text`` to its newline-joined added lines.

    Empty, missing or non-string input yields an empty mapping. Sections
    without a usable path or without any hunk are skipped.
    """
    added: dict[str, str] = {}
    for section in split_file_sections(diff_text):
        path = section.path
        if path is None:
            logger.debug("Skipping diff section without a file path")
            continue
        if section.hunks == 0:
            logger.debug("Skipping %s: no hunks in diff section", path)
            continue
        text = "\n".join(section.added)
        if path in added:
            added[path] = f"{added[path]}\n{text}"
        else:
            added[path] = text
    return added


def summarize_changed_files(diff_text: Any) -> list[ChangedFile]:
    """Derive per-file status and line counts from raw diff text."""
    totals: dict[str, ChangedFile] = {}
    for section in split_file_sections(diff_text):
        path = section.path
        if path is None:
            continue
        previous = totals.get(path)
        totals[path] = ChangedFile(
            filename=path,
            status=previous.status if previous is not None else section.status,
            additions=len(section.added) + (previous.additions if previous else 0),
            deletions=section.removed + (previous.deletions if previous else 0),
        )
    return list(totals.values())


def split_file_sections(diff_text: Any) -> list[FileSection]:
    """Split unified diff text into file sections.

    Hunk line counts are tracked so that removed or added content which looks
    like a ``---``/``+++`` header is still read as content.
    """
    if not isinstance(diff_text, str) or not diff_text:
        return []

    sections: list[FileSection] = []
    current: FileSection | None = None
    old_remaining: int | None = None
    new_remaining: int | None = None
    in_hunk = False

    def start_section() -> FileSection:
        nonlocal in_hunk, old_remaining, new_remaining
        section = FileSection()
        sections.append(section)
        in_hunk = False
        old_remaining = new_remaining = None
        return section

    for raw_line in diff_text.splitlines():
        body_expected = in_hunk and _positive(old_remaining, new_remaining)

        if raw_line.startswith("diff --git "):
            current = start_section()
            _apply_git_header(current, raw_line)
            continue

        if raw_line.startswith("@@"):
            if current is None:
                current = start_section()
            parsed = _parse_hunk_header(raw_line)
            in_hunk = True
            current.hunks += 1
            if parsed is None:
                logger.debug("Unparseable hunk header: %s", raw_line)
                old_remaining = new_remaining = None
            else:
                old_remaining, new_remaining = parsed
            continue

        if not body_expected and raw_line.startswith("--- "):
            if current is None or current.hunks:
                current = start_section()
            current.old_path = _parse_path(raw_line[4:])
            in_hunk = False
            continue

        if not body_expected and raw_line.startswith("+++ "):
            if current is None:
                current = start_section()
            current.new_path = _parse_path(raw_line[4:])
            in_hunk = False
            continue

        if current is None:
            continue

        if not in_hunk:
            if raw_line.startswith("new file mode"):
                current.new_file = True
            elif raw_line.startswith("deleted file mode"):
                current.deleted_file = True
            continue

        if raw_line.startswith("+"):
            current.added.append(raw_line[1:])
            new_remaining = _dec(new_remaining)
        elif raw_line.startswith("-"):
            current.removed += 1
            old_remaining = _dec(old_remaining)
        elif raw_line.startswith(" ") or raw_line == "":
            old_remaining = _dec(old_remaining)
            new_remaining = _dec(new_remaining)

    return sections


def _apply_git_header(section: FileSection, line: str) -> None:
    match = GIT_HEADER_RE.match(line)
    if match is None:
        return
    section.header_old_path = match.group("old")
    section.header_new_path = match.group("new")


def _parse_path(value: str) -> str:
    token = value.strip().split("\t", 1)[0].strip('"')
    if token.startswith("a/") or token.startswith("b/"):
        return token[2:]
    return token


def _parse_hunk_header(header: str) -> tuple[int, int] | None:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        return None
    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1
    return (old_count, new_count)


def _positive(old_remaining: int | None, new_remaining: int | None) -> bool:
    if old_remaining is None or new_remaining is None:
        return True
    return old_remaining > 0 or new_remaining > 0


def _dec(value: int | None) -> int | None:
    if value is None:
        return None
    return max(0, value - 1)
