"""Shared input models and severity ordering."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

Severity = Literal["high", "medium", "low"]

SEVERITIES: tuple[Severity, ...] = ("high", "medium", "low")
SEVERITY_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """A file touched by the change set, as reported by source control."""

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_mapping(cls, value: Mapping[str, Any]) -> ChangedFile:
        """Build from an API file object; unknown keys are ignored."""
        filename = value.get("filename")
        if not isinstance(filename, str) or not filename:
            raise ValueError("changed file entry requires a non-empty 'filename'")
        status = value.get("status", "modified")
        if not isinstance(status, str):
            raise ValueError(f"{filename}: status must be a string")
        return cls(
            filename=filename,
            status=status,
            additions=_as_count(value.get("additions"), f"{filename}: additions"),
            deletions=_as_count(value.get("deletions"), f"{filename}: deletions"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
        }


def changed_files_from_json(items: Any) -> list[ChangedFile]:
    """Convert a decoded JSON array of file objects into ``ChangedFile`` values."""
    if not isinstance(items, list):
        raise ValueError("changed files must be a JSON array of objects")
    files: list[ChangedFile] = []
    for item in items:
        if not isinstance(item, Mapping):
            raise ValueError("changed files must be a JSON array of objects")
        files.append(ChangedFile.from_mapping(item))
    return files


def is_severity(value: Any) -> bool:
    return isinstance(value, str) and value in SEVERITY_RANK


def count_by_severity(severities: Iterable[str]) -> dict[str, int]:
    """Count severities, always reporting every level."""
    counts = {severity: 0 for severity in SEVERITIES}
    for severity in severities:
        counts[severity] += 1
    return counts


def _as_count(raw: Any, field_name: str) -> int:
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    if raw < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return raw
