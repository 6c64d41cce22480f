"""Analysis orchestration over changed files and diff text."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from diff_signals.analyzers.complexity import THRESHOLDS, estimate, is_code_file
from diff_signals.analyzers.risk import RiskReport, RiskRule, build_risk_rules, classify
from diff_signals.analyzers.smells import detect, smell_icon
from diff_signals.diff_parser import parse_added_lines
from diff_signals.globbing import matches_any
from diff_signals.models import ChangedFile, Severity

logger = logging.getLogger(__name__)

WarningType = Literal["size", "complexity", "nesting", "formatting"]


@dataclass(frozen=True, slots=True)
class AnalysisWarning:
    """A threshold violation for one file."""

    type: WarningType
    severity: Severity
    filename: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "filename": self.filename,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class CodeSmell:
    filename: str
    type: str
    count: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "type": self.type,
            "count": self.count,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class LargeFile:
    filename: str
    additions: int
    deletions: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "additions": self.additions,
            "deletions": self.deletions,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ComplexFile:
    filename: str
    complexity: int
    language: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "complexity": self.complexity,
            "language": self.language,
            "message": self.message,
        }


@dataclass(slots=True)
class ComplexityStats:
    """Size statistics over the analyzed code files."""

    total_additions: int = 0
    total_deletions: int = 0
    largest_file: tuple[str, int] | None = None
    average_file_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        largest = None
        if self.largest_file is not None:
            largest = {"filename": self.largest_file[0], "additions": self.largest_file[1]}
        return {
            "total_additions": self.total_additions,
            "total_deletions": self.total_deletions,
            "largest_file": largest,
            "average_file_size": self.average_file_size,
        }


@dataclass(slots=True)
class ComplexityReport:
    """Size, complexity and smell signals for one analysis run."""

    warnings: list[AnalysisWarning] = field(default_factory=list)
    large_files: list[LargeFile] = field(default_factory=list)
    complex_files: list[ComplexFile] = field(default_factory=list)
    code_smells: list[CodeSmell] = field(default_factory=list)
    stats: ComplexityStats = field(default_factory=ComplexityStats)
    details: list[str] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total_warnings": len(self.warnings),
            "large_files": len(self.large_files),
            "complex_files": len(self.complex_files),
            "code_smells": len(self.code_smells),
            "total_additions": self.stats.total_additions,
            "total_deletions": self.stats.total_deletions,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "warnings": [item.to_dict() for item in self.warnings],
            "large_files": [item.to_dict() for item in self.large_files],
            "complex_files": [item.to_dict() for item in self.complex_files],
            "code_smells": [item.to_dict() for item in self.code_smells],
            "stats": self.stats.to_dict(),
            "details": list(self.details),
            "summary": self.summary,
        }


@dataclass(slots=True)
class AnalysisResult:
    """Risk and complexity reports computed from the same inputs."""

    risk: RiskReport
    complexity: ComplexityReport
    files_analyzed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk": self.risk.to_dict(),
            "complexity": self.complexity.to_dict(),
        }


def analyze_pull_request(
    files: Sequence[ChangedFile],
    diff_text: str | None,
    *,
    custom_patterns: Iterable[RiskRule | str | Mapping[str, Any]] | None = None,
    ignore_patterns: Sequence[str] | None = None,
) -> AnalysisResult:
    """Run risk classification and complexity analysis.

    The two analyses share no state; callers may equally run them apart.
    """
    rules = build_risk_rules(custom_patterns)
    return AnalysisResult(
        risk=classify(files, rules=rules, ignore_patterns=ignore_patterns),
        complexity=analyze_complexity(files, diff_text, ignore_patterns=ignore_patterns),
        files_analyzed=len(files),
    )


def analyze_complexity(
    files: Iterable[ChangedFile],
    diff_text: str | None,
    ignore_patterns: Sequence[str] | None = None,
) -> ComplexityReport:
    """Flag large, complex, deeply nested or smelly additions to code files."""
    ignored = tuple(ignore_patterns or ())
    added_by_file = parse_added_lines(diff_text)
    report = ComplexityReport()
    analyzed: list[ChangedFile] = []

    for changed in files:
        filename = changed.filename
        if matches_any(filename, ignored) or not is_code_file(filename):
            continue
        analyzed.append(changed)

        if changed.additions > THRESHOLDS.large_additions:
            report.large_files.append(
                LargeFile(
                    filename=filename,
                    additions=changed.additions,
                    deletions=changed.deletions,
                    message=f"Large file change: +{changed.additions} lines",
                )
            )
            report.warnings.append(
                AnalysisWarning(
                    type="size",
                    severity="medium",
                    filename=filename,
                    message=(
                        f"Adding {changed.additions} lines to single file. "
                        "Consider breaking into smaller changes."
                    ),
                )
            )

        added_text = added_by_file.get(filename)
        if not added_text:
            logger.debug("No added text for %s; skipping complexity checks", filename)
            continue

        result = estimate(filename, added_text)
        if result.complexity > THRESHOLDS.max_cyclomatic_complexity:
            report.complex_files.append(
                ComplexFile(
                    filename=filename,
                    complexity=result.complexity,
                    language=result.language,
                    message=f"High cyclomatic complexity: {result.complexity}",
                )
            )
            report.warnings.append(
                AnalysisWarning(
                    type="complexity",
                    severity="high",
                    filename=filename,
                    message=(
                        f"Estimated cyclomatic complexity ({result.complexity}) exceeds "
                        f"threshold ({THRESHOLDS.max_cyclomatic_complexity})"
                    ),
                )
            )

        if result.max_nesting > THRESHOLDS.max_nesting_depth:
            report.warnings.append(
                AnalysisWarning(
                    type="nesting",
                    severity="medium",
                    filename=filename,
                    message=(
                        f"Deep nesting detected ({result.max_nesting} levels). "
                        "Consider refactoring."
                    ),
                )
            )

        for smell in detect(added_text):
            report.code_smells.append(
                CodeSmell(
                    filename=filename,
                    type=smell.type,
                    count=smell.count,
                    message=smell.message,
                )
            )

        if result.long_lines > 0:
            report.warnings.append(
                AnalysisWarning(
                    type="formatting",
                    severity="low",
                    filename=filename,
                    message=(
                        f"{result.long_lines} line(s) exceed "
                        f"{THRESHOLDS.max_line_length} characters"
                    ),
                )
            )

    report.stats = _file_stats(analyzed)
    report.details = _complexity_details(report)
    return report


def _file_stats(analyzed: list[ChangedFile]) -> ComplexityStats:
    stats = ComplexityStats(
        total_additions=sum(item.additions for item in analyzed),
        total_deletions=sum(item.deletions for item in analyzed),
    )
    if analyzed:
        stats.average_file_size = _round_half_up(stats.total_additions / len(analyzed))
        largest = max(analyzed, key=lambda item: item.additions)
        stats.largest_file = (largest.filename, largest.additions)
    return stats


def _complexity_details(report: ComplexityReport) -> list[str]:
    details: list[str] = []
    if report.large_files:
        details.append(
            f"📏 {len(report.large_files)} file(s) with large changes "
            f"(>{THRESHOLDS.large_additions} lines)"
        )
    if report.complex_files:
        details.append(f"🔀 {len(report.complex_files)} file(s) with high complexity")

    occurrences: dict[str, int] = {}
    for smell in report.code_smells:
        occurrences[smell.type] = occurrences.get(smell.type, 0) + smell.count
    for smell_type, count in occurrences.items():
        details.append(f"{smell_icon(smell_type)} {count} {smell_type} code smell(s) detected")

    if not report.warnings and not report.code_smells:
        details.append("✅ No significant complexity issues detected")
    return details


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
