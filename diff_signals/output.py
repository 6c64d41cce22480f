"""Output rendering."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import click

from diff_signals import __version__
from diff_signals.analysis import AnalysisResult
from diff_signals.analyzers.risk import RiskReport

_SEVERITY_COLORS = {"high": "red", "medium": "yellow", "low": "green"}


def render_human(result: AnalysisResult) -> str:
    """Render a compact colorized summary."""
    risk = result.risk
    complexity = result.complexity
    headline_severity = _headline_severity(risk)
    lines: list[str] = [
        click.style(
            f"Risk: {risk.high_risk_count} high, {risk.medium_risk_count} medium, "
            f"{risk.low_risk_count} low ({len(risk.files)} of "
            f"{result.files_analyzed} files flagged)",
            fg=_SEVERITY_COLORS.get(headline_severity, "green"),
            bold=True,
        )
    ]
    lines.extend(f"  {detail}" for detail in risk.details)

    if risk.files:
        lines.append(click.style("Risky files:", bold=True))
        for finding in risk.files:
            severity = click.style(
                finding.severity.upper(), fg=_SEVERITY_COLORS[finding.severity]
            )
            lines.append(
                f"- {finding.filename} [{severity}] "
                f"{', '.join(finding.categories)}: {'; '.join(finding.messages)}"
            )

    lines.append(click.style("Complexity:", bold=True))
    lines.extend(f"  {detail}" for detail in complexity.details)

    if complexity.warnings:
        lines.append(click.style("Warnings:", bold=True))
        for warning in complexity.warnings:
            lines.append(
                f"- [{warning.severity}] {warning.type} {warning.filename}: {warning.message}"
            )

    if complexity.code_smells:
        lines.append(click.style("Code smells:", bold=True))
        for smell in complexity.code_smells:
            lines.append(f"- {smell.filename}: {smell.count}x {smell.type} ({smell.message})")

    stats = complexity.stats
    if stats.largest_file is not None:
        filename, additions = stats.largest_file
        lines.append(
            f"Totals: +{stats.total_additions}/-{stats.total_deletions}, "
            f"average +{stats.average_file_size} per code file, largest {filename} "
            f"(+{additions})"
        )
    return "\n".join(lines)


def render_json(
    result: AnalysisResult,
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(result, input_source=input_source, base=base, head=head)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    result: AnalysisResult,
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    meta: dict[str, Any] = {
        "generated_at": datetime.now(tz=UTC)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        "base": base,
        "head": head,
        "input_source": input_source,
        "files_analyzed": result.files_analyzed,
        "version": __version__,
    }
    payload = result.to_dict()
    payload["meta"] = meta
    return payload


def _headline_severity(risk: RiskReport) -> str:
    if risk.high_risk_count:
        return "high"
    if risk.medium_risk_count:
        return "medium"
    return "low"
