"""Path-based risk classification of changed files."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from diff_signals.globbing import matches, matches_any
from diff_signals.models import (
    SEVERITY_RANK,
    ChangedFile,
    Severity,
    count_by_severity,
    is_severity,
)

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_CATEGORY = "custom"
DEFAULT_CUSTOM_SEVERITY: Severity = "medium"
DEFAULT_CUSTOM_MESSAGE = "Custom risk pattern"

CATEGORY_ICONS = {
    "security": "🔒",
    "database": "🗄️",
    "config": "⚙️",
    "infrastructure": "🏗️",
    "dependencies": "📦",
    "api": "🌐",
    "build": "🔧",
    "ci": "🔄",
    "custom": "🏷️",
}
FALLBACK_CATEGORY_ICON = "📋"


@dataclass(frozen=True, slots=True)
class RiskRule:
    """A glob pattern tagged with a category and severity."""

    pattern: str
    category: str
    severity: Severity
    message: str

    @classmethod
    def from_custom(cls, value: str | Mapping[str, Any]) -> RiskRule | None:
        """Normalize a user-supplied rule; returns None when it has no usable pattern."""
        if isinstance(value, str):
            return cls(
                pattern=value,
                category=DEFAULT_CUSTOM_CATEGORY,
                severity=DEFAULT_CUSTOM_SEVERITY,
                message=DEFAULT_CUSTOM_MESSAGE,
            )
        if not isinstance(value, Mapping) or not isinstance(value.get("pattern"), str):
            logger.debug("Skipping custom risk rule without a string pattern: %r", value)
            return None

        severity = str(value.get("severity") or DEFAULT_CUSTOM_SEVERITY).lower()
        if not is_severity(severity):
            logger.debug(
                "Unknown severity %r for custom pattern %r; using %s",
                severity,
                value["pattern"],
                DEFAULT_CUSTOM_SEVERITY,
            )
            severity = DEFAULT_CUSTOM_SEVERITY
        return cls(
            pattern=value["pattern"],
            category=str(value.get("category") or DEFAULT_CUSTOM_CATEGORY),
            severity=severity,
            message=str(value.get("message") or DEFAULT_CUSTOM_MESSAGE),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "category": self.category,
            "severity": self.severity,
            "message": self.message,
        }


_DEFAULT_RULE_TABLE: list[tuple[str, str, Severity, str]] = [
    # Secrets and access control.
    ("**/.env*", "security", "high", "Environment configuration file"),
    ("**/secrets*", "security", "high", "Secrets file"),
    ("**/*credentials*", "security", "high", "Credentials file"),
    ("**/*password*", "security", "high", "Password-related file"),
    ("**/*.pem", "security", "high", "Private key file"),
    ("**/*.key", "security", "high", "Key file"),
    ("**/auth/**", "security", "high", "Authentication code"),
    ("**/security/**", "security", "high", "Security module"),
    # Database.
    ("**/migrations/**", "database", "high", "Database migration"),
    ("**/migrate/**", "database", "high", "Database migration"),
    ("**/*.sql", "database", "medium", "SQL file"),
    ("**/schema*", "database", "high", "Database schema"),
    # Configuration.
    ("**/config/**", "config", "medium", "Configuration file"),
    ("**/*.config.js", "config", "medium", "Configuration file"),
    ("**/*.config.ts", "config", "medium", "Configuration file"),
    ("**/settings.*", "config", "medium", "Settings file"),
    ("**/docker-compose*", "config", "medium", "Docker Compose configuration"),
    ("**/Dockerfile*", "config", "medium", "Dockerfile"),
    ("**/nginx*", "config", "medium", "Nginx configuration"),
    ("**/.github/workflows/**", "ci", "medium", "CI/CD workflow"),
    # Infrastructure as code.
    ("**/*.tf", "infrastructure", "high", "Terraform configuration"),
    ("**/*.tfvars", "infrastructure", "high", "Terraform variables"),
    ("**/cloudformation/**", "infrastructure", "high", "CloudFormation template"),
    ("**/k8s/**", "infrastructure", "high", "Kubernetes configuration"),
    ("**/kubernetes/**", "infrastructure", "high", "Kubernetes configuration"),
    ("**/helm/**", "infrastructure", "high", "Helm chart"),
    # Dependencies.
    ("**/package.json", "dependencies", "medium", "Node.js dependencies"),
    ("**/package-lock.json", "dependencies", "low", "Node.js lockfile"),
    ("**/yarn.lock", "dependencies", "low", "Yarn lockfile"),
    ("**/requirements.txt", "dependencies", "medium", "Python dependencies"),
    ("**/Gemfile", "dependencies", "medium", "Ruby dependencies"),
    ("**/go.mod", "dependencies", "medium", "Go dependencies"),
    ("**/Cargo.toml", "dependencies", "medium", "Rust dependencies"),
    # API surface.
    ("**/routes/**", "api", "medium", "API routes"),
    ("**/api/**", "api", "medium", "API code"),
    ("**/middleware/**", "api", "medium", "Middleware"),
    # Build and delivery.
    ("**/webpack*", "build", "medium", "Webpack configuration"),
    ("**/rollup*", "build", "medium", "Rollup configuration"),
    ("**/vite.config*", "build", "medium", "Vite configuration"),
    ("**/.gitlab-ci*", "ci", "medium", "GitLab CI configuration"),
    ("**/Jenkinsfile", "ci", "medium", "Jenkins pipeline"),
]

DEFAULT_RISK_RULES: tuple[RiskRule, ...] = tuple(
    RiskRule(pattern=pattern, category=category, severity=severity, message=message)
    for pattern, category, severity, message in _DEFAULT_RULE_TABLE
)


@dataclass(frozen=True, slots=True)
class RiskFinding:
    """Merged outcome of every rule that matched one file."""

    filename: str
    status: str
    additions: int
    deletions: int
    severity: Severity
    categories: tuple[str, ...]
    messages: tuple[str, ...]
    patterns: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "status": self.status,
            "additions": self.additions,
            "deletions": self.deletions,
            "severity": self.severity,
            "categories": list(self.categories),
            "messages": list(self.messages),
            "patterns": list(self.patterns),
        }


@dataclass(slots=True)
class RiskReport:
    """Risk classification for one analysis run."""

    files: list[RiskFinding] = field(default_factory=list)
    high_risk_count: int = 0
    medium_risk_count: int = 0
    low_risk_count: int = 0
    by_category: dict[str, list[str]] = field(default_factory=dict)
    details: list[str] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, Any]:
        return {
            "total_risk_files": len(self.files),
            "high_risk": self.high_risk_count,
            "medium_risk": self.medium_risk_count,
            "low_risk": self.low_risk_count,
            "categories": list(self.by_category),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [finding.to_dict() for finding in self.files],
            "high_risk_count": self.high_risk_count,
            "medium_risk_count": self.medium_risk_count,
            "low_risk_count": self.low_risk_count,
            "by_category": {key: list(value) for key, value in self.by_category.items()},
            "details": list(self.details),
            "summary": self.summary,
        }


def build_risk_rules(
    custom_patterns: Iterable[RiskRule | str | Mapping[str, Any]] | None = None,
) -> list[RiskRule]:
    """Return the default rules followed by the normalized custom rules."""
    rules = list(DEFAULT_RISK_RULES)
    for item in custom_patterns or []:
        rule = item if isinstance(item, RiskRule) else RiskRule.from_custom(item)
        if rule is not None:
            rules.append(rule)
    return rules


def classify(
    files: Iterable[ChangedFile],
    rules: Sequence[RiskRule] | None = None,
    ignore_patterns: Sequence[str] | None = None,
) -> RiskReport:
    """Classify changed files against ordered risk rules.

    Every matching rule contributes its category, message and pattern; the
    file takes the highest severity among them.
    """
    active_rules = DEFAULT_RISK_RULES if rules is None else tuple(rules)
    ignored = tuple(ignore_patterns or ())

    findings: list[RiskFinding] = []
    by_category: dict[str, list[str]] = {}

    for changed in files:
        if matches_any(changed.filename, ignored):
            logger.debug("Skipping ignored file %s", changed.filename)
            continue

        matched = [rule for rule in active_rules if matches(changed.filename, rule.pattern)]
        if not matched:
            continue

        finding = RiskFinding(
            filename=changed.filename,
            status=changed.status,
            additions=changed.additions,
            deletions=changed.deletions,
            severity=highest_severity(rule.severity for rule in matched),
            categories=tuple(_dedupe(rule.category for rule in matched)),
            messages=tuple(rule.message for rule in matched),
            patterns=tuple(rule.pattern for rule in matched),
        )
        findings.append(finding)
        for category in finding.categories:
            by_category.setdefault(category, []).append(changed.filename)

    counts = count_by_severity(finding.severity for finding in findings)
    return RiskReport(
        files=findings,
        high_risk_count=counts["high"],
        medium_risk_count=counts["medium"],
        low_risk_count=counts["low"],
        by_category=by_category,
        details=_risk_details(counts, by_category),
    )


def highest_severity(severities: Iterable[Severity]) -> Severity:
    """Fold severities to the highest one; an empty input yields ``low``."""
    highest: Severity = "low"
    for severity in severities:
        if SEVERITY_RANK[severity] > SEVERITY_RANK[highest]:
            highest = severity
    return highest


def category_icon(category: str) -> str:
    return CATEGORY_ICONS.get(category, FALLBACK_CATEGORY_ICON)


def _risk_details(counts: dict[str, int], by_category: dict[str, list[str]]) -> list[str]:
    details: list[str] = []
    if counts["high"]:
        details.append(f"🚨 {counts['high']} high-risk file(s) require careful review")
    if counts["medium"]:
        details.append(f"⚠️ {counts['medium']} medium-risk file(s) detected")
    if counts["low"]:
        details.append(f"ℹ️ {counts['low']} low-risk file(s) noted")

    for category, filenames in by_category.items():
        details.append(f"{category_icon(category)} {category}: {len(filenames)} file(s)")
    return details


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    output: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        output.append(item)
    return output
