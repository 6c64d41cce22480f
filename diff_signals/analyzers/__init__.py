"""Analyzers package."""

from diff_signals.analyzers.complexity import THRESHOLDS, ComplexityEstimate, estimate
from diff_signals.analyzers.risk import (
    DEFAULT_RISK_RULES,
    RiskFinding,
    RiskReport,
    RiskRule,
    build_risk_rules,
    classify,
    highest_severity,
)
from diff_signals.analyzers.smells import SMELL_RULES, SmellMatch, detect

__all__ = [
    "DEFAULT_RISK_RULES",
    "SMELL_RULES",
    "THRESHOLDS",
    "ComplexityEstimate",
    "RiskFinding",
    "RiskReport",
    "RiskRule",
    "SmellMatch",
    "build_risk_rules",
    "classify",
    "detect",
    "estimate",
    "highest_severity",
]
