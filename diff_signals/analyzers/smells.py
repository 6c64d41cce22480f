"""Regex-based code-smell detection over added text."""

from __future__ import annotations

from dataclasses import dataclass
from re import IGNORECASE, Pattern, compile

SMELL_ICONS = {
    "todo": "📝",
    "debug": "🐛",
    "test": "🧪",
    "lint": "🔇",
    "security": "🔐",
    "async": "⏳",
}
FALLBACK_SMELL_ICON = "👃"


@dataclass(frozen=True, slots=True)
class SmellRule:
    """One catalogue entry."""

    type: str
    pattern: Pattern[str]
    message: str


@dataclass(frozen=True, slots=True)
class SmellMatch:
    """A smell rule that matched, with its occurrence count."""

    type: str
    count: int
    message: str


SMELL_RULES: tuple[SmellRule, ...] = (
    SmellRule(
        "todo",
        compile(r"\b(?:TODO|FIXME|HACK|XXX)\b", IGNORECASE),
        "Contains TODO/FIXME comments",
    ),
    SmellRule(
        "debug",
        compile(r"\bconsole\.(?:log|debug|info|warn|error)\b"),
        "Contains console statements",
    ),
    SmellRule("debug", compile(r"\bdebugger\b"), "Contains debugger statement"),
    SmellRule("debug", compile(r"\bprint\s*\("), "Contains print statements"),
    SmellRule(
        "test",
        compile(r"\.only\s*\("),
        "Contains .only() in tests (will skip other tests)",
    ),
    SmellRule(
        "lint",
        compile(r"eslint-disable|@ts-ignore|@ts-nocheck|\bnoqa\b|pylint:\s*disable"),
        "Contains lint disable comments",
    ),
    SmellRule(
        "security",
        compile(r"password\s*[:=]\s*['\"][^'\"]+['\"]", IGNORECASE),
        "Possible hardcoded password",
    ),
    SmellRule(
        "security",
        compile(r"api[_-]?key\s*[:=]\s*['\"][^'\"]+['\"]", IGNORECASE),
        "Possible hardcoded API key",
    ),
    SmellRule(
        "async",
        compile(r"\.forEach\(\s*async\b"),
        "Async operation in forEach (use for...of instead)",
    ),
)


def detect(added_text: str) -> list[SmellMatch]:
    """Run every catalogue rule; one result per rule that matched."""
    smells: list[SmellMatch] = []
    for rule in SMELL_RULES:
        count = sum(1 for _ in rule.pattern.finditer(added_text))
        if count:
            smells.append(SmellMatch(type=rule.type, count=count, message=rule.message))
    return smells


def smell_icon(smell_type: str) -> str:
    return SMELL_ICONS.get(smell_type, FALLBACK_SMELL_ICON)
