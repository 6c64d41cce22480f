"""Configuration loading for diff-signals."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from diff_signals.analyzers.risk import (
    DEFAULT_CUSTOM_CATEGORY,
    DEFAULT_CUSTOM_MESSAGE,
    DEFAULT_CUSTOM_SEVERITY,
    RiskRule,
)
from diff_signals.models import SEVERITY_RANK

CONFIG_FILENAMES = (".diff-signals.toml", "diff-signals.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("diff_signals", "diff-signals")
DEFAULT_MAX_FILES = 100


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on_risk: bool = False
    max_files: int = DEFAULT_MAX_FILES
    ignore: list[str] = field(default_factory=list)
    risk_patterns: list[RiskRule] = field(default_factory=list)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on_risk": self.fail_on_risk,
            "max_files": self.max_files,
            "ignore": list(self.ignore),
            "risk": {"patterns": [rule.to_dict() for rule in self.risk_patterns]},
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            "fail_on_risk = false",
            f"max_files = {DEFAULT_MAX_FILES}",
            'ignore = ["**/vendor/**", "**/*.min.js"]',
            "",
            "[[risk.patterns]]",
            'pattern = "**/payments/**"',
            'category = "financial"',
            'severity = "high"',
            'message = "Payment code"',
            "",
            "[[risk.patterns]]",
            'pattern = "**/feature_flags/**"',
            'category = "rollout"',
            'severity = "low"',
            'message = "Feature flag definitions"',
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    tool_section = _find_pyproject_tool_section(loaded)
    if source_path.name == PYPROJECT_FILENAME:
        return tool_section if tool_section is not None else {}
    return tool_section if tool_section is not None else loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    risk_mapping = _as_table(mapping.get("risk"), "risk")

    format_value = str(mapping.get("format", "human")).lower()
    if format_value not in {"human", "json"}:
        format_value = "human"

    max_files = _as_int(mapping.get("max_files", DEFAULT_MAX_FILES), "max_files")
    if max_files <= 0:
        raise ValueError("max_files must be > 0")

    return AppConfig(
        format=format_value,
        fail_on_risk=_as_bool(mapping.get("fail_on_risk", False), "fail_on_risk"),
        max_files=max_files,
        ignore=_as_str_list(mapping.get("ignore"), "ignore"),
        risk_patterns=_parse_risk_patterns(risk_mapping.get("patterns"), "risk.patterns"),
        source=source,
    )


def _parse_risk_patterns(value: Any, field_name: str) -> list[RiskRule]:
    parsed: list[RiskRule] = []
    for item in _as_table_list(value, field_name):
        severity = _as_choice(
            item.get("severity", DEFAULT_CUSTOM_SEVERITY),
            set(SEVERITY_RANK),
            f"{field_name}.severity",
        )
        parsed.append(
            RiskRule(
                pattern=_as_str(item.get("pattern"), f"{field_name}.pattern"),
                category=_as_str(
                    item.get("category", DEFAULT_CUSTOM_CATEGORY), f"{field_name}.category"
                ),
                severity=severity,
                message=_as_str(
                    item.get("message", DEFAULT_CUSTOM_MESSAGE), f"{field_name}.message"
                ),
            )
        )
    return parsed


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_table_list(value: Any, field_name: str) -> list[dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of tables")
    output: list[dict[str, Any]] = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"{field_name} must be a list of tables")
        output.append(item)
    return output


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{field_name} must be a list of strings")
    return list(value)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_int(raw: Any, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return raw


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
