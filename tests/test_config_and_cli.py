"""Tests for config loading and the CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from diff_signals.cli import app
from diff_signals.config import load_app_config

runner = CliRunner()

RISKY_DIFF = "\n".join(
    [
        "diff --git a/.env b/.env",
        "--- a/.env",
        "+++ b/.env",
        "@@ -1 +1 @@",
        "-TOKEN=old",
        "+TOKEN=new",
        "diff --git a/src/app.js b/src/app.js",
        "--- a/src/app.js",
        "+++ b/src/app.js",
        "@@ -1 +1,2 @@",
        " const a = 1;",
        "+console.log(a);",
        "",
    ]
)


def test_load_app_config_prefers_dot_file_over_pyproject(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(["[tool.diff_signals]", 'format = "human"', "max_files = 5"]),
        encoding="utf-8",
    )
    (repo / ".diff-signals.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                "fail_on_risk = true",
                'ignore = ["vendor/**"]',
                "",
                "[[risk.patterns]]",
                'pattern = "**/payments/**"',
                'category = "financial"',
                'severity = "high"',
            ]
        ),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.format == "json"
    assert config.fail_on_risk is True
    assert config.max_files == 100
    assert config.ignore == ["vendor/**"]
    assert [rule.category for rule in config.risk_patterns] == ["financial"]
    assert config.risk_patterns[0].message == "Custom risk pattern"
    assert config.source == str(repo / ".diff-signals.toml")


def test_load_app_config_reads_pyproject_hyphenated_key(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "pyproject.toml").write_text(
        "\n".join(['[tool."diff-signals"]', "max_files = 7"]),
        encoding="utf-8",
    )

    config = load_app_config(repo)
    assert config.max_files == 7
    assert config.source == str(repo / "pyproject.toml")


def test_load_app_config_defaults_without_files(tmp_path: Path) -> None:
    config = load_app_config(tmp_path)

    assert config.format == "human"
    assert config.fail_on_risk is False
    assert config.source is None


@pytest.mark.parametrize(
    "content",
    [
        "max_files = 0",
        'ignore = "vendor/**"',
        '[[risk.patterns]]\npattern = "x/**"\nseverity = "critical"',
        "[[risk.patterns]]\ncategory = 'no-pattern'",
        "fail_on_risk = 'yes'",
    ],
)
def test_load_app_config_rejects_invalid_values(tmp_path: Path, content: str) -> None:
    (tmp_path / ".diff-signals.toml").write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        load_app_config(tmp_path)


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "analyze" in result.stdout
    assert "rules" in result.stdout
    assert "config-init" in result.stdout


def test_analyze_json_from_stdin(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["analyze", "--stdin", "--format", "json", "--repo", str(tmp_path)],
        input=RISKY_DIFF,
    )
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["risk"]["high_risk_count"] == 1
    assert payload["risk"]["files"][0]["filename"] == ".env"
    assert payload["complexity"]["code_smells"][0]["type"] == "debug"
    assert payload["meta"]["input_source"] == "stdin"
    assert payload["meta"]["files_analyzed"] == 2


def test_analyze_fail_on_risk_exits_nonzero(tmp_path: Path) -> None:
    diff_file = tmp_path / "change.diff"
    diff_file.write_text(RISKY_DIFF, encoding="utf-8")

    result = runner.invoke(
        app,
        ["analyze", "--diff-file", str(diff_file), "--fail-on-risk", "--repo", str(tmp_path)],
    )
    assert result.exit_code == 1
    assert "Risk: 1 high" in result.stdout


def test_analyze_ignore_and_files_json(tmp_path: Path) -> None:
    files_path = tmp_path / "files.json"
    files_path.write_text(
        json.dumps(
            [
                {"filename": "vendor/auth/x.js", "status": "added", "additions": 4},
                {"filename": "db/migrations/001.sql", "additions": 9, "deletions": None},
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        [
            "analyze",
            "--stdin",
            "--files",
            str(files_path),
            "--ignore",
            "vendor/**",
            "--format",
            "json",
            "--repo",
            str(tmp_path),
        ],
        input="",
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [item["filename"] for item in payload["risk"]["files"]] == ["db/migrations/001.sql"]
    assert payload["risk"]["by_category"] == {"database": ["db/migrations/001.sql"]}


def test_analyze_rejects_invalid_files_json(tmp_path: Path) -> None:
    files_path = tmp_path / "files.json"
    files_path.write_text(json.dumps([{"status": "added"}]), encoding="utf-8")

    result = runner.invoke(
        app,
        ["analyze", "--stdin", "--files", str(files_path), "--repo", str(tmp_path)],
        input="",
    )
    assert result.exit_code == 2


def test_analyze_requires_base_and_head_together(tmp_path: Path) -> None:
    result = runner.invoke(app, ["analyze", "--base", "main", "--repo", str(tmp_path)])
    assert result.exit_code == 2


def test_analyze_max_files_truncates(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        [
            "analyze",
            "--stdin",
            "--max-files",
            "1",
            "--format",
            "json",
            "--repo",
            str(tmp_path),
        ],
        input=RISKY_DIFF,
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["meta"]["files_analyzed"] == 1


def test_analyze_uses_config_custom_patterns(tmp_path: Path) -> None:
    (tmp_path / ".diff-signals.toml").write_text(
        "\n".join(
            [
                'format = "json"',
                "",
                "[[risk.patterns]]",
                'pattern = "src/**"',
                'category = "app"',
                'severity = "low"',
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["analyze", "--stdin", "--repo", str(tmp_path)], input=RISKY_DIFF)
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["risk"]["low_risk_count"] == 1
    assert "app" in payload["risk"]["by_category"]


def test_rules_command_json(tmp_path: Path) -> None:
    result = runner.invoke(app, ["rules", "--format", "json", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["rules"][0]["pattern"] == "**/.env*"
    assert {rule["source"] for rule in payload["rules"]} == {"default"}


def test_config_command_human(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    assert "- source: defaults" in result.stdout
    assert "- max_files: 100" in result.stdout


def test_config_init_writes_loadable_template(tmp_path: Path) -> None:
    out = tmp_path / ".diff-signals.toml"

    result = runner.invoke(app, ["config-init", "--out", str(out)])
    assert result.exit_code == 0
    config = load_app_config(tmp_path)
    assert [rule.category for rule in config.risk_patterns] == ["financial", "rollout"]

    again = runner.invoke(app, ["config-init", "--out", str(out)])
    assert again.exit_code == 2


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "0.3.0"
