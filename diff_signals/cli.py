"""CLI entrypoint for diff-signals."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from diff_signals import __version__
from diff_signals.analysis import analyze_pull_request
from diff_signals.analyzers.risk import DEFAULT_RISK_RULES, build_risk_rules
from diff_signals.config import AppConfig, default_config_template, load_app_config
from diff_signals.diff_parser import summarize_changed_files
from diff_signals.git import GitError, get_pull_request_diff, get_working_tree_diff
from diff_signals.models import ChangedFile, changed_files_from_json
from diff_signals.output import render_human, render_json

app = typer.Typer(
    name="diff-signals",
    no_args_is_help=True,
    help="Flag risky files, complex additions and code smells in pull-request diffs.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug details to stderr.")
    ] = False,
) -> None:
    """Root command callback."""
    _ = version
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command("analyze")
def analyze_command(
    diff_file: Annotated[Path | None, typer.Option(help="Path to unified diff file.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read unified diff from stdin.")] = False,
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    base: Annotated[str | None, typer.Option(help="Base git revision.")] = None,
    head: Annotated[str | None, typer.Option(help="Head git revision.")] = None,
    files: Annotated[
        Path | None,
        typer.Option(help="JSON array of changed-file objects; derived from the diff if omitted."),
    ] = None,
    ignore: Annotated[list[str] | None, typer.Option(help="Ignore glob pattern.")] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on_risk: Annotated[
        bool | None,
        typer.Option(
            "--fail-on-risk/--no-fail-on-risk",
            help="Exit nonzero when any high-risk file is found.",
        ),
    ] = None,
    max_files: Annotated[
        int | None, typer.Option(help="Analyze at most this many changed files.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Analyze a diff for risky files, complexity and code smells."""
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")

    if (base is None) ^ (head is None):
        raise typer.BadParameter("Provide both --base and --head together.")

    file_limit = max_files if max_files is not None else app_config.max_files
    if file_limit <= 0:
        raise typer.BadParameter("max-files must be > 0", param_hint="--max-files")

    try:
        diff_text, input_source = _resolve_diff_input(
            diff_file=diff_file,
            stdin=stdin,
            repo=repo,
            base=base,
            head=head,
        )
    except GitError as exc:
        raise typer.BadParameter(str(exc)) from exc

    changed_files = _resolve_changed_files(files, diff_text)[:file_limit]
    result = analyze_pull_request(
        changed_files,
        diff_text,
        custom_patterns=app_config.risk_patterns,
        ignore_patterns=ignore if ignore is not None else app_config.ignore,
    )

    if output_format == "json":
        typer.echo(render_json(result, input_source=input_source, base=base, head=head))
    else:
        typer.echo(render_human(result))

    should_fail = fail_on_risk if fail_on_risk is not None else app_config.fail_on_risk
    if should_fail and result.risk.high_risk_count > 0:
        typer.echo(
            f"Found {result.risk.high_risk_count} high-risk file(s). Review required.",
            err=True,
        )
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the risk rules in evaluation order."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    rules = build_risk_rules(app_config.risk_patterns)
    default_count = len(DEFAULT_RISK_RULES)

    if output_format == "json":
        payload = {
            "rules": [
                {**rule.to_dict(), "source": "default" if index < default_count else "custom"}
                for index, rule in enumerate(rules)
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Risk rules (evaluated in order, highest severity wins):"]
    for index, rule in enumerate(rules):
        origin = "" if index < default_count else " (custom)"
        lines.append(
            f"- {rule.pattern} [{rule.severity}] {rule.category} - {rule.message}{origin}"
        )
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(repo, config_file)
    payload = app_config.to_dict()

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_on_risk: {payload['fail_on_risk']}",
        f"- max_files: {payload['max_files']}",
        f"- ignore: {payload['ignore']}",
        f"- custom risk patterns: {len(app_config.risk_patterns)}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-signals.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _resolve_diff_input(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    base: str | None,
    head: str | None,
) -> tuple[str, str]:
    if diff_file is not None:
        return (diff_file.read_text(encoding="utf-8"), f"diff_file:{diff_file}")

    if stdin:
        return (sys.stdin.read(), "stdin")

    if base is not None and head is not None:
        return (get_pull_request_diff(repo, base, head), "git_range")

    return (get_working_tree_diff(repo), "git_working_tree")


def _resolve_changed_files(files_path: Path | None, diff_text: str) -> list[ChangedFile]:
    if files_path is None:
        return summarize_changed_files(diff_text)
    try:
        return changed_files_from_json(json.loads(files_path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--files") from exc


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
