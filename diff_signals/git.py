"""Git subprocess helpers for obtaining diff input."""

from __future__ import annotations

import logging
from pathlib import Path
from subprocess import CalledProcessError, run

logger = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when git command execution fails."""


def get_working_tree_diff(repo: Path) -> str:
    """Return uncommitted changes against HEAD."""
    return _run_git(repo, ["diff", "--no-color", "--no-ext-diff", "HEAD"])


def get_pull_request_diff(repo: Path, base: str, head: str) -> str:
    """Return what ``head`` adds on top of its merge base with ``base``."""
    return _run_git(repo, ["diff", "--no-color", "--no-ext-diff", f"{base}...{head}"])


def _run_git(repo: Path, args: list[str]) -> str:
    logger.debug("Running git %s in %s", " ".join(args), repo)
    try:
        completed = run(
            ["git", *args],
            cwd=repo,
            check=True,
            capture_output=True,
            text=True,
        )
    except (CalledProcessError, FileNotFoundError) as exc:
        stderr = (getattr(exc, "stderr", None) or "").strip()
        raise GitError(stderr or f"git {' '.join(args)} failed") from exc

    return completed.stdout
