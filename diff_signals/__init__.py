"""Heuristic risk and complexity signals for pull-request diffs."""

__version__ = "0.3.0"
