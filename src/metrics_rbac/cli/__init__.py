"""Command line interface for metrics access review."""

from __future__ import annotations

from metrics_rbac.cli.main import cli, main

__all__: list[str] = ["cli", "main"]
