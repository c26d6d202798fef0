"""Exit codes and stderr helpers shared by the CLI commands.

Command results are the only thing written to stdout, so ``-o json`` output
can be piped. Diagnostics and errors go to stderr.

Example:
    from metrics_rbac.cli.utils import ExitCode, error_exit

    error_exit("SelfSubjectRulesReview request failed", exit_code=ExitCode.NETWORK_ERROR)
"""

from __future__ import annotations

import sys
from enum import IntEnum
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from typing import NoReturn


class ExitCode(IntEnum):
    """Process exit status of metrics-rbac commands."""

    SUCCESS = 0
    """Access was reviewed and printed."""

    GENERAL_ERROR = 1
    """Connection settings could not be loaded, or another failure."""

    USAGE_ERROR = 2
    """Bad arguments or missing token (click also uses 2 for parse errors)."""

    NETWORK_ERROR = 8
    """The rules review request to the API server failed."""


def error(message: str, **context: str | int | bool | None) -> None:
    """Write ``Error: <message>`` to stderr.

    Context values that are not None are appended in parentheses.

    Example:
        error("Request failed", status=403)
        # Error: Request failed (status=403)
    """
    details = [f"{key}={value}" for key, value in context.items() if value is not None]
    suffix = f" ({', '.join(details)})" if details else ""
    click.echo(f"Error: {message}{suffix}", err=True)


def error_exit(
    message: str,
    exit_code: ExitCode = ExitCode.GENERAL_ERROR,
    **context: str | int | bool | None,
) -> NoReturn:
    """Report an error on stderr and terminate with ``exit_code``.

    Raises:
        SystemExit: Always.
    """
    error(message, **context)
    sys.exit(exit_code)


def info(message: str) -> None:
    """Write a progress note to stderr."""
    click.echo(message, err=True)


__all__ = ["ExitCode", "error", "error_exit", "info"]
