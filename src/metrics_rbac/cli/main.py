"""Main entry point for the metrics-rbac CLI.

Commands:
    metrics-rbac metrics-access: Namespaces with viewable metrics per managed cluster
    metrics-rbac resource-access: ACLs per resource name for any resource type

Example:
    $ metrics-rbac --help
    $ metrics-rbac --log-level DEBUG metrics-access --cluster devcluster1
"""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import click

from metrics_rbac.cli.access import metrics_access_command, resource_access_command
from metrics_rbac.telemetry.logging import LOG_LEVELS, configure_logging


def _get_version() -> str:
    """Return the installed package version, or 'unknown'."""
    try:
        return get_version("metrics-rbac")
    except PackageNotFoundError:
        return "unknown"


@click.group(
    name="metrics-rbac",
    help="metrics-rbac - Review metrics access derived from Kubernetes RBAC.",
    epilog="Use 'metrics-rbac <command> --help' for command-specific help.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(
    version=_get_version(),
    prog_name="metrics-rbac",
    message="%(prog)s %(version)s",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Minimum level of log lines written to stderr.",
)
@click.option(
    "--log-json/--no-log-json",
    default=False,
    help="Write log lines as JSON.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_json: bool) -> None:
    """Root command group for the metrics-rbac CLI."""
    ctx.ensure_object(dict)
    configure_logging(log_level=log_level, json_output=log_json)


cli.add_command(metrics_access_command)
cli.add_command(resource_access_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the metrics-rbac CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    try:
        cli(args=argv, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)


__all__: list[str] = ["cli", "main"]
