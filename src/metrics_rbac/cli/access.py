"""Access review commands.

This module implements:
    metrics-rbac metrics-access: namespaces with viewable metrics per managed cluster
    metrics-rbac resource-access: raw ACLs per resource name for any resource type

Example:
    $ metrics-rbac metrics-access --cluster devcluster1 --cluster devcluster2
    $ metrics-rbac metrics-access --token "$USER_TOKEN" --output json
    $ metrics-rbac resource-access --group apps --resource deployments --namespace web
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError

from metrics_rbac.cli.utils import ExitCode, error_exit, info
from metrics_rbac.config import GroupResource, KubeClientConfig
from metrics_rbac.errors import AccessReviewConfigError, AuthorityCallError, KubeConfigLoadError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from metrics_rbac.reviewer import AccessReviewer

_TOKEN_ENVVAR = "METRICS_RBAC_TOKEN"


def _connection_options(func: Callable[..., None]) -> Callable[..., None]:
    """Add the options shared by every access review command."""
    options = [
        click.option(
            "--token",
            type=str,
            default=None,
            envvar=_TOKEN_ENVVAR,
            help=(
                "Bearer token of the user to review. The kubeconfig then only "
                f"provides connection settings. [env: {_TOKEN_ENVVAR}]"
            ),
            metavar="TOKEN",
        ),
        click.option(
            "--kubeconfig",
            type=click.Path(exists=True, dir_okay=False, resolve_path=True, path_type=Path),
            default=None,
            help="Path to kubeconfig file.",
            metavar="PATH",
        ),
        click.option(
            "--context",
            type=str,
            default=None,
            help="Kubeconfig context to use.",
            metavar="NAME",
        ),
        click.option(
            "--output",
            "-o",
            type=click.Choice(["text", "json"], case_sensitive=False),
            default="text",
            show_default=True,
            help="Output format.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command(
    name="metrics-access",
    help="Show the namespaces whose metrics a user may view, per managed cluster.",
    epilog="""
Without --cluster, every allowed managed cluster is listed; rules covering
all clusters are reported under "*".

Examples:
    $ metrics-rbac metrics-access
    $ metrics-rbac metrics-access --cluster devcluster1 --output json
""",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--cluster",
    "-c",
    "clusters",
    multiple=True,
    help="Managed cluster to report on (repeatable).",
    metavar="NAME",
)
@_connection_options
def metrics_access_command(
    clusters: tuple[str, ...],
    token: str | None,
    kubeconfig: Path | None,
    context: str | None,
    output: str,
) -> None:
    """Show metrics access for the configured user."""
    with _open_reviewer(kubeconfig, context, token) as reviewer:
        result = _run(lambda: reviewer.get_metrics_access(token or "", *clusters))
    _output_access(result, output, empty_label="no metrics access")


@click.command(
    name="resource-access",
    help="Show a user's ACLs per resource name for any resource type.",
    epilog="""
Examples:
    $ metrics-rbac resource-access -g cluster.open-cluster-management.io -r managedclusters
    $ metrics-rbac resource-access --group apps --resource deployments --name web --namespace shop
""",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--group",
    "-g",
    type=str,
    default="",
    help="API group of the resource (default: core group).",
    metavar="GROUP",
)
@click.option(
    "--resource",
    "-r",
    type=str,
    required=True,
    help="Plural resource type, e.g. managedclusters.",
    metavar="RESOURCE",
)
@click.option(
    "--name",
    "names",
    multiple=True,
    help="Resource name to report on (repeatable).",
    metavar="NAME",
)
@click.option(
    "--namespace",
    "-n",
    type=str,
    default="",
    help="Namespace for namespace-scoped resources.",
    metavar="NAMESPACE",
)
@_connection_options
def resource_access_command(
    group: str,
    resource: str,
    names: tuple[str, ...],
    namespace: str,
    token: str | None,
    kubeconfig: Path | None,
    context: str | None,
    output: str,
) -> None:
    """Show raw resource ACLs for the configured user."""
    try:
        group_resource = GroupResource(group=group, resource=resource)
    except ValidationError as e:
        error_exit(f"Invalid resource: {e.errors()[0]['msg']}", exit_code=ExitCode.USAGE_ERROR)
    with _open_reviewer(kubeconfig, context, token) as reviewer:
        result = _run(
            lambda: reviewer.get_resource_access(token or "", group_resource, names, namespace)
        )
    _output_access(result, output, empty_label="no access")


@contextmanager
def _open_reviewer(
    kubeconfig: Path | None, context: str | None, token: str | None
) -> Iterator[AccessReviewer]:
    """Yield the reviewer for a command invocation.

    With a token, the loaded configuration is a template authenticated per
    call. Without one, the kubeconfig's own credentials are used through a
    client that is closed when the command is done.
    """
    from kubernetes import client

    from metrics_rbac.kube import load_client_configuration
    from metrics_rbac.reviewer import new_access_reviewer

    kube_client_config = KubeClientConfig(
        kubeconfig_path=str(kubeconfig) if kubeconfig else None,
        context=context,
    )
    if kubeconfig:
        info(f"Using kubeconfig: {kubeconfig}")

    try:
        configuration = load_client_configuration(kube_client_config)
    except KubeConfigLoadError as e:
        error_exit(e.message, exit_code=ExitCode.GENERAL_ERROR)

    if token:
        yield new_access_reviewer(kube_config=configuration)
        return
    with client.ApiClient(configuration) as api_client:
        yield new_access_reviewer(api_client=api_client)


def _run(call: Callable[[], dict[str, list[str]]]) -> dict[str, list[str]]:
    try:
        return call()
    except AccessReviewConfigError as e:
        error_exit(e.message, exit_code=ExitCode.USAGE_ERROR)
    except AuthorityCallError as e:
        error_exit(e.message, exit_code=ExitCode.NETWORK_ERROR, status=e.status)


def _output_access(result: dict[str, list[str]], output_format: str, *, empty_label: str) -> None:
    """Print an access map as JSON or as one line per name."""
    if output_format == "json":
        click.echo(json.dumps(result, indent=2, sort_keys=True))
        return

    if not result:
        click.echo(f"No entries ({empty_label}).")
        return

    width = max(len(name) for name in result)
    for name in sorted(result):
        values = ", ".join(result[name]) if result[name] else f"({empty_label})"
        click.echo(f"{name.ljust(width)}  {values}")


__all__: list[str] = ["metrics_access_command", "resource_access_command"]
