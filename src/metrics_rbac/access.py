"""Raw per-resource-name ACLs for any resource type.

Example:
    >>> from metrics_rbac.access import get_resource_access
    >>> from metrics_rbac.config import GroupResource
    >>> deployments = GroupResource(group="apps", resource="deployments")
    >>> get_resource_access(api_client, deployments, ["web"], namespace="shop")
    {'web': ['get', 'list']}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from metrics_rbac.matcher import match_resource_rules
from metrics_rbac.rules import list_rules
from metrics_rbac.tracing import ATTR_RESULT_COUNT, access_review_span, get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kubernetes.client import ApiClient

    from metrics_rbac.config import GroupResource

logger = structlog.get_logger(__name__)


def get_resource_access(
    api_client: ApiClient,
    group_resource: GroupResource,
    resource_names: Iterable[str] = (),
    namespace: str = "",
) -> dict[str, list[str]]:
    """Return all ACLs the caller holds on a resource type.

    Args:
        api_client: Client authenticated as the caller.
        group_resource: API group and resource type.
        resource_names: Names of the resources to report on. If empty, ACLs
            for all allowed resources of the type are returned, rules that
            apply to every instance being reported under "*".
        namespace: Namespace for namespace-scoped resources. Leave empty for
            cluster-scoped resources.

    Returns:
        Resource name to allowed verbs. A requested name without ACLs maps to
        an empty list.

    Raises:
        AuthorityCallError: If the request to the API server fails.
    """
    names = list(resource_names)
    logger.debug(
        "get_resource_access",
        group_resource=str(group_resource),
        resource_names=names,
        namespace=namespace,
    )

    with access_review_span(
        get_tracer(),
        "get_resource_access",
        namespace=namespace,
        resource=str(group_resource),
        resource_name_count=len(names),
    ) as span:
        rules = list_rules(api_client, namespace)
        access = match_resource_rules(rules, group_resource, names)
        span.set_attribute(ATTR_RESULT_COUNT, len(access))

    return {name: verbs.to_list() for name, verbs in access.items()}


__all__ = ["get_resource_access"]
