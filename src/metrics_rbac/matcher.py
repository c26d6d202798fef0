"""Reduce permission rules to per-resource-name verb sets.

Example:
    >>> from metrics_rbac.config import METRICS_ACL_CONFIG
    >>> from metrics_rbac.rules import PermissionRule
    >>> rules = [
    ...     PermissionRule(
    ...         api_groups=["cluster.open-cluster-management.io"],
    ...         resources=["managedclusters"],
    ...         resource_names=["devcluster1", "devcluster2"],
    ...         verbs=["metrics/nsred1", "metrics/nsred2"],
    ...     ),
    ... ]
    >>> access = match_resource_rules(rules, METRICS_ACL_CONFIG.group_resource, ["devcluster1"])
    >>> access["devcluster1"].to_list()
    ['metrics/nsred1', 'metrics/nsred2']
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from metrics_rbac.verbs import VerbSet

if TYPE_CHECKING:
    from collections.abc import Iterable

    from metrics_rbac.config import GroupResource
    from metrics_rbac.rules import PermissionRule

logger = structlog.get_logger(__name__)

WILDCARD = "*"


def rule_matches(rule: PermissionRule, group_resource: GroupResource) -> bool:
    """Return True if the rule applies to the group and resource type.

    A "*" entry in the rule's API groups or resources matches any value.
    """
    matches_group = group_resource.group in rule.api_groups or WILDCARD in rule.api_groups
    matches_resource = group_resource.resource in rule.resources or WILDCARD in rule.resources
    return matches_group and matches_resource


def match_resource_rules(
    rules: Iterable[PermissionRule],
    group_resource: GroupResource,
    resource_names: Iterable[str] = (),
) -> dict[str, VerbSet]:
    """Merge the verbs of all matching rules per resource name.

    A rule restricted to resource names contributes its verbs to those names
    (only the requested ones, when names are requested). A rule without
    resource names applies to every instance of the type: its verbs go to each
    requested name, or to the "*" entry when no names are requested.

    Args:
        rules: Rules reported for the caller.
        group_resource: API group and resource type under review.
        resource_names: Names to report on. Empty means all allowed names.

    Returns:
        Mapping of resource name to merged verbs. Every requested name has an
        entry, empty when no rule grants anything on it.
    """
    wanted = VerbSet(resource_names)
    access: dict[str, VerbSet] = {}

    for rule in rules:
        if not rule_matches(rule, group_resource):
            continue

        logger.debug(
            "rule_matched",
            group_resource=str(group_resource),
            resource_names=list(rule.resource_names),
            verbs=list(rule.verbs),
        )

        if rule.resource_names:
            for name in rule.resource_names:
                if not wanted or name in wanted:
                    access.setdefault(name, VerbSet()).merge(rule.verbs)
        elif wanted:
            for name in wanted:
                access.setdefault(name, VerbSet()).merge(rule.verbs)
        else:
            access.setdefault(WILDCARD, VerbSet()).merge(rule.verbs)

    for name in wanted:
        access.setdefault(name, VerbSet())

    logger.debug(
        "resource_access_matched",
        group_resource=str(group_resource),
        access={name: verbs.to_list() for name, verbs in access.items()},
    )
    return access


__all__ = ["WILDCARD", "match_resource_rules", "rule_matches"]
