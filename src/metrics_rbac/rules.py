"""Retrieval of the permission rules visible to the caller.

A single ``SelfSubjectRulesReview`` is created against the API server using the
caller's credentials. The server evaluates all of the caller's bindings
(including group memberships) and returns the resulting rules, so no policy is
evaluated locally.

Example:
    >>> from kubernetes import client
    >>> from metrics_rbac.rules import list_rules
    >>> rules = list_rules(client.ApiClient())
    >>> rules[0].verbs
    ('metrics/nsred1', 'metrics/nsred2')
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from pydantic import BaseModel, ConfigDict, Field, field_validator
from urllib3.exceptions import HTTPError

from metrics_rbac.errors import AuthorityCallError
from metrics_rbac.telemetry.sanitization import sanitize_error_message, sanitize_k8s_api_error
from metrics_rbac.tracing import ATTR_RULE_COUNT, access_review_span, get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = structlog.get_logger(__name__)

# SelfSubjectRulesReview errantly reports RoleBindings in the default namespace
# as cluster-scoped access. A name that can never be a namespace limits the
# response to what ClusterRoleBindings grant.
INVALID_NAMESPACE = "$ Invalid $"


class PermissionRule(BaseModel):
    """One resource rule the API server reports for the current caller.

    Attributes:
        api_groups: API groups the rule applies to ("*" for all).
        resources: Resource types the rule applies to ("*" for all).
        resource_names: Instances the rule is restricted to. Empty means all.
        verbs: Allowed verbs, duplicates removed in first-seen order.

    Example:
        >>> rule = PermissionRule(
        ...     api_groups=["cluster.open-cluster-management.io"],
        ...     resources=["managedclusters"],
        ...     resource_names=["devcluster1"],
        ...     verbs=["metrics/nsred1", "metrics/nsred1"],
        ... )
        >>> rule.verbs
        ('metrics/nsred1',)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_groups: tuple[str, ...] = Field(default=())
    resources: tuple[str, ...] = Field(default=())
    resource_names: tuple[str, ...] = Field(default=())
    verbs: tuple[str, ...] = Field(default=())

    @field_validator("verbs")
    @classmethod
    def dedupe_verbs(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop repeated verbs, keeping the first occurrence."""
        return tuple(dict.fromkeys(v))

    @classmethod
    def from_resource_rule(cls, rule: Any) -> PermissionRule:
        """Build a PermissionRule from a ``V1ResourceRule``.

        Args:
            rule: Resource rule from a SelfSubjectRulesReview status.

        Returns:
            Immutable copy of the rule; missing lists become empty tuples.
        """
        return cls(
            api_groups=tuple(rule.api_groups or ()),
            resources=tuple(rule.resources or ()),
            resource_names=tuple(rule.resource_names or ()),
            verbs=tuple(rule.verbs or ()),
        )


def build_rules_review(namespace: str = "") -> client.V1SelfSubjectRulesReview:
    """Build the SelfSubjectRulesReview request body.

    Args:
        namespace: Namespace to evaluate namespace-scoped rules in. Empty
            selects cluster-scoped rules only.

    Returns:
        Request body ready to be created on the API server.
    """
    return client.V1SelfSubjectRulesReview(
        spec=client.V1SelfSubjectRulesReviewSpec(namespace=namespace or INVALID_NAMESPACE),
    )


def list_rules(api_client: client.ApiClient, namespace: str = "") -> list[PermissionRule]:
    """List all resource rules the caller holds, in one round trip.

    The response contains all allowed namespace-scoped rules in the given
    namespace plus all allowed cluster-scoped rules. If the server could only
    partially evaluate the rules, the condition is logged and the partial
    list is still returned.

    Args:
        api_client: Client authenticated as the caller.
        namespace: Namespace to evaluate namespace-scoped rules in. Empty
            (the default) limits the result to cluster-scoped rules.

    Returns:
        Rules reported for the caller.

    Raises:
        AuthorityCallError: If the request to the API server fails.
    """
    body = build_rules_review(namespace)
    review_namespace = body.spec.namespace

    with access_review_span(get_tracer(), "list_rules", namespace=review_namespace) as span:
        try:
            response = client.AuthorizationV1Api(api_client).create_self_subject_rules_review(body)
        except ApiException as e:
            logger.warning(
                "rules_review_failed",
                namespace=review_namespace,
                error=sanitize_k8s_api_error(e),
            )
            raise AuthorityCallError(status=e.status, reason=str(e.reason or "")) from e
        except (HTTPError, OSError) as e:
            reason = sanitize_error_message(str(e))
            logger.warning("rules_review_failed", namespace=review_namespace, error=reason)
            raise AuthorityCallError(reason=reason) from e

        status = response.status
        if status is None:
            return []

        if status.evaluation_error:
            logger.info(
                "rules_review_evaluation_error",
                namespace=review_namespace,
                evaluation_error=status.evaluation_error,
                incomplete=status.incomplete,
            )

        rules = _convert_rules(status.resource_rules or [])
        span.set_attribute(ATTR_RULE_COUNT, len(rules))
        logger.debug("rules_listed", namespace=review_namespace, rule_count=len(rules))
        return rules


def _convert_rules(resource_rules: Iterable[Any]) -> list[PermissionRule]:
    return [PermissionRule.from_resource_rule(rule) for rule in resource_rules]


__all__ = [
    "INVALID_NAMESPACE",
    "PermissionRule",
    "build_rules_review",
    "list_rules",
]
