"""AccessReviewer: fine-grained metrics access control on top of Kubernetes RBAC.

The reviewer works in one of two modes:

- ``FromTemplate``: holds connection settings shared by many users. Every call
  passes the user's bearer token, and a client authenticated as that user is
  derived for the call.
- ``FromStatic``: holds one API client, used as-is for every call. Suitable when
  the reviewer serves a single identity; tokens passed to calls are ignored.

Example:
    >>> from kubernetes import client
    >>> from metrics_rbac.reviewer import AccessReviewer, FromTemplate
    >>> reviewer = AccessReviewer(FromTemplate(client.Configuration.get_default_copy()))
    >>> reviewer.get_metrics_access(user_token, "devcluster1")
    {'devcluster1': ['nsred1', 'nsred2']}
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from kubernetes import client

from metrics_rbac.access import get_resource_access
from metrics_rbac.config import METRICS_ACL_CONFIG
from metrics_rbac.errors import AccessReviewConfigError
from metrics_rbac.metrics import decode_metrics_access
from metrics_rbac.tracing import ATTR_RESULT_COUNT, access_review_span, get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from metrics_rbac.config import AccessControlConfig, GroupResource

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FromTemplate:
    """Connection settings reused for every call, authenticated per call."""

    configuration: client.Configuration


@dataclass(frozen=True)
class FromStatic:
    """A single API client used directly for every call."""

    api_client: client.ApiClient


AccessReviewMode = FromTemplate | FromStatic


def derive_user_configuration(template: client.Configuration, token: str) -> client.Configuration:
    """Build a new configuration that authenticates with ``token``.

    Only connection and TLS settings are copied from the template. Its own
    credentials (API keys, basic auth, refresh hooks, client certificates) are
    left behind, and the template is not modified, so concurrent calls for
    different users never share a credential.

    Args:
        template: Connection settings to copy.
        token: The user's OAuth bearer token.

    Returns:
        Fresh configuration carrying the bearer token.
    """
    user_config = client.Configuration(
        host=template.host,
        api_key={"authorization": token},
        api_key_prefix={"authorization": "Bearer"},
    )
    user_config.ssl_ca_cert = template.ssl_ca_cert
    user_config.verify_ssl = template.verify_ssl
    user_config.assert_hostname = template.assert_hostname
    user_config.tls_server_name = template.tls_server_name
    user_config.proxy = template.proxy
    user_config.proxy_headers = copy.copy(template.proxy_headers)
    return user_config


class AccessReviewer:
    """API for fine-grained access control derived from cluster-scoped rules.

    Holds only immutable configuration captured at construction, so one
    instance may serve concurrent calls.

    Attributes:
        mode: How API clients are obtained for each call.
        acl_config: Resource type and verb convention for metrics access.

    Example:
        >>> reviewer = AccessReviewer(FromStatic(client.ApiClient()))
        >>> reviewer.get_metrics_access()
        {'*': ['kube-system']}
    """

    def __init__(
        self,
        mode: AccessReviewMode,
        *,
        acl_config: AccessControlConfig = METRICS_ACL_CONFIG,
    ) -> None:
        """Initialize the reviewer.

        Args:
            mode: ``FromTemplate`` or ``FromStatic``.
            acl_config: Access control configuration for metrics.

        Raises:
            AccessReviewConfigError: If mode is not one of the two modes.
        """
        if isinstance(mode, FromTemplate):
            # Caller-side changes to the template must not reach later calls.
            self.mode: AccessReviewMode = FromTemplate(copy.deepcopy(mode.configuration))
        elif isinstance(mode, FromStatic):
            self.mode = mode
        else:
            msg = f"Unsupported access review mode: {type(mode).__name__}"
            raise AccessReviewConfigError(msg)
        self.acl_config = acl_config

    @contextmanager
    def _client_for_user(self, user_token: str) -> Iterator[client.ApiClient]:
        """Yield the API client to use for a call.

        In template mode a client is created from the template and the user's
        token, and closed afterwards. In static mode the configured client is
        yielded and the token ignored.

        Raises:
            AccessReviewConfigError: If template mode is used without a token.
        """
        if isinstance(self.mode, FromStatic):
            yield self.mode.api_client
            return

        if not user_token:
            msg = (
                "Failed to get a client to connect to the Kubernetes cluster: "
                "When kube_config is provided, a valid user_token must be set "
                "on all access review calls"
            )
            raise AccessReviewConfigError(msg)

        user_config = derive_user_configuration(self.mode.configuration, user_token)
        with client.ApiClient(user_config) as api_client:
            yield api_client

    def get_metrics_access(self, user_token: str = "", *clusters: str) -> dict[str, list[str]]:
        """Return the namespaces whose metrics the user may view, per managed cluster.

        Args:
            user_token: The user's OAuth bearer token. Required in template mode.
            *clusters: Managed clusters to report on. If none are given, access
                is returned for all allowed managed clusters, with rules that
                cover every cluster reported under "*".

        Returns:
            Managed cluster name to allowed namespaces ("*" meaning all).
            Explicitly requested clusters are always present, possibly with
            an empty list.

        Raises:
            AccessReviewConfigError: If a token is required but missing.
            AuthorityCallError: If the request to the API server fails.
        """
        logger.debug("get_metrics_access", clusters=list(clusters))

        with access_review_span(
            get_tracer(),
            "get_metrics_access",
            resource=str(self.acl_config.group_resource),
            resource_name_count=len(clusters),
        ) as span:
            with self._client_for_user(user_token) as api_client:
                resource_acls = get_resource_access(
                    api_client, self.acl_config.group_resource, clusters
                )

            result = decode_metrics_access(resource_acls, clusters, self.acl_config.verb_prefix)
            span.set_attribute(ATTR_RESULT_COUNT, len(result))

        logger.debug("metrics_access_results", results=result)
        return result

    def get_resource_access(
        self,
        user_token: str,
        group_resource: GroupResource,
        resource_names: Iterable[str] = (),
        namespace: str = "",
    ) -> dict[str, list[str]]:
        """Return the user's raw ACLs on any resource type.

        Args:
            user_token: The user's OAuth bearer token. Required in template mode.
            group_resource: API group and resource type.
            resource_names: Resource names to report on. Empty means all.
            namespace: Namespace for namespace-scoped resources.

        Returns:
            Resource name to allowed verbs.

        Raises:
            AccessReviewConfigError: If a token is required but missing.
            AuthorityCallError: If the request to the API server fails.
        """
        with self._client_for_user(user_token) as api_client:
            return get_resource_access(api_client, group_resource, resource_names, namespace)


def new_access_reviewer(
    kube_config: client.Configuration | None = None,
    api_client: client.ApiClient | None = None,
) -> AccessReviewer:
    """Create an AccessReviewer from exactly one of two identity sources.

    Args:
        kube_config: Connection settings. Set this when the reviewer serves
            many users; each call must then pass the user's token, which is
            used to build a client for that user.
        api_client: Kubernetes API client. Set this when the reviewer serves
            a single identity; calls need no token.

    Returns:
        The configured reviewer.

    Raises:
        AccessReviewConfigError: If neither or both values are set.
    """
    if kube_config is None and api_client is None:
        raise AccessReviewConfigError("one of either kube_config or api_client must be set")

    if kube_config is not None and api_client is not None:
        raise AccessReviewConfigError("only one of either kube_config or api_client must be set")

    if kube_config is not None:
        return AccessReviewer(FromTemplate(kube_config))
    return AccessReviewer(FromStatic(api_client))


__all__ = [
    "AccessReviewMode",
    "AccessReviewer",
    "FromStatic",
    "FromTemplate",
    "derive_user_configuration",
    "new_access_reviewer",
]
