"""Configuration models for metrics access review.

This module provides the Pydantic models describing *what* access is being
reviewed (API group, resource type and verb convention) and *how* to reach the
Kubernetes API server.

Example:
    >>> from metrics_rbac.config import METRICS_ACL_CONFIG
    >>> METRICS_ACL_CONFIG.resource
    'managedclusters'
    >>> METRICS_ACL_CONFIG.verb_prefix
    'metrics/'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GroupResource(BaseModel):
    """An API group and resource type, without a version.

    Rules in a Kubernetes ClusterRole do not specify a version, so access is
    always evaluated against the group and resource only.

    Attributes:
        group: API group. Empty string for the core group.
        resource: Plural resource type (e.g. "managedclusters").

    Example:
        >>> str(GroupResource(group="apps", resource="deployments"))
        'deployments.apps'
        >>> str(GroupResource(resource="pods"))
        'pods'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    group: str = Field(
        default="",
        description="API group of the resource, empty for the core group",
        examples=["cluster.open-cluster-management.io", "apps", ""],
    )

    resource: str = Field(
        ...,
        min_length=1,
        description="Plural resource type",
        examples=["managedclusters", "deployments", "pods"],
    )

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


class AccessControlConfig(BaseModel):
    """The access control configuration needed to perform an action.

    For example, a "metrics/<namespace>" verb on the "managedclusters" resource
    grants the right to view metrics of that namespace on a managed cluster.

    Attributes:
        group_resource: API group and resource type the verbs apply to.
        verb_prefix: Prefix identifying the verbs that carry a namespace.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    group_resource: GroupResource
    verb_prefix: str = Field(..., min_length=1, examples=["metrics/"])

    @property
    def api_group(self) -> str:
        """Return the API group of the configured resource."""
        return self.group_resource.group

    @property
    def resource(self) -> str:
        """Return the configured resource type."""
        return self.group_resource.resource


METRICS_ACL_CONFIG = AccessControlConfig(
    group_resource=GroupResource(
        group="cluster.open-cluster-management.io",
        resource="managedclusters",
    ),
    verb_prefix="metrics/",
)
"""Access control configuration for observability metrics gathered from managed clusters."""


class KubeClientConfig(BaseModel):
    """How to locate Kubernetes API server connection settings.

    Attributes:
        kubeconfig_path: Path to kubeconfig file. None tries in-cluster config
            first and falls back to the default kubeconfig.
        context: Kubeconfig context to use. None uses current context.
        in_cluster: Force (True) or forbid (False) in-cluster configuration.
            None means try in-cluster, then kubeconfig.

    Example:
        >>> config = KubeClientConfig(kubeconfig_path="~/.kube/config", context="hub")
        >>> config.context
        'hub'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kubeconfig_path: str | None = Field(
        default=None,
        description="Path to kubeconfig file. None tries in-cluster config first.",
        examples=["~/.kube/config", "/etc/kubernetes/admin.conf"],
    )

    context: str | None = Field(
        default=None,
        description="Kubeconfig context to use. None uses current context.",
        examples=["hub", "kind-observability"],
    )

    in_cluster: bool | None = Field(
        default=None,
        description="Use the in-cluster service account configuration.",
    )

    @field_validator("kubeconfig_path")
    @classmethod
    def expand_kubeconfig_path(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path.

        Args:
            v: The kubeconfig path value.

        Returns:
            Expanded path or None.
        """
        if v is None:
            return None
        return str(Path(v).expanduser())


__all__ = [
    "AccessControlConfig",
    "GroupResource",
    "KubeClientConfig",
    "METRICS_ACL_CONFIG",
]
