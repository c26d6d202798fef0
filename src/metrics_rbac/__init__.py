"""metrics-rbac: namespace-level metrics access derived from Kubernetes RBAC.

This package answers "which managed clusters, and which namespaces on them,
may this user view metrics for?" from cluster-scoped role rules whose verbs
follow the ``metrics/<namespace>`` convention.

Example:
    >>> from metrics_rbac import new_access_reviewer
    >>> reviewer = new_access_reviewer(kube_config=configuration)
    >>> reviewer.get_metrics_access(user_token, "devcluster1", "devcluster2")
    {'devcluster1': ['nsred1', 'nsred2'], 'devcluster2': ['nsred1', 'nsred2']}
"""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"
__all__ = [
    "AccessReviewer",
    "FromStatic",
    "FromTemplate",
    "GroupResource",
    "METRICS_ACL_CONFIG",
    "get_resource_access",
    "new_access_reviewer",
]

_LAZY_IMPORTS: dict[str, str] = {
    "AccessReviewer": "metrics_rbac.reviewer",
    "FromStatic": "metrics_rbac.reviewer",
    "FromTemplate": "metrics_rbac.reviewer",
    "new_access_reviewer": "metrics_rbac.reviewer",
    "GroupResource": "metrics_rbac.config",
    "METRICS_ACL_CONFIG": "metrics_rbac.config",
    "get_resource_access": "metrics_rbac.access",
}


# Public names are resolved on first access.
def __getattr__(name: str) -> Any:
    """Lazy import of public components."""
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
