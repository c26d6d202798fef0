"""Shared test fixtures for metrics-rbac tests.

Fixtures:
    - ROLE_MANIFESTS / USER_GROUPS: ClusterRoles and group memberships used by
      both unit tests (as SelfSubjectRulesReview responses) and integration
      tests (applied to a real cluster)
    - authorization_api: patched AuthorizationV1Api for unit tests
    - rules_review_response: builder for SelfSubjectRulesReview responses
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import pytest
import yaml
from kubernetes import client

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


BLUE_METRICS_ACCESS_YAML = """
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: view-blue-metrics
rules:
  - apiGroups:
      - "cluster.open-cluster-management.io"
    resources:
      - managedclusters
    resourceNames:
      - devcluster1
      - devcluster2
    verbs:
      - metrics/nsblue1
      - metrics/nsblue2
      - metrics/nsblue3
---
kind: ClusterRoleBinding
apiVersion: rbac.authorization.k8s.io/v1
metadata:
  name: view-blue-metrics-binding
subjects:
  - kind: Group
    apiGroup: rbac.authorization.k8s.io
    name: blue-admins
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: view-blue-metrics
"""

RED_METRICS_ACCESS_YAML = """
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: view-red-metrics
rules:
  - apiGroups:
      - "cluster.open-cluster-management.io"
    resources:
      - managedclusters
    resourceNames:
      - devcluster1
      - devcluster2
    verbs:
      - metrics/nsred1
      - metrics/nsred2
---
kind: ClusterRoleBinding
apiVersion: rbac.authorization.k8s.io/v1
metadata:
  name: view-red-metrics-binding
subjects:
  - kind: Group
    apiGroup: rbac.authorization.k8s.io
    name: red-admins
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: view-red-metrics
"""

SYSTEM_METRICS_ON_ALL_CLUSTERS_YAML = """
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: view-system-metrics
rules:
  - apiGroups:
      - "cluster.open-cluster-management.io"
    resources:
      - managedclusters
    verbs:
      - metrics/kube-system
---
kind: ClusterRoleBinding
apiVersion: rbac.authorization.k8s.io/v1
metadata:
  name: view-system-metrics-binding
subjects:
  - kind: Group
    apiGroup: rbac.authorization.k8s.io
    name: system-admins
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: view-system-metrics
"""

LIST_CLUSTERS_YAML = """
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRole
metadata:
  name: list-clusters
rules:
  - apiGroups:
      - "cluster.open-cluster-management.io"
    resources:
      - managedclusters
    verbs:
      - list
---
kind: ClusterRoleBinding
apiVersion: rbac.authorization.k8s.io/v1
metadata:
  name: list-clusters-binding
subjects:
  - kind: Group
    apiGroup: rbac.authorization.k8s.io
    name: cluster-listers
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: list-clusters
"""

ROLE_MANIFESTS: dict[str, str] = {
    "blue-admins": BLUE_METRICS_ACCESS_YAML,
    "red-admins": RED_METRICS_ACCESS_YAML,
    "system-admins": SYSTEM_METRICS_ON_ALL_CLUSTERS_YAML,
    "cluster-listers": LIST_CLUSTERS_YAML,
}

USER_GROUPS: dict[str, list[str]] = {
    "user-blue": ["blue-admins"],
    "user-red": ["red-admins"],
    "user-purple": ["blue-admins", "red-admins"],
    "user-no-specific-access": ["no-specific-access"],
    "user-sysadmin": ["system-admins"],
    "user-clusterlister": ["cluster-listers"],
}


def _basic_user_rule() -> client.V1ResourceRule:
    """Rule every authenticated user holds: creating self reviews."""
    return client.V1ResourceRule(
        api_groups=["authorization.k8s.io"],
        resources=["selfsubjectaccessreviews", "selfsubjectrulesreviews"],
        verbs=["create"],
    )


def cluster_role_rules(manifest: str) -> list[client.V1ResourceRule]:
    """Convert the ClusterRole rules of a YAML manifest to resource rules."""
    rules: list[client.V1ResourceRule] = []
    for doc in yaml.safe_load_all(manifest):
        if not doc or doc.get("kind") != "ClusterRole":
            continue
        for rule in doc.get("rules", []):
            rules.append(
                client.V1ResourceRule(
                    api_groups=rule.get("apiGroups"),
                    resources=rule.get("resources"),
                    resource_names=rule.get("resourceNames"),
                    verbs=rule["verbs"],
                )
            )
    return rules


def user_resource_rules(username: str) -> list[client.V1ResourceRule]:
    """Resource rules the API server reports for a test user.

    ``cluster-admin`` holds the all-powerful ``*/*/*`` rule.
    """
    rules = [_basic_user_rule()]
    if username == "cluster-admin":
        rules.append(client.V1ResourceRule(api_groups=["*"], resources=["*"], verbs=["*"]))
        return rules

    for group in USER_GROUPS[username]:
        if group in ROLE_MANIFESTS:
            rules.extend(cluster_role_rules(ROLE_MANIFESTS[group]))
    return rules


def make_rules_review_response(
    resource_rules: list[client.V1ResourceRule],
    *,
    namespace: str = "$ Invalid $",
    evaluation_error: str | None = None,
) -> client.V1SelfSubjectRulesReview:
    """Build a SelfSubjectRulesReview as returned by the API server."""
    return client.V1SelfSubjectRulesReview(
        spec=client.V1SelfSubjectRulesReviewSpec(namespace=namespace),
        status=client.V1SubjectRulesReviewStatus(
            incomplete=evaluation_error is not None,
            resource_rules=resource_rules,
            non_resource_rules=[],
            evaluation_error=evaluation_error,
        ),
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: test requires a reachable Kubernetes cluster",
    )


@pytest.fixture(scope="session")
def role_manifests() -> dict[str, str]:
    """ClusterRole manifests keyed by the group they are bound to."""
    return ROLE_MANIFESTS


@pytest.fixture(scope="session")
def user_groups() -> dict[str, list[str]]:
    """Group memberships of the test users."""
    return USER_GROUPS


@pytest.fixture
def user_rules() -> Callable[[str], list[client.V1ResourceRule]]:
    """Lookup of the resource rules reported for a test user."""
    return user_resource_rules


@pytest.fixture
def rules_review_response() -> Callable[..., client.V1SelfSubjectRulesReview]:
    """Factory for SelfSubjectRulesReview responses."""
    return make_rules_review_response


@pytest.fixture
def authorization_api_class() -> Generator[MagicMock, None, None]:
    """Patch AuthorizationV1Api as used by metrics_rbac.rules.

    Yields:
        The patched class; its ``return_value`` is the API instance.
    """
    with patch("metrics_rbac.rules.client.AuthorizationV1Api") as api_class:
        yield api_class


@pytest.fixture
def authorization_api(authorization_api_class: MagicMock) -> MagicMock:
    """Patched AuthorizationV1Api instance."""
    return authorization_api_class.return_value


@pytest.fixture
def respond_as_user(authorization_api: MagicMock) -> Callable[[str], None]:
    """Make the patched API answer rules reviews with a test user's rules."""

    def _respond(username: str) -> None:
        authorization_api.create_self_subject_rules_review.return_value = (
            make_rules_review_response(user_resource_rules(username))
        )

    return _respond


@pytest.fixture
def api_client() -> Any:
    """A static API client that is never used for real requests."""
    return MagicMock(spec=client.ApiClient)
