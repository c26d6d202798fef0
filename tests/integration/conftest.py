"""Integration test fixtures.

Integration tests need a reachable Kubernetes cluster (Kind or otherwise)
and a kubeconfig whose identity may impersonate users and create
ClusterRoles. They are skipped when ``kubectl cluster-info`` fails.

The shared ClusterRoles are applied once per session. Each test user is
then bound directly to the roles of its groups, so a review can run as that
user through the ``Impersonate-User`` header.
"""

from __future__ import annotations

import subprocess
import uuid
from typing import TYPE_CHECKING

import pytest
import yaml
from kubernetes import client

from metrics_rbac.config import KubeClientConfig
from metrics_rbac.kube import load_client_configuration

if TYPE_CHECKING:
    from collections.abc import Callable, Generator


def _kubectl(*args: str, stdin: str | None = None, check: bool = True) -> str:
    result = subprocess.run(
        ["kubectl", *args],
        input=stdin,
        capture_output=True,
        text=True,
        check=check,
        timeout=60,
    )
    return result.stdout


def _cluster_available() -> bool:
    """Check if kubectl is available and configured."""
    try:
        result = subprocess.run(
            ["kubectl", "cluster-info"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError):
        return False


def _cluster_role_names(manifest: str) -> list[str]:
    return [
        doc["metadata"]["name"]
        for doc in yaml.safe_load_all(manifest)
        if doc and doc.get("kind") == "ClusterRole"
    ]


@pytest.fixture(scope="session")
def cluster_required() -> None:
    """Skip the test if no cluster is reachable."""
    if not _cluster_available():
        pytest.skip("Kubernetes cluster not reachable - start one with: kind create cluster")


@pytest.fixture(scope="session")
def run_id() -> str:
    """Suffix keeping objects of parallel runs apart."""
    return uuid.uuid4().hex[:8]


@pytest.fixture(scope="session")
def metrics_roles(
    cluster_required: None,
    run_id: str,
    role_manifests: dict[str, str],
    user_groups: dict[str, list[str]],
) -> Generator[None, None, None]:
    """Apply the metrics ClusterRoles and bind every test user to its roles.

    Yields:
        Nothing; objects are deleted after the session.
    """
    bindings: list[str] = []
    for manifest in role_manifests.values():
        _kubectl("apply", "-f", "-", stdin=manifest)

    for username, groups in user_groups.items():
        for group in groups:
            for role in _cluster_role_names(role_manifests.get(group, "")):
                binding = f"{username}-{role}-{run_id}"
                _kubectl(
                    "create",
                    "clusterrolebinding",
                    binding,
                    f"--clusterrole={role}",
                    f"--user={username}",
                )
                bindings.append(binding)

    yield

    for binding in bindings:
        _kubectl("delete", "clusterrolebinding", binding, "--ignore-not-found", check=False)
    for manifest in role_manifests.values():
        _kubectl("delete", "-f", "-", "--ignore-not-found", stdin=manifest, check=False)


@pytest.fixture(scope="session")
def admin_configuration(cluster_required: None) -> client.Configuration:
    """Connection settings and credentials of the current kubeconfig context."""
    return load_client_configuration(KubeClientConfig(in_cluster=False))


@pytest.fixture
def impersonated_client(
    metrics_roles: None,
    admin_configuration: client.Configuration,
) -> Generator[Callable[[str], client.ApiClient], None, None]:
    """Factory for API clients acting as a test user.

    Yields:
        Function returning a client that impersonates the given user.
    """
    clients: list[client.ApiClient] = []

    def _client(username: str) -> client.ApiClient:
        api_client = client.ApiClient(admin_configuration)
        api_client.set_default_header("Impersonate-User", username)
        clients.append(api_client)
        return api_client

    yield _client

    for api_client in clients:
        api_client.close()


@pytest.fixture
def red_service_account_token(metrics_roles: None, run_id: str) -> Generator[str, None, None]:
    """Bearer token of a ServiceAccount bound to the red metrics role.

    Yields:
        Short-lived token issued with ``kubectl create token``.
    """
    namespace = f"metrics-rbac-{run_id}"
    account = "red-viewer"
    binding = f"{account}-{run_id}"

    _kubectl("create", "namespace", namespace, check=False)
    _kubectl("create", "serviceaccount", account, "-n", namespace)
    _kubectl(
        "create",
        "clusterrolebinding",
        binding,
        "--clusterrole=view-red-metrics",
        f"--serviceaccount={namespace}:{account}",
    )

    yield _kubectl("create", "token", account, "-n", namespace).strip()

    _kubectl("delete", "clusterrolebinding", binding, "--ignore-not-found", check=False)
    _kubectl("delete", "namespace", namespace, "--ignore-not-found", "--wait=false", check=False)
