"""Loading of Kubernetes API server connection settings.

Example:
    >>> from metrics_rbac.config import KubeClientConfig
    >>> from metrics_rbac.kube import load_client_configuration
    >>> configuration = load_client_configuration(KubeClientConfig(context="hub"))
"""

from __future__ import annotations

import structlog
from kubernetes import client
from kubernetes import config as k8s_config

from metrics_rbac.config import KubeClientConfig
from metrics_rbac.errors import KubeConfigLoadError

logger = structlog.get_logger(__name__)


def load_client_configuration(config: KubeClientConfig | None = None) -> client.Configuration:
    """Load connection settings into a new ``Configuration``.

    Attempts to load configuration in this order:
    1. Explicit kubeconfig path from config
    2. In-cluster configuration (unless ``in_cluster`` is False)
    3. Default kubeconfig (~/.kube/config), unless ``in_cluster`` is True

    The global default configuration of the kubernetes package is left alone.

    Args:
        config: Where to load settings from. Uses defaults if None.

    Returns:
        Loaded client configuration.

    Raises:
        KubeConfigLoadError: If no configuration could be loaded.
    """
    config = config or KubeClientConfig()
    configuration = client.Configuration()

    if config.kubeconfig_path:
        _load_kube_config(configuration, config.kubeconfig_path, config.context)
        return configuration

    if config.in_cluster is not False:
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
        except k8s_config.ConfigException as e:
            if config.in_cluster:
                raise KubeConfigLoadError(source="in-cluster", reason=str(e)) from e
        else:
            logger.info("kube_config_loaded", source="in-cluster")
            return configuration

    _load_kube_config(configuration, None, config.context)
    return configuration


def _load_kube_config(
    configuration: client.Configuration,
    kubeconfig_path: str | None,
    context: str | None,
) -> None:
    source = kubeconfig_path or "default kubeconfig"
    try:
        k8s_config.load_kube_config(
            config_file=kubeconfig_path,
            context=context,
            client_configuration=configuration,
        )
    except (k8s_config.ConfigException, OSError) as e:
        raise KubeConfigLoadError(source=source, reason=str(e)) from e
    logger.info("kube_config_loaded", source=source, context=context)


def new_api_client(config: KubeClientConfig | None = None) -> client.ApiClient:
    """Create an API client using the loaded connection settings and credentials."""
    return client.ApiClient(load_client_configuration(config))


__all__ = ["load_client_configuration", "new_api_client"]
