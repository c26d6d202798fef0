"""Decode metrics verbs into viewable namespaces per managed cluster.

Verbs of the form ``metrics/<namespace>`` on a managed cluster grant the right
to view metrics of ``<namespace>`` on that cluster. A ``*`` verb grants all
namespaces. Any other verb (``get``, ``list``...) has no metrics meaning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from metrics_rbac.matcher import WILDCARD
from metrics_rbac.verbs import VerbSet

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = structlog.get_logger(__name__)


def decode_namespaces(verbs: Iterable[str], verb_prefix: str) -> VerbSet:
    """Return the namespaces encoded in ``verbs``.

    Example:
        >>> decode_namespaces(["list", "metrics/ns1", "*"], "metrics/").to_list()
        ['ns1', '*']
    """
    namespaces = VerbSet()
    for verb in verbs:
        if verb.startswith(verb_prefix):
            namespaces.add(verb[len(verb_prefix) :])
        elif verb == WILDCARD:
            namespaces.add(WILDCARD)
    return namespaces


def decode_metrics_access(
    access: Mapping[str, Iterable[str]],
    requested_clusters: Iterable[str],
    verb_prefix: str,
) -> dict[str, list[str]]:
    """Turn per-cluster verbs into per-cluster viewable namespaces.

    A cluster appears in the result if at least one namespace was decoded for
    it, or if it was explicitly requested (possibly with an empty list).

    Args:
        access: Cluster name ("*" for all clusters) to granted verbs.
        requested_clusters: Clusters the caller asked about.
        verb_prefix: Prefix of namespace-carrying verbs (e.g. "metrics/").

    Returns:
        Cluster name to namespaces, "*" meaning all namespaces.
    """
    requested = set(requested_clusters)
    result: dict[str, list[str]] = {}

    for cluster, verbs in access.items():
        namespaces = decode_namespaces(verbs, verb_prefix)
        logger.debug("cluster_namespaces_decoded", cluster=cluster, namespaces=namespaces.to_list())

        if namespaces or cluster in requested:
            result[cluster] = namespaces.to_list()

    return result


__all__ = ["decode_metrics_access", "decode_namespaces"]
