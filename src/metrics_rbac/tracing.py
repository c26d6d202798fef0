"""OpenTelemetry tracing helpers for access review operations.

Security:
    - Spans MUST NOT include bearer tokens or any other credential
    - Error messages are sanitized via metrics_rbac.telemetry.sanitization
    - Only operation metadata is recorded (namespace, resource, counts)

Example:
    >>> from metrics_rbac.tracing import ATTR_RULE_COUNT, access_review_span, get_tracer
    >>> tracer = get_tracer()
    >>> with access_review_span(tracer, "list_rules", namespace="$ Invalid $") as span:
    ...     span.set_attribute(ATTR_RULE_COUNT, 3)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from metrics_rbac.telemetry.sanitization import sanitize_error_message
from metrics_rbac.telemetry.tracer_factory import get_tracer as _factory_get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterator

TRACER_NAME = "metrics_rbac.access_review"

ATTR_OPERATION = "access_review.operation"
ATTR_NAMESPACE = "access_review.namespace"
ATTR_RESOURCE = "access_review.resource"
ATTR_RESOURCE_NAME_COUNT = "access_review.resource_name_count"
ATTR_RULE_COUNT = "access_review.rule_count"
ATTR_RESULT_COUNT = "access_review.result_count"


def get_tracer() -> trace.Tracer:
    """Get the OpenTelemetry tracer for access review operations.

    Returns:
        OpenTelemetry Tracer instance, a no-op tracer if none is configured.
    """
    return _factory_get_tracer(TRACER_NAME)


@contextmanager
def access_review_span(
    tracer: trace.Tracer,
    operation: str,
    *,
    namespace: str | None = None,
    resource: str | None = None,
    resource_name_count: int | None = None,
    extra_attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Context manager for creating access review spans.

    The span is named ``access_review.{operation}``, ends with OK status on
    success, and records the sanitized exception on failure before re-raising.

    Args:
        tracer: OpenTelemetry tracer instance.
        operation: Operation name (e.g. "list_rules", "get_metrics_access").
        namespace: Namespace the rules were evaluated in.
        resource: Group/resource under review, e.g.
            "managedclusters.cluster.open-cluster-management.io".
        resource_name_count: Number of explicitly requested resource names.
        extra_attributes: Additional span attributes.

    Yields:
        The active span for adding custom attributes.
    """
    attributes: dict[str, Any] = {ATTR_OPERATION: operation}

    if namespace is not None:
        attributes[ATTR_NAMESPACE] = namespace
    if resource is not None:
        attributes[ATTR_RESOURCE] = resource
    if resource_name_count is not None:
        attributes[ATTR_RESOURCE_NAME_COUNT] = resource_name_count
    if extra_attributes:
        attributes.update(extra_attributes)

    with tracer.start_as_current_span(f"access_review.{operation}", attributes=attributes) as span:
        try:
            yield span
            span.set_status(Status(StatusCode.OK))
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, type(e).__name__))
            span.set_attribute("exception.type", type(e).__name__)
            span.set_attribute("exception.message", sanitize_error_message(str(e)))
            raise


__all__ = [
    "ATTR_NAMESPACE",
    "ATTR_OPERATION",
    "ATTR_RESOURCE",
    "ATTR_RESOURCE_NAME_COUNT",
    "ATTR_RESULT_COUNT",
    "ATTR_RULE_COUNT",
    "TRACER_NAME",
    "access_review_span",
    "get_tracer",
]
