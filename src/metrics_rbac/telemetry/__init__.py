"""Telemetry helpers: tracer factory, log configuration and sanitization."""

from __future__ import annotations

from metrics_rbac.telemetry.logging import add_trace_context, configure_logging
from metrics_rbac.telemetry.sanitization import sanitize_error_message, sanitize_k8s_api_error
from metrics_rbac.telemetry.tracer_factory import get_tracer, reset_tracer, set_tracer

__all__ = [
    "add_trace_context",
    "configure_logging",
    "get_tracer",
    "reset_tracer",
    "sanitize_error_message",
    "sanitize_k8s_api_error",
    "set_tracer",
]
