"""Sanitize error messages before they are recorded on spans or logs.

Kubernetes client errors can echo request headers, so bearer tokens and other
credentials are redacted before an error message leaves the process.
"""

from __future__ import annotations

import re

_SENSITIVE_KEY_PATTERN = re.compile(
    r"(password|secret_key|access_key|token|api_key|authorization|credential)"
    r"\s*[=:]\s*\S+",
    re.IGNORECASE,
)
_BEARER_PATTERN = re.compile(r"(?i)\bbearer\s+[A-Za-z0-9._~+/=-]+")
_URL_CREDENTIAL_PATTERN = re.compile(r"://[^@/\s]+:[^@/\s]+@")


def _redact_key_value(match: re.Match[str]) -> str:
    text = match.group(0)
    if "=" in text:
        return text.split("=", 1)[0].split(":", 1)[0] + "=<REDACTED>"
    return text.split(":", 1)[0] + ": <REDACTED>"


def sanitize_error_message(msg: str, max_length: int = 500) -> str:
    """Redact credentials from an error message and truncate it.

    Args:
        msg: Raw error message to sanitize.
        max_length: Maximum length of returned message.

    Returns:
        Sanitized and truncated error message.

    Example:
        >>> sanitize_error_message("401: token=abc123 rejected")
        '401: token=<REDACTED> rejected'
        >>> sanitize_error_message("header Bearer eyJhbGciOi")
        'header Bearer <REDACTED>'
    """
    sanitized = _URL_CREDENTIAL_PATTERN.sub("://<REDACTED>@", msg)
    sanitized = _BEARER_PATTERN.sub("Bearer <REDACTED>", sanitized)
    sanitized = _SENSITIVE_KEY_PATTERN.sub(_redact_key_value, sanitized)
    return sanitized[:max_length]


def sanitize_k8s_api_error(exc: Exception) -> str:
    """Describe a Kubernetes API exception by its status and reason only.

    Args:
        exc: Exception from the kubernetes client (ApiException expected).

    Returns:
        Message safe for logging, never including response body or headers.
    """
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None)

    if status is not None and reason is not None:
        return f"{reason} (HTTP {status})"
    if reason is not None:
        return sanitize_error_message(str(reason))
    return type(exc).__name__


__all__ = ["sanitize_error_message", "sanitize_k8s_api_error"]
