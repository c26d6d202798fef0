"""Custom exceptions for metrics access review.

Exception Hierarchy:
    AccessReviewError (base)
    ├── AccessReviewConfigError (also ValueError)
    │   └── KubeConfigLoadError
    └── AuthorityCallError (also ConnectionError)

A user having no access is never an error: it is represented by empty or
absent entries in the returned maps.

Example:
    >>> from metrics_rbac.errors import AuthorityCallError
    >>> raise AuthorityCallError(status=403, reason="Forbidden")
    AuthorityCallError: SelfSubjectRulesReview request failed: Forbidden (HTTP 403)
"""

from __future__ import annotations


class AccessReviewError(Exception):
    """Base exception for all access review errors.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class AccessReviewConfigError(AccessReviewError, ValueError):
    """Raised when the reviewer is configured or invoked inconsistently.

    Examples are supplying both or neither identity source at construction,
    or omitting the user token when a kube config template is in use.
    """


class KubeConfigLoadError(AccessReviewConfigError):
    """Raised when Kubernetes connection settings cannot be loaded.

    Attributes:
        source: Where loading was attempted (kubeconfig path or "in-cluster").
        reason: Why loading failed.
    """

    def __init__(self, *, source: str, reason: str = "") -> None:
        """Initialize the exception.

        Args:
            source: Where loading was attempted.
            reason: Why loading failed.
        """
        self.source = source
        self.reason = reason
        message = f"Failed to load Kubernetes configuration from {source}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AuthorityCallError(AccessReviewError, ConnectionError):
    """Raised when the rule listing round trip to the API server fails.

    Only the status code and reason of the underlying API exception are kept,
    never its body or headers.

    Attributes:
        status: HTTP status code, if the server responded.
        reason: Short failure reason.
    """

    def __init__(self, *, status: int | None = None, reason: str = "") -> None:
        """Initialize the exception.

        Args:
            status: HTTP status code, if the server responded.
            reason: Short failure reason.
        """
        self.status = status
        self.reason = reason
        message = "SelfSubjectRulesReview request failed"
        if reason:
            message = f"{message}: {reason}"
        if status is not None:
            message = f"{message} (HTTP {status})"
        AccessReviewError.__init__(self, message)


__all__ = [
    "AccessReviewConfigError",
    "AccessReviewError",
    "AuthorityCallError",
    "KubeConfigLoadError",
]
