"""Cached OpenTelemetry tracers, one per instrumentation name.

A tracer is looked up from the global provider on first use and reused
afterwards. When the lookup raises, every later call gets a NoOpTracer, so
reviewing access never fails because of tracing.

Example:
    >>> from metrics_rbac.telemetry.tracer_factory import get_tracer
    >>> with get_tracer("metrics_rbac.access_review").start_as_current_span("op"):
    ...     pass
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from opentelemetry import trace

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer


class _TracerCache:
    """Name-to-tracer map guarded by a lock, with a sticky failure flag."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tracers: dict[str, Tracer] = {}
        self._failed = False

    def lookup(self, name: str) -> Tracer:
        cached = self._tracers.get(name)
        if cached is not None:
            return cached
        if self._failed:
            return trace.NoOpTracer()

        with self._lock:
            cached = self._tracers.get(name)
            if cached is not None:
                return cached
            if self._failed:
                return trace.NoOpTracer()
            try:
                tracer = trace.get_tracer(name)
            except Exception:
                # Broken global provider state; stop retrying until reset.
                self._failed = True
                return trace.NoOpTracer()
            self._tracers[name] = tracer
            return tracer

    def put(self, name: str, tracer: Tracer | None) -> None:
        with self._lock:
            if tracer is None:
                self._tracers.pop(name, None)
            else:
                self._tracers[name] = tracer

    def clear(self) -> None:
        with self._lock:
            self._tracers.clear()
            self._failed = False


_cache = _TracerCache()


def get_tracer(name: str = "metrics_rbac") -> Tracer:
    """Return the cached tracer for ``name``, creating it on first use.

    Args:
        name: Instrumentation name.

    Returns:
        Tracer from the global provider, or a NoOpTracer after a failed lookup.
    """
    return _cache.lookup(name)


def set_tracer(name: str, tracer: Tracer | None) -> None:
    """Install ``tracer`` under ``name``, or drop the cached one if None.

    Tests use this to route spans to an in-memory exporter.
    """
    _cache.put(name, tracer)


def reset_tracer() -> None:
    """Forget all cached tracers and any earlier lookup failure."""
    _cache.clear()


__all__ = ["get_tracer", "reset_tracer", "set_tracer"]
