"""Unit test fixtures.

Unit tests run without a cluster: the Kubernetes API is patched and spans are
captured with an in-memory exporter.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog
from click.testing import CliRunner
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from metrics_rbac.telemetry.tracer_factory import reset_tracer, set_tracer
from metrics_rbac.tracing import TRACER_NAME

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def _reset_tracers() -> Generator[None, None, None]:
    """Keep cached tracers from leaking between tests."""
    reset_tracer()
    yield
    reset_tracer()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    """Drop log configuration made by a test, including captured streams."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Route access review spans to an in-memory exporter.

    Returns:
        Exporter holding every finished access review span.
    """
    exporter = InMemorySpanExporter()
    provider = TracerProvider(resource=Resource.create({}))
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    set_tracer(TRACER_NAME, provider.get_tracer(TRACER_NAME))
    return exporter


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Returns:
        CliRunner instance for testing Click commands.
    """
    return CliRunner()
