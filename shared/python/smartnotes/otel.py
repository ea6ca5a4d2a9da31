"""OpenTelemetry tracer bootstrap."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider

from smartnotes.config import get_settings


def init_otel(service_name: str, *, service_version: str = "0.1.0") -> TracerProvider:
    """Install a process-wide tracer provider tagged with the service identity.

    The global provider can only be set once; later calls return the one
    already installed when it is an SDK provider.
    """

    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        return current

    resource = Resource(
        attributes={
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
            "deployment.environment": get_settings().environment,
        }
    )
    provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(provider)
    return provider
