"""Request tracing for the favorites backend.

Spans are exported over OTLP/HTTP when a traces endpoint is configured.
Every service operation runs inside ``service_span``, so the member and
favorite ids an operation touched are on the trace of the request.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from subway import __version__
from subway.core.config import require_config, settings

logger = structlog.get_logger(__name__)

# Built per process on first use, so forked workers never share a batch processor
_provider: TracerProvider | None = None
_provider_lock = threading.Lock()

SpanAttribute = str | int | float | bool


def get_tracer_provider() -> TracerProvider | None:
    """
    Return this process's TracerProvider, building it on the first call.

    Returns:
        TracerProvider, or None when OTEL_ENABLED is off
    """
    global _provider  # noqa: PLW0603
    if not settings.OTEL_ENABLED:
        return None
    with _provider_lock:
        if _provider is None:
            _provider = _build_tracer_provider()
    return _provider


def _build_tracer_provider() -> TracerProvider:
    """
    Create a provider for this service, exporting over OTLP when an endpoint is set.

    Raises:
        ValueError: If no traces endpoint is configured outside DEBUG
    """
    if not settings.DEBUG:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.OTEL_SERVICE_NAME,
                "service.version": __version__,
                "deployment.environment": settings.OTEL_ENVIRONMENT,
            }
        )
    )
    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT
    if endpoint:
        exporter = OTLPSpanExporter(endpoint=endpoint, headers=_parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS))
        provider.add_span_processor(BatchSpanProcessor(exporter))

    logger.info("tracing_configured", endpoint=endpoint, service_name=settings.OTEL_SERVICE_NAME)
    return provider


def _parse_otlp_headers(raw: str | None) -> dict[str, str]:
    """Split ``"key=value,key2=value2"`` into a header dict, skipping pairs without ``=``."""
    headers: dict[str, str] = {}
    for pair in (raw or "").split(","):
        key, sep, value = pair.partition("=")
        if sep:
            headers[key.strip()] = value.strip()
        elif pair.strip():
            logger.warning("otel_malformed_header", pair=pair.strip())
    return headers


def shutdown_tracing() -> None:
    """Flush buffered spans and forget the provider. Does nothing if none was built."""
    global _provider  # noqa: PLW0603
    with _provider_lock:
        if _provider is not None:
            _provider.shutdown()
            _provider = None
            logger.info("tracing_shutdown")


@contextmanager
def service_span(
    name: str,
    service: str,
    kind: SpanKind = SpanKind.INTERNAL,
    **attributes: SpanAttribute,
) -> Generator[Span]:
    """Run a service operation inside a span tagged with ``peer.service``.

    The span ends with status OK unless the block raises; the SDK then records
    the exception and marks the span ERROR. The tracer is looked up on each
    call so spans go to whichever provider the lifespan installed.

    Example:
        with service_span("delete_favorite", "favorite-service", **{"favorite.id": 7}) as span:
            ...
    """
    tracer = trace.get_tracer(__name__, __version__)
    with tracer.start_as_current_span(name, kind=kind, attributes={"peer.service": service, **attributes}) as span:
        yield span
        span.set_status(Status(StatusCode.OK))
