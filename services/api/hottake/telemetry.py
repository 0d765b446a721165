"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics for the take feed write path, read path and live fan-out

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Gauge, Histogram

from hottake.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
TAKES_CREATED_TOTAL = Counter(
    "takes_created_total",
    "Total number of takes persisted",
)

TAKES_DELETED_TOTAL = Counter(
    "takes_deleted_total",
    "Total number of takes deleted by their owners",
)

GATE_REJECTIONS_TOTAL = Counter(
    "posting_gate_rejections_total",
    "Take creation attempts refused because the posting gate was closed",
)

LIKE_TOGGLES_TOTAL = Counter(
    "like_toggles_total",
    "Like / unlike requests, split by whether the ledger changed",
    ["action", "changed"],  # action: 'like' | 'unlike'; changed: 'true' | 'false'
)

FEED_QUERY_LATENCY = Histogram(
    "feed_query_latency_seconds",
    "Latency of feed reads (windowed and unwindowed)",
    ["window"],  # 'all' | 'range'
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
)

LIVE_SUBSCRIBERS = Gauge(
    "feed_live_subscribers",
    "Feed subscribers currently connected to this replica",
)

BROADCAST_EVENTS_TOTAL = Counter(
    "feed_broadcast_events_total",
    "Feed events published",
    ["event"],
)

BROADCAST_DROPPED_TOTAL = Counter(
    "feed_broadcast_dropped_total",
    "Event deliveries dropped because a subscriber's buffer was full",
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing() -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    if not settings.otel_enabled:
        logger.info("OTel tracing disabled")
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Auto-instrument the libraries on the request path
    RedisInstrumentor().instrument()
    SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    if settings.otel_enabled:
        FastAPIInstrumentor.instrument_app(app)
