# ─────────────────────────────────────────────────────────────────────────────
# Prometheus Metrics Endpoint - text exposition format
# ─────────────────────────────────────────────────────────────────────────────
# GET /metrics/prometheus → text/plain Prometheus format
# Bridges EditMetrics → prometheus-client gauges.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CollectorRegistry, Gauge, generate_latest

from editgate.config import Settings
from editgate.dependencies import get_metrics, get_rate_limiter, get_settings_dep
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.services.metrics import EditMetrics

router = APIRouter()

# ── Prometheus metrics (custom registry to avoid default process metrics) ─────

_registry = CollectorRegistry()

# Gauges mirror EditMetrics' monotonic totals so a scrape always matches /metrics.
_requests_by_outcome = Gauge(
    "editgate_requests",
    "Edit requests handled, by outcome",
    ["outcome"],
    registry=_registry,
)

_latency_ms = Gauge(
    "editgate_request_latency_ms",
    "Edit request latency percentiles over the last 1000 requests",
    ["quantile"],
    registry=_registry,
)

_images_returned = Gauge(
    "editgate_images_returned",
    "Image URLs returned to clients",
    registry=_registry,
)

_tracked_clients = Gauge(
    "editgate_rate_limit_tracked_clients",
    "Client windows currently held by the rate limiter",
    registry=_registry,
)

_provider_configured = Gauge(
    "editgate_provider_configured",
    "Whether a provider API token is configured (1) or not (0)",
    registry=_registry,
)


def _sync_metrics(
    metrics: EditMetrics, rate_limiter: FixedWindowRateLimiter, settings: Settings
) -> None:
    """Sync EditMetrics data into Prometheus gauges."""
    data = metrics.to_dict()

    for outcome, count in data["outcomes"].items():
        _requests_by_outcome.labels(outcome=outcome).set(count)

    _latency_ms.labels(quantile="0.5").set(data["latency_p50_ms"])
    _latency_ms.labels(quantile="0.95").set(data["latency_p95_ms"])
    _images_returned.set(data["images_returned"])
    _tracked_clients.set(len(rate_limiter))
    _provider_configured.set(1 if settings.provider_configured else 0)


@router.get("/metrics/prometheus")
async def prometheus_metrics(
    metrics: EditMetrics = Depends(get_metrics),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
) -> Response:
    """Prometheus text exposition format metrics endpoint."""
    _sync_metrics(metrics, rate_limiter, settings)
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
