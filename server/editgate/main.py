# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn editgate.main:create_app --factory --host 0.0.0.0 --port 8080

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from editgate.auth import BasicAuthenticator
from editgate.config import Settings, get_settings
from editgate.dependencies import require_basic_auth
from editgate.exceptions import register_exception_handlers
from editgate.logging_config import configure_logging
from editgate.middleware import RequestContextMiddleware
from editgate.providers.replicate import ReplicateProvider
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.routes import auth_check, debug, generate, health
from editgate.routes import prometheus as prometheus_routes
from editgate.services.metrics import EditMetrics
from editgate.services.orchestrator import EditOrchestrator

logger = structlog.get_logger(__name__)


if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider


def _configure_otel(exporter_type: str) -> "TracerProvider | None":
    """Configure OpenTelemetry tracing (console or gcp)."""
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))  # type: ignore[no-untyped-call]
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return None
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return None

    from opentelemetry import trace

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)
    return provider


def build_state(app: FastAPI, settings: Settings) -> ReplicateProvider:
    """Create the per-process collaborators and attach them to app.state."""
    provider = ReplicateProvider(
        settings.replicate_api_token.get_secret_value(),
        base_url=settings.replicate_api_base,
        timeout=settings.provider_http_timeout_seconds,
    )
    authenticator = BasicAuthenticator(
        settings.user_name,
        settings.password.get_secret_value(),
        realm=settings.auth_realm,
    )
    rate_limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        max_clients=settings.rate_limit_max_clients,
    )
    metrics = EditMetrics()

    app.state.settings = settings
    app.state.provider = provider
    app.state.authenticator = authenticator
    app.state.rate_limiter = rate_limiter
    app.state.metrics = metrics
    app.state.orchestrator = EditOrchestrator(
        settings, authenticator, rate_limiter, provider, metrics=metrics
    )
    return provider


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown: provider HTTP client and tracing."""
    settings = get_settings()

    otel_provider = None
    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        otel_provider = _configure_otel(otel_exporter)

    provider = build_state(app, settings)

    if not settings.provider_configured:
        logger.warning("provider_not_configured", hint="Set REPLICATE_API_TOKEN")
    if not settings.auth_configured:
        logger.warning(
            "basic_auth_not_configured",
            hint="Set USER_NAME and PASSWORD. Every request will be rejected.",
        )
    logger.info(
        "editgate_started",
        default_model=settings.default_model,
        image_input_mode=settings.image_input_mode,
        rate_limit=f"{settings.rate_limit_requests}/{settings.rate_limit_window_seconds:g}s",
    )

    yield

    await provider.close()

    if otel_provider is not None:
        otel_provider.shutdown()


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated CORS origins. Empty string → deny all."""
    if not allowed_origins.strip():
        logger.warning(
            "cors_no_origins_configured",
            hint="Set ALLOWED_ORIGINS env var. Cross-origin requests will be rejected.",
        )
        return []
    return [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn editgate.main:create_app --factory"""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="editgate",
        description="Authenticated, rate-limited image edit gateway",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware order (Starlette applies in reverse): CORS → RequestContext
    app.add_middleware(RequestContextMiddleware)

    origins = _parse_origins(settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Retry-After", "X-Request-ID", "WWW-Authenticate"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(generate.router, tags=["generate"])
    app.include_router(auth_check.router, tags=["auth"])
    app.include_router(prometheus_routes.router, tags=["prometheus"])
    if settings.enable_debug_routes:
        app.include_router(
            debug.router,
            prefix="/debug",
            tags=["debug"],
            dependencies=[Depends(require_basic_auth)],
        )

    return app
