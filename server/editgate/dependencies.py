# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection - FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from editgate.auth import BasicAuthenticator
from editgate.config import Settings
from editgate.providers.protocol import GenerationProvider
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.services.metrics import EditMetrics
from editgate.services.orchestrator import EditOrchestrator


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_authenticator(request: Request) -> BasicAuthenticator:
    """Inject BasicAuthenticator into endpoints via Depends()."""
    return request.app.state.authenticator  # type: ignore[no-any-return]


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    """Inject the per-client rate limiter via Depends()."""
    return request.app.state.rate_limiter  # type: ignore[no-any-return]


def get_provider(request: Request) -> GenerationProvider:
    """Inject the generation provider client via Depends()."""
    return request.app.state.provider  # type: ignore[no-any-return]


def get_metrics(request: Request) -> EditMetrics:
    """Inject EditMetrics into endpoints via Depends()."""
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_orchestrator(request: Request) -> EditOrchestrator:
    """Inject EditOrchestrator into endpoints via Depends()."""
    return request.app.state.orchestrator  # type: ignore[no-any-return]


def require_basic_auth(request: Request) -> None:
    """Router-level guard: 401 + challenge unless Basic-auth credentials match."""
    get_authenticator(request).require(request.headers.get("authorization"))
