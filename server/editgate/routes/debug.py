# ─────────────────────────────────────────────────────────────────────────────
# Debug Routes - configuration and provider diagnostics
# ─────────────────────────────────────────────────────────────────────────────
# Only mounted when settings.enable_debug_routes is True. Reports whether
# things are configured, never the values (or lengths) of secrets.
# ─────────────────────────────────────────────────────────────────────────────

import time
from typing import Any

import httpx
import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from editgate.config import Settings
from editgate.dependencies import get_provider, get_rate_limiter, get_settings_dep
from editgate.exceptions import ProviderUnavailableError
from editgate.providers.protocol import GenerationProvider, ProviderError
from editgate.rate_limit import FixedWindowRateLimiter
from editgate.schemas import DebugStatusResponse

logger = structlog.get_logger(__name__)

router = APIRouter()

_start_time = time.time()


@router.get("/status", response_model=DebugStatusResponse)
async def debug_status(
    settings: Settings = Depends(get_settings_dep),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> DebugStatusResponse:
    """Configuration presence flags and limiter occupancy. For humans only."""
    return DebugStatusResponse(
        provider_configured=settings.provider_configured,
        auth_configured=settings.auth_configured,
        default_model=settings.default_model,
        image_input_mode=settings.image_input_mode,
        rate_limit_requests=settings.rate_limit_requests,
        rate_limit_window_seconds=settings.rate_limit_window_seconds,
        tracked_clients=len(rate_limiter),
        uptime_seconds=int(time.time() - _start_time),
    )


@router.get("/provider")
async def debug_provider(
    settings: Settings = Depends(get_settings_dep),
    provider: GenerationProvider = Depends(get_provider),
) -> Any:
    """Round-trip to the provider to confirm the token works.

    Raises ProviderUnavailableError (503) when no token is configured.
    """
    if not settings.provider_configured:
        raise ProviderUnavailableError("Image generation provider is not configured")

    t0 = time.perf_counter()
    try:
        result: dict[str, Any] = await provider.check()
    except (httpx.HTTPError, ProviderError) as e:
        # Provider detail stays in the server log.
        logger.warning("provider_check_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=502,
            content={"status": "error", "message": "Failed to connect to the provider API"},
        )
    result["provider"] = provider.name
    result["latency_ms"] = round((time.perf_counter() - t0) * 1000, 1)
    return result
