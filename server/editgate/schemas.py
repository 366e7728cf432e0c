# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Response Schemas
# ─────────────────────────────────────────────────────────────────────────────


from pydantic import BaseModel, Field


class EditResponse(BaseModel):
    """Successful edit: the provider's image URLs in their original order."""

    success: bool = True
    images: list[str] = Field(..., min_length=1, description="Absolute http(s) or data: URLs")
    model: str = Field(..., description="Provider model identifier used for the edit")
    prompt: str = Field(..., description="Trimmed prompt that was submitted")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
    type: str | None = None


class AuthCheckResponse(BaseModel):
    """Credential probe result."""

    success: bool = True
    message: str
    user: str


class LivenessResponse(BaseModel):
    """Liveness probe - minimal, near-zero cost."""

    status: str = "ok"


class ReadinessResponse(BaseModel):
    """Readiness probe - can the instance serve edits?"""

    status: str  # "ready" or "not_ready"
    provider_configured: bool
    auth_configured: bool


class DebugStatusResponse(BaseModel):
    """Configuration presence flags. Never carries secret values or their lengths."""

    status: str = "API is working"
    provider_configured: bool
    auth_configured: bool
    default_model: str
    image_input_mode: str
    rate_limit_requests: int
    rate_limit_window_seconds: float
    tracked_clients: int = Field(0, ge=0)
    uptime_seconds: int = Field(0, ge=0)
