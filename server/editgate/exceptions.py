# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class EditGateError(Exception):
    """Base exception for all edit request failures."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(EditGateError):
    """Raised when Basic-auth credentials are missing, malformed, or wrong.

    The message is deliberately generic; the reason is only logged.
    """

    def __init__(self, challenge: str = 'Basic realm="API Access"') -> None:
        self.challenge = challenge
        super().__init__("Authentication required", status_code=401)


class RateLimitError(EditGateError):
    """Raised when a client exhausts its fixed rate window.

    The exception handler adds retry_after_seconds as a Retry-After header.
    """

    def __init__(self, retry_after_seconds: int = 60) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__("Rate limit exceeded", status_code=429)


class ValidationError(EditGateError):
    """Raised when the prompt or image fails validation. Carries the reason verbatim."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason, status_code=400)


class SubmissionError(EditGateError):
    """Raised when the provider rejects or cannot be reached at job creation."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Failed to start prediction", status_code=500)


class GenerationTimeoutError(EditGateError):
    """Raised when the job reaches no terminal status within the wait ceiling."""

    def __init__(self, job_id: str, timeout_s: float) -> None:
        self.job_id = job_id
        super().__init__(
            f"Image generation timed out after {timeout_s:g}s",
            status_code=408,
        )


class NoOutputError(EditGateError):
    """Raised when a succeeded job yields zero usable image URLs."""

    def __init__(self, message: str = "No valid images were generated") -> None:
        super().__init__(message, status_code=500)


class ProviderFailureError(EditGateError):
    """Raised when the job reaches the Failed state."""

    def __init__(self, provider_error: str | None) -> None:
        self.provider_error = provider_error or "unknown error"
        super().__init__(f"Prediction failed: {self.provider_error}", status_code=500)


class ProviderUnavailableError(EditGateError):
    """Raised when the provider is not configured or stops answering mid-job."""

    def __init__(self, message: str = "Image generation provider is unavailable") -> None:
        super().__init__(message, status_code=503)


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints and the orchestrator raise EditGateError subclasses; these
    handlers turn them into structured JSON. No inline try/except in endpoints.
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """401 with WWW-Authenticate so compliant clients can retry with credentials."""
        return JSONResponse(
            status_code=401,
            content={"error": exc.message, "type": "AuthenticationError"},
            headers={"WWW-Authenticate": exc.challenge},
        )

    @app.exception_handler(RateLimitError)
    async def rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
        """429 with Retry-After header."""
        return JSONResponse(
            status_code=429,
            content={"error": exc.message, "type": "RateLimitError"},
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("edit_request_rejected", reason=exc.reason)
        return JSONResponse(
            status_code=400,
            content={"error": exc.reason, "type": "ValidationError"},
        )

    @app.exception_handler(EditGateError)
    async def editgate_error_handler(request: Request, exc: EditGateError) -> JSONResponse:
        logger.error(
            "editgate_error",
            error=exc.message,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "type": type(exc).__name__},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("malformed_request", errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "type": "ValidationError"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail), "type": "HTTPException"},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "UnhandledError"},
        )
