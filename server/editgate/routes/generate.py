# ─────────────────────────────────────────────────────────────────────────────
# /api/generate - image edit endpoint (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from editgate.dependencies import get_orchestrator
from editgate.schemas import EditResponse, ErrorResponse
from editgate.services.orchestrator import EditOrchestrator

router = APIRouter()

_ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (400, 401, 408, 429, 500, 503)
}


@router.post("/api/generate", response_model=EditResponse, responses=_ERROR_RESPONSES)
async def generate(
    request: Request,
    orchestrator: EditOrchestrator = Depends(get_orchestrator),
) -> EditResponse:
    """Edit an uploaded image with a text instruction.

    multipart/form-data fields: ``prompt`` (text), ``image`` (jpeg/png/webp
    file), optional ``model``. The body is parsed by the orchestrator, after
    the auth and rate-limit gates, so rejected clients never upload work.
    Errors are exceptions. This endpoint is just wiring.
    """
    return await orchestrator.handle(request)


@router.api_route("/api/generate", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def generate_method_not_allowed(
    request: Request,
    orchestrator: EditOrchestrator = Depends(get_orchestrator),
) -> None:
    """Authenticate first, then 405."""
    orchestrator.reject_method(request)
