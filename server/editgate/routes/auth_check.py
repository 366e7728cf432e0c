# ─────────────────────────────────────────────────────────────────────────────
# /api/auth/check - credential probe for clients and operators
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request

from editgate.auth import BasicAuthenticator
from editgate.config import Settings
from editgate.dependencies import get_authenticator, get_settings_dep
from editgate.schemas import AuthCheckResponse

router = APIRouter()


@router.api_route("/api/auth/check", methods=["GET", "POST"], response_model=AuthCheckResponse)
async def auth_check(
    request: Request,
    authenticator: BasicAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings_dep),
) -> AuthCheckResponse:
    """200 when the Basic-auth header is valid, otherwise 401 with a challenge.

    Does not touch the rate limiter or the provider.
    """
    authenticator.require(request.headers.get("authorization"))
    return AuthCheckResponse(message="Authentication successful", user=settings.user_name)
