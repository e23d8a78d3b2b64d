"""
VK.com OAuth 2.0 routes.

Endpoints:
- GET /auth/vkontakte/login    - Redirect to the VK authorization dialog
- GET /auth/vkontakte/callback - Complete the flow and return the user

The strategy is taken from ``app.state.vkontakte_strategy``.
"""

import logging
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import RedirectResponse

from vkontakte_auth.services.oauth import OAuthProviderError, VKontakteStrategy

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth/vkontakte", tags=["oauth"])


def _get_strategy(request: Request) -> VKontakteStrategy:
    strategy = getattr(request.app.state, "vkontakte_strategy", None)
    if strategy is None:
        raise HTTPException(status_code=503, detail="VK OAuth is not configured")
    return strategy


@router.get("/login")
async def vkontakte_login(
    request: Request,
    display: Literal["page", "popup", "mobile"] | None = Query(None, description="VK dialog display mode"),
) -> RedirectResponse:
    """
    Initiate OAuth login flow.

    Example:
        GET /auth/vkontakte/login?display=popup
    """
    strategy = _get_strategy(request)
    options = {"display": display} if display else {}
    result = await strategy.authenticate(request, **options)

    if result.kind != "redirect":
        logger.error(f"Unexpected outcome on VK login: {result.kind}")
        raise HTTPException(status_code=500, detail="Could not start VK authentication")

    logger.info("Initiating OAuth login with vkontakte")
    return RedirectResponse(url=result.location)


@router.get("/callback")
async def vkontakte_callback(request: Request) -> dict:
    """
    Handle the VK redirect.

    Returns:
        {"user": {...}, "info": ...} on success
    """
    strategy = _get_strategy(request)
    result = await strategy.authenticate(request)

    if result.kind == "success":
        logger.info("OAuth authentication successful for vkontakte")
        return {
            "user": jsonable_encoder(result.user, exclude={"raw"}),
            "info": jsonable_encoder(result.info),
        }

    if result.kind == "fail":
        logger.info("OAuth authentication rejected for vkontakte")
        raise HTTPException(status_code=401, detail=jsonable_encoder(result.info) or "Authentication failed")

    if result.kind == "error":
        if isinstance(result.error, OAuthProviderError):
            logger.error(f"OAuth authentication failed: {str(result.error)}")
        raise result.error

    # a callback request without a code restarts the flow
    return RedirectResponse(url=result.location)
