"""
Real Estate API - Auth Route Handler
=====================================

What:  POST /api/auth/login exchanges a username/password pair for a JWT.
"""

import logging

from fastapi import APIRouter, Request

from realestate.schemas.auth import LoginRequest, TokenResponse
from realestate.schemas.common import ErrorResponse
from realestate.security import authenticate, issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        200: {"description": "Signed bearer token", "model": TokenResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Obtain a bearer token",
)
async def login(body: LoginRequest, request: Request) -> TokenResponse:
    """
    Validate credentials and return a signed token.

    The token goes in `Authorization: Bearer <token>` on every write
    endpoint and expires after JWT_EXPIRE_MINUTES (8 hours by default).
    """
    settings = request.app.state.settings
    user = authenticate(settings, body.username, body.password)
    return TokenResponse(token=issue_token(settings, user))
