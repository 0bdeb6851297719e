"""
Real Estate API - Authentication
=================================

What:  Issues and verifies HS256 JSON Web Tokens for the write endpoints.
How:   PyJWT signs a token carrying `sub` (username), `role`, `iat` and
       `exp`. The `require_user` dependency reads the `Authorization: Bearer`
       header via FastAPI's HTTPBearer scheme and verifies signature and
       expiry against the secret in `app.state.settings`.
Who:   POST /api/auth/login calls `authenticate()` + `issue_token()`;
       protected routes declare `Depends(require_user)`.

Credential Store:
    Accepted username/password pairs come from settings.auth_users
    (AUTH_USERS). There is no user table in this service.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from realestate.config import DemoUser, Settings
from realestate.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported as 401 by require_user
bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Identity extracted from a verified token."""
    username: str
    role: str


def authenticate(settings: Settings, username: str, password: str) -> DemoUser:
    """
    Check a username/password pair against the configured users.

    Raises:
        UnauthorizedError: unknown user or wrong password
    """
    user = settings.demo_users.get(username)
    if user is None or not hmac.compare_digest(user.password, password):
        logger.warning("Rejected login for user '%s'", username)
        raise UnauthorizedError(message="Invalid username or password.")
    return user


def issue_token(settings: Settings, user: DemoUser, now: Optional[datetime] = None) -> str:
    """Sign a JWT for `user` that expires after settings.jwt_expire_minutes."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.username,
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expire_minutes),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    logger.info("JWT issued for user '%s' (role=%s)", user.username, user.role)
    return token


def verify_token(settings: Settings, token: str) -> AuthenticatedUser:
    """
    Decode and verify a bearer token.

    Raises:
        UnauthorizedError: bad signature, expired, or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(message="Token has expired.")
    except jwt.InvalidTokenError as e:
        logger.debug("Invalid bearer token: %s", str(e))
        raise UnauthorizedError(message="Invalid bearer token.")

    return AuthenticatedUser(username=payload["sub"], role=payload.get("role", "User"))


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency guarding the write endpoints."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(message="Missing bearer token.")
    return verify_token(request.app.state.settings, credentials.credentials)


async def image_upload_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthenticatedUser]:
    """
    Guard for the image upload route.

    Anonymous unless settings.images_require_auth is set; a supplied token
    is still verified either way.
    """
    settings: Settings = request.app.state.settings
    if credentials is None or not credentials.credentials:
        if settings.images_require_auth:
            raise UnauthorizedError(message="Missing bearer token.")
        return None
    return verify_token(settings, credentials.credentials)
