"""Request/response contracts for POST /api/auth/login."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class TokenResponse(BaseModel):
    token: str = Field(description="Signed JWT to send as `Authorization: Bearer <token>`")
