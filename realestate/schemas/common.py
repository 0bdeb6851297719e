"""
Real Estate API - Shared Pydantic Schemas
==========================================

What:  Building blocks reused by every resource schema: the camelCase base
       model, the money type, the paginated envelope, and the error and
       health payloads.
"""

from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Decimals are kept exact internally and emitted as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """
    Base for API contracts.

    Python attributes are snake_case; JSON keys are camelCase
    (`code_internal` ↔ `codeInternal`). Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PagedResult(CamelModel, Generic[T]):
    """
    What:  Offset-paginated response envelope.
    Who:   Returned by GET /api/properties.

    `total` counts every row matching the filter before pagination, so
    clients can render "showing 11-20 of 35".
    """

    page: int = Field(description="1-based page number actually served")
    page_size: int = Field(description="Page size actually applied (1-200)")
    total: int = Field(description="Rows matching the filter before pagination")
    items: List[T] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "concurrency_conflict",
            "message": "The property was modified by another process. Please refresh and retry.",
            "details": {"resource": "property", "resource_id": "12"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check payload returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
