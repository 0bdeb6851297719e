"""
Real Estate API - Owner Schemas
================================

What:  API contracts for POST /api/owners and GET /api/owners/{id}.
"""

from datetime import date
from typing import Optional

from pydantic import Field

from realestate.schemas.common import CamelModel


class OwnerCreate(CamelModel):
    """Body of POST /api/owners. Strings are trimmed by the service."""
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=300)
    photo: Optional[str] = Field(default=None, description="Opaque photo reference (URL or key)")
    birthday: Optional[date] = None


class OwnerView(CamelModel):
    """
    Read projection of an owner.

    `photo` is intentionally absent; it is write-only in this API.
    """
    id: int
    name: str
    address: Optional[str] = None
    birthday: Optional[date] = None
