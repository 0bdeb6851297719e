"""
Real Estate API - Property Schemas
===================================

What:  Pydantic models defining the property API contract.
How:   FastAPI validates request bodies against these models (failures become
       400 responses via the handler in main.py) and serializes responses
       through them.

Field constraints mirror the column sizes in realestate.models.property.
The construction-year upper bound depends on the current date, so the
schema only rejects obviously bad years and the service applies the exact
rule (1800 <= year <= current year + 1).
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from realestate.schemas.common import CamelModel, Money

MAX_PRICE = Decimal("999999999")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PropertyCreate(CamelModel):
    """Body of POST /api/properties."""
    code_internal: str = Field(min_length=3, max_length=64, description="Unique business code")
    name: str = Field(min_length=3, max_length=200)
    address: str = Field(min_length=1, max_length=300)
    year: int = Field(ge=1800, le=2100, description="Construction year")
    price: Decimal = Field(ge=0, le=MAX_PRICE, max_digits=18, decimal_places=2)
    owner_id: Optional[int] = Field(default=None, description="Existing owner id, or null")


class PropertyUpdate(CamelModel):
    """
    Body of PUT /api/properties/{id}.

    `version_token` is the value last read from GET; it is mandatory here.
    """
    name: str = Field(min_length=3, max_length=200)
    address: str = Field(min_length=1, max_length=300)
    year: int = Field(ge=1800, le=2100)
    version_token: str = Field(min_length=1, description="Token from the last read")


class PriceChange(CamelModel):
    """
    Body of PATCH /api/properties/{id}/price.

    `version_token` is optional on this route; when omitted the price is
    changed without a concurrency check.
    """
    new_price: Decimal = Field(ge=0, le=MAX_PRICE, max_digits=18, decimal_places=2)
    changed_by: Optional[str] = Field(default=None, max_length=200)
    version_token: Optional[str] = None


class PropertyFilter(CamelModel):
    """
    Query parameters of GET /api/properties, gathered into one object.

    Out-of-range `page`/`page_size` values are clamped by the service rather
    than rejected, so no bounds are declared here.
    """
    search: Optional[str] = None
    year_from: Optional[int] = None
    year_to: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    with_images: Optional[bool] = None
    sort_by: Optional[str] = None
    desc: bool = False
    page: int = 1
    page_size: int = 20


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PropertyView(CamelModel):
    """
    What:  Full representation of a property.
    Who:   GET /api/properties/{id}, list items, and the POST response body.

    `image_count` is derived at query time. `version_token` is the base64
    form of the row version; send it back unchanged on PUT/PATCH.
    """
    id: int
    code_internal: str
    name: str
    address: str
    year: int
    price: Money
    created_at: datetime
    updated_at: Optional[datetime] = None
    image_count: int = 0
    version_token: str
    owner_id: Optional[int] = None
    owner_name: Optional[str] = None


class PropertyTraceView(CamelModel):
    """One entry of a property's price history."""
    id: int
    date_of_change: datetime
    label: Optional[str] = None
    value: Money
    tax: Money
