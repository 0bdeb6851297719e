"""
Real Estate API - Property Route Handlers
==========================================

What:  Listing, detail, creation, update, price change, image upload and
       price history for properties.
How:   Extracts query/body/form data, enforces auth via dependencies,
       delegates to PropertyService, picks the status code.

Auth Matrix:
    GET    anonymous
    POST   /api/properties                  bearer token
    PUT    /api/properties/{id}             bearer token
    PATCH  /api/properties/{id}/price       bearer token
    POST   /api/properties/{id}/images      anonymous unless IMAGES_REQUIRE_AUTH

Concurrency:
    GET responses carry `versionToken`. PUT requires it back; PATCH /price
    accepts it optionally. A stale token yields 409 and the client should
    re-read before retrying.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from realestate.database import get_db_session
from realestate.exceptions import NotFoundError
from realestate.schemas.common import ErrorResponse, PagedResult
from realestate.schemas.property import (
    PriceChange,
    PropertyCreate,
    PropertyFilter,
    PropertyTraceView,
    PropertyUpdate,
    PropertyView,
)
from realestate.security import AuthenticatedUser, image_upload_user, require_user
from realestate.services.property_service import property_service
from realestate.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/properties", tags=["Properties"])

CONFLICT_RESPONSE = {
    "description": "Version token is stale; re-read the property and retry",
    "model": ErrorResponse,
}


def get_upload_service(request: Request) -> UploadService:
    return UploadService(max_size=request.app.state.settings.max_image_size)


@router.get(
    "",
    response_model=PagedResult[PropertyView],
    responses={
        200: {"description": "One page of properties"},
        400: {"description": "Malformed query parameter", "model": ErrorResponse},
    },
    summary="List properties with filters, sorting and pagination",
)
async def list_properties(
    response: Response,
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive substring of name, internal code or address",
    ),
    year_from: Optional[int] = Query(default=None, alias="yearFrom"),
    year_to: Optional[int] = Query(default=None, alias="yearTo"),
    min_price: Optional[Decimal] = Query(default=None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(default=None, alias="maxPrice"),
    with_images: Optional[bool] = Query(
        default=None,
        alias="withImages",
        description="true: only properties with images; false: only without",
    ),
    sort_by: Optional[str] = Query(
        default=None,
        alias="sortBy",
        description="price, year, createdAt or name (case-insensitive); default id",
    ),
    desc: bool = Query(default=False, description="Reverse the sort order"),
    page: int = Query(default=1, description="1-based page; values below 1 are treated as 1"),
    page_size: int = Query(
        default=20,
        alias="pageSize",
        description="Items per page, clamped to 1-200",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> PagedResult[PropertyView]:
    """
    Example:
        GET /api/properties?search=main&yearFrom=2000&sortBy=price&desc=true&page=2&pageSize=10

    The filtered total is also returned in the X-Total-Count header.
    """
    filters = PropertyFilter(
        search=search,
        year_from=year_from,
        year_to=year_to,
        min_price=min_price,
        max_price=max_price,
        with_images=with_images,
        sort_by=sort_by,
        desc=desc,
        page=page,
        page_size=page_size,
    )
    result = await property_service.list_properties(db, filters)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/{property_id}",
    response_model=PropertyView,
    responses={
        200: {"description": "Property details", "model": PropertyView},
        404: {"description": "Property not found", "model": ErrorResponse},
    },
    summary="Get a property by ID",
)
async def get_property(
    property_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> PropertyView:
    prop = await property_service.get_property(db, property_id)
    if prop is None:
        raise NotFoundError(resource="property", resource_id=property_id)
    return prop


@router.post(
    "",
    status_code=201,
    response_model=PropertyView,
    responses={
        201: {"description": "Property created", "model": PropertyView},
        400: {"description": "Invalid property data or year out of range", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Referenced owner not found", "model": ErrorResponse},
        409: {"description": "Internal code already exists", "model": ErrorResponse},
    },
    summary="Create a property",
)
async def create_property(
    body: PropertyCreate,
    response: Response,
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> PropertyView:
    """
    Create a property and return its full view (including the initial
    version token) with a Location header.
    """
    property_id = await property_service.create_property(
        db,
        code_internal=body.code_internal,
        name=body.name,
        address=body.address,
        year=body.year,
        price=body.price,
        owner_id=body.owner_id,
    )
    logger.info("User '%s' created property %s", user.username, property_id)

    created = await property_service.get_property(db, property_id)
    response.headers["Location"] = f"/api/properties/{property_id}"
    return created


@router.put(
    "/{property_id}",
    status_code=204,
    response_class=Response,
    responses={
        204: {"description": "Property updated"},
        400: {"description": "Invalid data or malformed token", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Property not found", "model": ErrorResponse},
        409: CONFLICT_RESPONSE,
    },
    summary="Update name, address and year",
)
async def update_property(
    property_id: int,
    body: PropertyUpdate,
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await property_service.update_property(
        db,
        property_id,
        name=body.name,
        address=body.address,
        year=body.year,
        expected_version_token=body.version_token,
    )
    return Response(status_code=204)


@router.patch(
    "/{property_id}/price",
    status_code=204,
    response_class=Response,
    responses={
        204: {"description": "Price changed (or already at that value)"},
        400: {"description": "Invalid price or malformed token", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Property not found", "model": ErrorResponse},
        409: CONFLICT_RESPONSE,
    },
    summary="Change the price and record it in the price history",
)
async def change_price(
    property_id: int,
    body: PriceChange,
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    When `changedBy` is omitted the history entry gets the default
    "Price change" label.
    """
    await property_service.change_price(
        db,
        property_id,
        new_price=body.new_price,
        changed_by=body.changed_by,
        expected_version_token=body.version_token,
    )
    logger.info("User '%s' changed price of property %s", user.username, property_id)
    return Response(status_code=204)


@router.post(
    "/{property_id}/images",
    status_code=204,
    response_class=Response,
    responses={
        204: {"description": "Image stored"},
        400: {"description": "Empty or oversized file", "model": ErrorResponse},
        401: {"description": "Token required by configuration", "model": ErrorResponse},
        404: {"description": "Property not found", "model": ErrorResponse},
    },
    summary="Attach an image to a property",
)
async def upload_image(
    property_id: int,
    file: UploadFile = File(..., description="Image file (max 10MB)"),
    enabled: bool = Form(default=False),
    user: Optional[AuthenticatedUser] = Depends(image_upload_user),
    uploads: UploadService = Depends(get_upload_service),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    content = await uploads.read_upload(file)
    await property_service.add_image(db, property_id, content, enabled)
    return Response(status_code=204)


@router.get(
    "/{property_id}/traces",
    response_model=List[PropertyTraceView],
    responses={
        200: {"description": "Price history, oldest first"},
        404: {"description": "Property not found", "model": ErrorResponse},
    },
    summary="Get a property's price history",
)
async def list_traces(
    property_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[PropertyTraceView]:
    return await property_service.list_traces(db, property_id)
