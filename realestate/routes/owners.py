"""
Real Estate API - Owner Route Handlers
=======================================

What:  Create (authenticated) and read (anonymous) owners.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from realestate.database import get_db_session
from realestate.exceptions import NotFoundError
from realestate.schemas.common import ErrorResponse
from realestate.schemas.owner import OwnerCreate, OwnerView
from realestate.security import AuthenticatedUser, require_user
from realestate.services.property_service import property_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/owners", tags=["Owners"])


@router.post(
    "",
    status_code=201,
    response_model=OwnerView,
    responses={
        201: {"description": "Owner created", "model": OwnerView},
        400: {"description": "Invalid owner data", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Create an owner",
)
async def create_owner(
    body: OwnerCreate,
    response: Response,
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> OwnerView:
    """
    Create an owner and return it with a Location header pointing at
    GET /api/owners/{id}.
    """
    owner_id = await property_service.create_owner(
        db,
        name=body.name,
        address=body.address,
        photo=body.photo,
        birthday=body.birthday,
    )
    logger.info("User '%s' created owner %s", user.username, owner_id)

    created = await property_service.get_owner(db, owner_id)
    response.headers["Location"] = f"/api/owners/{owner_id}"
    return created


@router.get(
    "/{owner_id}",
    response_model=OwnerView,
    responses={
        200: {"description": "Owner details", "model": OwnerView},
        404: {"description": "Owner not found", "model": ErrorResponse},
    },
    summary="Get an owner by ID",
)
async def get_owner(
    owner_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> OwnerView:
    owner = await property_service.get_owner(db, owner_id)
    if owner is None:
        raise NotFoundError(resource="owner", resource_id=owner_id)
    return owner
