"""
Real Estate API - Property Service (Business Logic)
====================================================

What:  Every owner and property operation: creation, lookup, listing,
       optimistic-concurrency updates, audited price changes, and image
       attachment.
How:   Stateless methods that receive a request-scoped AsyncSession. They
       validate input, query through SQLAlchemy, and `flush()` writes. The
       commit belongs to `get_db_session`, so all rows written by one call
       (a price change plus its trace) commit or roll back together.
Who:   Called by the owners and properties route handlers.

Optimistic Concurrency:
    Property.row_version is SQLAlchemy's `version_id_col`. A write goes:

        1. load the row (current version V)
        2. compare the caller's token against V → ConcurrencyConflictError
        3. mutate and flush → UPDATE ... WHERE id = :id AND row_version = V
        4. zero rows matched (someone else wrote after step 1)
           → StaleDataError → ConcurrencyConflictError

    Steps 2 and 4 together give "write-if-version-matches"; nothing is
    retried here.

Error Handling Strategy:
    Application errors (NotFoundError, ValidationError, ...) propagate as-is.
    Unexpected SQLAlchemy errors are logged and wrapped in DatabaseError so
    no driver detail reaches the client.
"""

import base64
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from realestate.exceptions import (
    ConcurrencyConflictError,
    DatabaseError,
    DuplicateKeyError,
    NotFoundError,
    OutOfRangeError,
    ValidationError,
)
from realestate.models import Owner, Property, PropertyImage, PropertyTrace
from realestate.schemas.common import PagedResult
from realestate.schemas.owner import OwnerView
from realestate.schemas.property import PropertyFilter, PropertyTraceView, PropertyView
from realestate.services.version_token import decode_version_token, encode_version_token

logger = logging.getLogger(__name__)

MIN_YEAR = 1800
MAX_PAGE_SIZE = 200
DEFAULT_TRACE_LABEL = "Price change"

# Keys are matched case-insensitively; anything else sorts by id
SORT_COLUMNS = {
    "price": Property.price,
    "year": Property.year,
    "createdat": Property.created_at,
    "name": Property.name,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _image_count():
    """Correlated COUNT(*) of a property's images, usable in SELECT and WHERE."""
    return (
        select(func.count(PropertyImage.id))
        .where(PropertyImage.property_id == Property.id)
        .correlate(Property)
        .scalar_subquery()
    )


def _view_query(image_count) -> Select:
    return (
        select(Property, image_count.label("image_count"), Owner.name.label("owner_name"))
        .outerjoin(Owner, Property.owner_id == Owner.id)
    )


def _to_view(prop: Property, image_count: int, owner_name: Optional[str]) -> PropertyView:
    return PropertyView(
        id=prop.id,
        code_internal=prop.code_internal,
        name=prop.name,
        address=prop.address,
        year=prop.year,
        price=prop.price,
        created_at=prop.created_at,
        updated_at=prop.updated_at,
        image_count=image_count or 0,
        version_token=encode_version_token(prop.row_version),
        owner_id=prop.owner_id,
        owner_name=owner_name,
    )


class PropertyService:
    """
    Business logic layer for owners and properties.

    Responsibilities:
        - create_owner() / get_owner()
        - create_property() / get_property() / list_properties()
        - update_property(): mandatory version token
        - change_price(): optional version token, writes a PropertyTrace
        - add_image(): append a base64-encoded image
        - list_traces(): price history of one property
    """

    # ══════════════════════════════════════════════════════════════════════
    # Owners
    # ══════════════════════════════════════════════════════════════════════

    async def create_owner(
        self,
        db: AsyncSession,
        name: str,
        address: Optional[str] = None,
        photo: Optional[str] = None,
        birthday: Optional[date] = None,
    ) -> int:
        """
        Persist a new owner and return its generated id.

        Names are not unique. `name` and `address` are trimmed.

        Raises:
            ValidationError: name is blank after trimming
            DatabaseError: insert failed
        """
        clean_name = name.strip()
        if not clean_name:
            raise ValidationError(message="Owner name must not be blank.", field="name")

        owner = Owner(
            name=clean_name,
            address=address.strip() if address is not None else None,
            photo=photo,
            birthday=birthday,
        )
        db.add(owner)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating owner: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the owner. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Owner %s created", owner.id)
        return owner.id

    async def get_owner(self, db: AsyncSession, owner_id: int) -> Optional[OwnerView]:
        """Returns the owner projection, or None when no such owner exists."""
        try:
            owner = await db.get(Owner, owner_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching owner %s: %s", owner_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the owner. Please try again.",
                context={"owner_id": owner_id},
            )
        if owner is None:
            return None
        return OwnerView.model_validate(owner)

    # ══════════════════════════════════════════════════════════════════════
    # Property writes
    # ══════════════════════════════════════════════════════════════════════

    async def create_property(
        self,
        db: AsyncSession,
        code_internal: str,
        name: str,
        address: str,
        year: int,
        price: Decimal,
        owner_id: Optional[int] = None,
    ) -> int:
        """
        Create a property and return its generated id.

        Validation order:
            1. year within [1800, current year + 1]   → OutOfRangeError
            2. code_internal not already used          → DuplicateKeyError
            3. owner exists, when owner_id is given    → NotFoundError

        created_at and updated_at are both set to the same UTC instant;
        SQLAlchemy assigns row_version = 1 on insert.
        """
        self._validate_year(year)
        code = code_internal.strip()

        try:
            existing = await db.scalar(
                select(Property.id).where(Property.code_internal == code).limit(1)
            )
            if existing is not None:
                raise DuplicateKeyError(field="codeInternal", value=code)

            if owner_id is not None and await db.get(Owner, owner_id) is None:
                raise NotFoundError(resource="owner", resource_id=owner_id)

            now = _utcnow()
            prop = Property(
                code_internal=code,
                name=name.strip(),
                address=address.strip(),
                year=year,
                price=price,
                owner_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            db.add(prop)
            await db.flush()

        except IntegrityError:
            # Lost a race with a concurrent insert of the same code
            logger.warning("Unique index rejected property code %s", code)
            raise DuplicateKeyError(field="codeInternal", value=code)
        except SQLAlchemyError as e:
            logger.error("Database error creating property %s: %s", code, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the property. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Property %s created (code=%s, owner=%s)", prop.id, code, owner_id)
        return prop.id

    async def update_property(
        self,
        db: AsyncSession,
        property_id: int,
        name: str,
        address: str,
        year: int,
        expected_version_token: str,
    ) -> None:
        """
        Replace the editable fields of a property under a version check.

        Raises:
            NotFoundError: no property with this id
            OutOfRangeError: year outside the allowed range
            ValidationError: malformed version token
            ConcurrencyConflictError: token does not match the stored version
        """
        prop = await self._load_property(db, property_id)
        self._validate_year(year)
        self._check_version(prop, decode_version_token(expected_version_token))

        prop.name = name.strip()
        prop.address = address.strip()
        prop.year = year
        prop.updated_at = _utcnow()

        await self._flush_versioned(db, prop)
        logger.info("Property %s updated (row_version=%s)", prop.id, prop.row_version)

    async def change_price(
        self,
        db: AsyncSession,
        property_id: int,
        new_price: Decimal,
        changed_by: Optional[str] = None,
        expected_version_token: Optional[str] = None,
    ) -> None:
        """
        Change a property's price and append a PropertyTrace row.

        Setting the price it already has is a successful no-op: no trace
        row, no timestamp change, and the token is not compared. Otherwise
        the version check runs when a token is supplied, and the trace
        insert and the price update are flushed together and share the
        request's transaction.

        Raises:
            NotFoundError: no property with this id
            ValidationError: malformed version token on an actual change
            ConcurrencyConflictError: supplied token is stale
        """
        prop = await self._load_property(db, property_id)

        if Decimal(new_price) == prop.price:
            logger.debug("Property %s price unchanged at %s; nothing to do", prop.id, prop.price)
            return

        if expected_version_token:
            self._check_version(prop, decode_version_token(expected_version_token))

        now = _utcnow()
        label = (changed_by or "").strip() or DEFAULT_TRACE_LABEL
        db.add(
            PropertyTrace(
                property_id=prop.id,
                date_of_change=now,
                label=label,
                value=new_price,
                tax=Decimal("0"),
            )
        )
        old_price = prop.price
        prop.price = new_price
        prop.updated_at = now

        await self._flush_versioned(db, prop)
        logger.info(
            "Property %s price changed %s -> %s by '%s'",
            prop.id,
            old_price,
            new_price,
            label,
        )

    async def add_image(
        self,
        db: AsyncSession,
        property_id: int,
        data: bytes,
        enabled: bool,
    ) -> int:
        """
        Attach an image to a property and return the new image id.

        The payload is stored base64-encoded. Adding an image does not
        touch the property row, so its version token is unchanged.

        Raises:
            ValidationError: data is empty
            NotFoundError: no property with this id
        """
        if not data:
            raise ValidationError(message="Image file is empty.", field="file")

        await self._load_property(db, property_id)

        image = PropertyImage(
            property_id=property_id,
            file=base64.b64encode(data).decode("ascii"),
            enabled=enabled,
            created_at=_utcnow(),
        )
        db.add(image)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error adding image to property %s: %s", property_id, str(e))
            raise DatabaseError(
                message="Could not store the image. Please try again.",
                context={"property_id": property_id},
            )

        logger.info(
            "Image %s added to property %s (%d bytes, enabled=%s)",
            image.id,
            property_id,
            len(data),
            enabled,
        )
        return image.id

    # ══════════════════════════════════════════════════════════════════════
    # Property reads
    # ══════════════════════════════════════════════════════════════════════

    async def get_property(self, db: AsyncSession, property_id: int) -> Optional[PropertyView]:
        """
        Single property with derived image count and owner name.

        Returns None when the id does not exist.
        """
        try:
            result = await db.execute(
                _view_query(_image_count()).where(Property.id == property_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching property %s: %s", property_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the property. Please try again.",
                context={"property_id": property_id},
            )

        if row is None:
            return None
        prop, image_count, owner_name = row
        return _to_view(prop, image_count, owner_name)

    async def list_properties(
        self,
        db: AsyncSession,
        filters: PropertyFilter,
    ) -> PagedResult[PropertyView]:
        """
        Filter, sort and paginate properties.

        Filters (AND-combined, each optional):
            search        case-insensitive substring of name, code or address
            year_from/to  inclusive year bounds
            min/max_price inclusive price bounds
            with_images   True → at least one image, False → none

        Sorting:
            sort_by ∈ {price, year, createdAt, name}, case-insensitive;
            anything else sorts by id ascending. `desc` reverses the chosen
            key. id ascending is always the tie-breaker.

        Pagination:
            page is raised to at least 1; page_size is clamped to [1, 200].
            `total` is the filtered count before pagination.
        """
        image_count = _image_count()
        conditions = []

        search = (filters.search or "").strip()
        if search:
            conditions.append(
                or_(
                    Property.name.icontains(search, autoescape=True),
                    Property.code_internal.icontains(search, autoescape=True),
                    Property.address.icontains(search, autoescape=True),
                )
            )
        if filters.year_from is not None:
            conditions.append(Property.year >= filters.year_from)
        if filters.year_to is not None:
            conditions.append(Property.year <= filters.year_to)
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)
        if filters.with_images is not None:
            conditions.append(image_count > 0 if filters.with_images else image_count == 0)

        sort_column = SORT_COLUMNS.get((filters.sort_by or "").strip().lower())
        if sort_column is None:
            order_by = [Property.id.asc()]
        else:
            order_by = [
                sort_column.desc() if filters.desc else sort_column.asc(),
                Property.id.asc(),
            ]

        page = max(1, filters.page)
        page_size = min(max(filters.page_size, 1), MAX_PAGE_SIZE)

        count_query = select(func.count(Property.id))
        items_query = _view_query(image_count)
        if conditions:
            count_query = count_query.where(and_(*conditions))
            items_query = items_query.where(and_(*conditions))
        items_query = (
            items_query.order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        try:
            total = await db.scalar(count_query) or 0
            rows = (await db.execute(items_query)).all()
        except SQLAlchemyError as e:
            logger.error("Database error listing properties: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve properties. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return PagedResult[PropertyView](
            page=page,
            page_size=page_size,
            total=total,
            items=[_to_view(prop, count, owner_name) for prop, count, owner_name in rows],
        )

    async def list_traces(self, db: AsyncSession, property_id: int) -> List[PropertyTraceView]:
        """Price history of one property, oldest first."""
        await self._load_property(db, property_id)
        try:
            result = await db.execute(
                select(PropertyTrace)
                .where(PropertyTrace.property_id == property_id)
                .order_by(PropertyTrace.date_of_change.asc(), PropertyTrace.id.asc())
            )
            traces = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing traces of %s: %s", property_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the price history. Please try again.",
                context={"property_id": property_id},
            )
        return [PropertyTraceView.model_validate(t) for t in traces]

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _validate_year(year: int) -> None:
        max_year = _utcnow().year + 1
        if year < MIN_YEAR or year > max_year:
            raise OutOfRangeError(field="year", value=year, minimum=MIN_YEAR, maximum=max_year)

    @staticmethod
    async def _load_property(db: AsyncSession, property_id: int) -> Property:
        try:
            prop = await db.get(Property, property_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading property %s: %s", property_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the property. Please try again.",
                context={"property_id": property_id},
            )
        if prop is None:
            raise NotFoundError(resource="property", resource_id=property_id)
        return prop

    @staticmethod
    def _check_version(prop: Property, expected_version: int) -> None:
        if prop.row_version != expected_version:
            logger.warning(
                "Stale version for property %s: expected %s, current %s",
                prop.id,
                expected_version,
                prop.row_version,
            )
            raise ConcurrencyConflictError(resource="property", resource_id=prop.id)

    @staticmethod
    async def _flush_versioned(db: AsyncSession, prop: Property) -> None:
        """Flush a versioned UPDATE, translating a lost race into a conflict."""
        try:
            await db.flush()
        except StaleDataError:
            logger.warning("Concurrent write detected on property %s", prop.id)
            raise ConcurrencyConflictError(resource="property", resource_id=prop.id)
        except SQLAlchemyError as e:
            logger.error("Database error writing property %s: %s", prop.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the property. Please try again.",
                context={"property_id": prop.id},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
# Stateless: sessions are passed per call
property_service = PropertyService()
