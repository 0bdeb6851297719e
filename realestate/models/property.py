"""
Real Estate API - Property SQLAlchemy Model
============================================

What:  ORM model for the `properties` table.
How:   Inherits from the shared DeclarativeBase; Alembic mirrors this file in
       migration 001.
Who:   Written and read exclusively by PropertyService.

Table Design:
    - code_internal: business key, unique across all properties (unique index)
    - price: NUMERIC(18,2), never negative, capped at 999,999,999 by the API
    - owner_id: nullable FK; a property may be listed without an owner
    - row_version: optimistic-concurrency counter managed by SQLAlchemy
      (`version_id_col`). Every ORM UPDATE is emitted as
          UPDATE properties SET ..., row_version = :new
          WHERE id = :id AND row_version = :loaded
      and a zero-row match raises StaleDataError.

    Indexes on year, price and created_at back the list endpoint's range
    filters and sort keys.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from realestate.database import Base

if TYPE_CHECKING:
    from realestate.models.owner import Owner
    from realestate.models.property_image import PropertyImage
    from realestate.models.property_trace import PropertyTrace


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Property(Base):
    """
    A real-estate listing.

    Lifecycle:
        1. Created with row_version = 1
        2. Updated via update_property / change_price; each write bumps
           row_version
        3. Deleting a property cascades to its images and traces
    """

    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    code_internal: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    address: Mapped[str] = mapped_column(String(300), nullable=False)

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    owner_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("owners.id"),
        nullable=True,
    )

    # ── Timestamps (UTC) ──────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Concurrency Token ─────────────────────────────────────────────────
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    # ── Relationships ─────────────────────────────────────────────────────
    owner: Mapped[Optional["Owner"]] = relationship(back_populates="properties")

    images: Mapped[List["PropertyImage"]] = relationship(
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    traces: Mapped[List["PropertyTrace"]] = relationship(
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": row_version}

    __table_args__ = (
        Index("idx_properties_year", "year"),
        Index("idx_properties_price", "price"),
        Index("idx_properties_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Property(id={self.id}, code='{self.code_internal}', "
            f"price={self.price}, row_version={self.row_version})>"
        )
