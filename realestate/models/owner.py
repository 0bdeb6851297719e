"""
Real Estate API - Owner SQLAlchemy Model
=========================================

What:  ORM model for the `owners` table.
Who:   Created by PropertyService.create_owner; referenced by Property.owner_id.

Owners are never deleted in this scope; deleting a property leaves its
owner untouched.
"""

from datetime import date
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from realestate.database import Base

if TYPE_CHECKING:
    from realestate.models.property import Property


class Owner(Base):
    """A person or company holding zero or more properties."""

    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    # Opaque reference (URL or storage key); the API never interprets it
    photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    properties: Mapped[List["Property"]] = relationship(back_populates="owner")

    def __repr__(self) -> str:
        return f"<Owner(id={self.id}, name='{self.name}')>"
