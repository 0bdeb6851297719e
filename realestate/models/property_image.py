"""
Real Estate API - PropertyImage SQLAlchemy Model
=================================================

Images are insert-only. The binary payload is kept as base64 text so it
can travel through JSON without a second encoding step.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from realestate.database import Base
from realestate.models.property import utcnow

if TYPE_CHECKING:
    from realestate.models.property import Property


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Base64-encoded image bytes
    file: Mapped[str] = mapped_column(Text, nullable=False)

    enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    property: Mapped["Property"] = relationship(back_populates="images")

    __table_args__ = (
        Index("idx_property_images_property_id", "property_id"),
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, enabled={self.enabled})>"
