"""
Real Estate API - PropertyTrace SQLAlchemy Model
=================================================

What:  Append-only audit trail of price changes.
When:  One row is inserted by PropertyService.change_price every time a
       property's price actually changes; rows are never updated.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from realestate.database import Base
from realestate.models.property import utcnow

if TYPE_CHECKING:
    from realestate.models.property import Property


class PropertyTrace(Base):
    __tablename__ = "property_traces"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
    )

    date_of_change: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Who or why; "Price change" when the caller gave no label
    label: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # The new price at the time of the change
    value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    tax: Mapped[Decimal] = mapped_column(
        Numeric(18, 2),
        nullable=False,
        default=Decimal("0"),
        server_default=text("0"),
    )

    property: Mapped["Property"] = relationship(back_populates="traces")

    __table_args__ = (
        Index("idx_property_traces_property_id", "property_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<PropertyTrace(id={self.id}, property_id={self.property_id}, "
            f"value={self.value}, date_of_change='{self.date_of_change}')>"
        )
