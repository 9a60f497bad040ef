from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from pharmapos.database.base import Base


def _utc_now():
    return datetime.now(timezone.utc)


class Drug(Base):
    __tablename__ = "drugs"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False)
    category = Column(String(120))
    description = Column(Text)

    price = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utc_now,
        onupdate=_utc_now,
    )

    # Deleting a drug removes the sale lines that reference it.
    sale_items = relationship("SaleItem", back_populates="drug", cascade="all")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_drugs_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_drugs_quantity_non_negative"),
        Index("idx_drugs_name", "name"),
        Index("idx_drugs_created_at", "created_at"),
    )


__all__ = ["Drug"]
