from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String

from warehouse.core.dates import utc_now
from warehouse.database.base import Base


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    # back-filled from the id right after insert, hence nullable
    code = Column(String(50), unique=True)

    name = Column(String(255), nullable=False)
    description = Column(String(512), nullable=False, default="")
    unit = Column(String(50), nullable=False)

    purchase_price = Column(Numeric(15, 2), nullable=False)
    sale_price = Column(Numeric(15, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("idx_items_name", "name"),
    )


__all__ = ["Item"]
