from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint

from warehouse.core.dates import utc_now
from warehouse.database.base import Base

# Integer columns are 32-bit on PostgreSQL and MySQL
MAX_QUANTITY = 2**31 - 1


class StockBalance(Base):
    __tablename__ = "stock_balances"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)

    quantity = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("item_id", name="uq_stock_balances_item"),
        CheckConstraint("quantity >= 0", name="ck_stock_balances_non_negative"),
    )


__all__ = ["MAX_QUANTITY", "StockBalance"]
