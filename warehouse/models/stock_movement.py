from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String

from warehouse.core.dates import utc_now
from warehouse.database.base import Base

INBOUND = "inbound"
OUTBOUND = "outbound"
MOVEMENT_KINDS = (INBOUND, OUTBOUND)


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    kind = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False)
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    note = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movements_positive"),
        CheckConstraint("kind IN ('inbound', 'outbound')", name="ck_stock_movements_kind"),
        Index("idx_stock_movements_item", "item_id", "id"),
    )

    @property
    def delta(self) -> int:
        return self.quantity if self.kind == INBOUND else -self.quantity


__all__ = ["INBOUND", "MOVEMENT_KINDS", "OUTBOUND", "StockMovement"]
