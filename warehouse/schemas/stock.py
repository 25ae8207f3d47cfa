from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from warehouse.schemas.common import ItemDisplay, Money, PageMeta, UserDisplay


class StockItemDisplay(ItemDisplay):
    sale_price: Money


class StockBalanceRead(BaseModel):
    id: int
    item_id: int
    quantity: int
    updated_at: datetime
    item: StockItemDisplay


class StockMovementRead(BaseModel):
    id: int
    item_id: int
    user_id: int
    kind: str
    quantity: int
    balance_before: int
    balance_after: int
    note: str
    created_at: datetime
    item: ItemDisplay
    user: UserDisplay


class StockMovementPage(BaseModel):
    data: List[StockMovementRead] = Field(default_factory=list)
    meta: PageMeta
