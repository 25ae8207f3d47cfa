from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from warehouse.schemas.common import Money, PageMeta


class ItemBase(BaseModel):
    name: str
    description: str = ""
    unit: str
    purchase_price: Decimal
    sale_price: Decimal


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    purchase_price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None


class ItemRead(BaseModel):
    id: int
    code: Optional[str] = None
    name: str
    description: str = ""
    unit: str
    purchase_price: Money
    sale_price: Money
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemWithStock(ItemRead):
    stock: int = 0


class ItemPage(BaseModel):
    data: List[ItemWithStock] = Field(default_factory=list)
    meta: PageMeta
