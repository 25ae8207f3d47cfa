from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from warehouse.core.requests import LineRequest, TransactionRequest
from warehouse.schemas.common import ItemDisplay, Money, PageMeta, UserDisplay


class TransactionLineCreate(BaseModel):
    item_id: int = Field(validation_alias=AliasChoices("item_id", "barang_id"))
    quantity: int = Field(validation_alias=AliasChoices("quantity", "qty"))
    unit_price: Decimal = Field(validation_alias=AliasChoices("unit_price", "harga"))

    model_config = ConfigDict(populate_by_name=True)

    def to_line(self) -> LineRequest:
        return LineRequest(item_id=self.item_id, quantity=self.quantity, unit_price=self.unit_price)


class PurchaseCreate(BaseModel):
    supplier: str = Field(validation_alias=AliasChoices("supplier", "counterparty"))
    lines: List[TransactionLineCreate] = Field(
        default_factory=list,
        validation_alias=AliasChoices("lines", "details"),
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_request(self) -> TransactionRequest:
        return TransactionRequest(
            counterparty=self.supplier,
            lines=tuple(line.to_line() for line in self.lines),
        )


class SaleCreate(BaseModel):
    customer: str = Field(validation_alias=AliasChoices("customer", "counterparty"))
    lines: List[TransactionLineCreate] = Field(
        default_factory=list,
        validation_alias=AliasChoices("lines", "details"),
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_request(self) -> TransactionRequest:
        return TransactionRequest(
            counterparty=self.customer,
            lines=tuple(line.to_line() for line in self.lines),
        )


class TransactionLineRead(BaseModel):
    id: int
    item_id: int
    item: ItemDisplay
    quantity: int
    unit_price: Money
    subtotal: Money


class TransactionHeaderRead(BaseModel):
    id: int
    document_number: str
    counterparty: str
    user_id: int
    user: Optional[UserDisplay] = None
    total: Money
    status: str
    created_at: datetime


class TransactionRead(BaseModel):
    header: TransactionHeaderRead
    lines: List[TransactionLineRead] = Field(default_factory=list)


class TransactionPage(BaseModel):
    data: List[TransactionRead] = Field(default_factory=list)
    meta: PageMeta
