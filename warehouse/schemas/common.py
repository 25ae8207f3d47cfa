from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, PlainSerializer

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int


class ItemDisplay(BaseModel):
    code: Optional[str] = None
    name: str
    unit: Optional[str] = None


class UserDisplay(BaseModel):
    username: str
    full_name: str = ""
