"""Typed inputs of the posting core.

The HTTP layer builds these after parsing and authenticating a request; the
acting user's id is passed alongside, never inside, a request.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence


@dataclass(frozen=True)
class LineRequest:
    item_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class TransactionRequest:
    counterparty: str
    lines: Sequence[LineRequest] = ()


__all__ = ["LineRequest", "TransactionRequest"]
