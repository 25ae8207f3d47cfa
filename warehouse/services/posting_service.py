"""Posting of purchases and sales.

A posting is one unit of work: the involved balances are locked in ascending
item order, the header is inserted to obtain its id, the document number is
derived from that id, every line moves stock through the ledger, and the
lines are stored. Either all of it commits or none of it does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.dates import utc_now
from warehouse.core.exceptions import (
    InventoryError,
    ItemNotFound,
    PersistenceFailed,
    PriceMismatch,
    ValidationFailed,
)
from warehouse.core.requests import LineRequest, TransactionRequest
from warehouse.models.item import Item
from warehouse.models.purchase import Purchase, PurchaseLine
from warehouse.models.sale import Sale, SaleLine
from warehouse.models.stock_balance import MAX_QUANTITY
from warehouse.models.stock_movement import INBOUND, OUTBOUND, StockMovement
from warehouse.services.stock_ledger import adjust_balance, lock_balances

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
_CENT = Decimal("0.01")
# Numeric(15, 2)
MAX_AMOUNT = Decimal("1e13")


@dataclass(frozen=True)
class _PreparedLine:
    item_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass
class PostingResult:
    header: object
    lines: list = field(default_factory=list)
    movements: list[StockMovement] = field(default_factory=list)


@dataclass(frozen=True)
class PostingKind:
    name: str
    label: str
    header_model: type
    line_model: type
    header_fk: str
    counterparty_field: str
    direction: str
    prefix_setting: str


PURCHASE = PostingKind(
    name="purchase",
    label="Purchase",
    header_model=Purchase,
    line_model=PurchaseLine,
    header_fk="purchase_id",
    counterparty_field="supplier",
    direction=INBOUND,
    prefix_setting="PURCHASE_NUMBER_PREFIX",
)

SALE = PostingKind(
    name="sale",
    label="Sale",
    header_model=Sale,
    line_model=SaleLine,
    header_fk="sale_id",
    counterparty_field="customer",
    direction=OUTBOUND,
    prefix_setting="SALE_NUMBER_PREFIX",
)


def format_document_number(prefix: str, identity: int, width: int = 3) -> str:
    return "{}{:0{}d}".format(prefix, identity, width)


def to_money(value) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def _prepare_lines(request: TransactionRequest, counterparty_field: str) -> tuple[list[_PreparedLine], Decimal]:
    errors = {}
    counterparty = (request.counterparty or "").strip()
    if not counterparty:
        errors[counterparty_field] = "{} name must not be empty".format(counterparty_field)
    if not request.lines:
        errors["lines"] = "at least one line is required"
    if errors:
        raise ValidationFailed("validation error", errors)

    prepared = []
    total = Decimal("0.00")
    for index, line in enumerate(request.lines):
        key = "lines[{}]".format(index)
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            errors[key + ".quantity"] = "quantity must be a positive integer"
        elif quantity > MAX_QUANTITY:
            errors[key + ".quantity"] = "quantity must not exceed {}".format(MAX_QUANTITY)
        try:
            unit_price = to_money(line.unit_price)
        except (InvalidOperation, TypeError, ValueError):
            errors[key + ".unit_price"] = "unit_price must be a number"
            continue
        if not unit_price.is_finite() or unit_price <= 0:
            errors[key + ".unit_price"] = "unit_price must be greater than 0"
        elif unit_price >= MAX_AMOUNT:
            errors[key + ".unit_price"] = "unit_price is too large"
        if key + ".quantity" in errors or key + ".unit_price" in errors:
            continue
        subtotal = (unit_price * quantity).quantize(_CENT)
        total += subtotal
        prepared.append(_PreparedLine(line.item_id, quantity, unit_price, subtotal))

    if not errors and total >= MAX_AMOUNT:
        errors["lines"] = "transaction total is too large"
    if errors:
        raise ValidationFailed("validation error", errors)
    return prepared, total


def _check_purchase_prices(db: Session, lines: Sequence[_PreparedLine]) -> None:
    item_ids = {line.item_id for line in lines}
    items = {
        item.id: item
        for item in db.execute(select(Item).where(Item.id.in_(item_ids))).scalars()
    }
    for line in lines:
        item = items.get(line.item_id)
        if item is None:
            raise ItemNotFound(line.item_id)
        expected = to_money(item.purchase_price)
        if line.unit_price != expected:
            raise PriceMismatch(item.id, item.name, expected, line.unit_price)


def _post(
    db: Session,
    kind: PostingKind,
    request: TransactionRequest,
    user_id: int,
    *,
    enforce_purchase_price: Optional[bool] = None,
) -> PostingResult:
    lines, total = _prepare_lines(request, kind.counterparty_field)

    settings = get_settings()
    if enforce_purchase_price is None:
        enforce_purchase_price = settings.ENFORCE_PURCHASE_PRICE

    try:
        if kind is PURCHASE and enforce_purchase_price:
            _check_purchase_prices(db, lines)

        lock_balances(db, [line.item_id for line in lines])

        header = kind.header_model(
            user_id=user_id,
            total=total,
            status=STATUS_COMPLETED,
            created_at=utc_now(),
        )
        setattr(header, kind.counterparty_field, request.counterparty.strip())
        db.add(header)
        db.flush()

        header.document_number = format_document_number(
            getattr(settings, kind.prefix_setting),
            header.id,
            settings.DOCUMENT_NUMBER_WIDTH,
        )
        db.flush()

        note = "{} {}".format(kind.label, header.document_number)
        movements = [
            adjust_balance(db, line.item_id, user_id, kind.direction, line.quantity, note)
            for line in lines
        ]

        line_rows = []
        for line in lines:
            row = kind.line_model(
                item_id=line.item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
            setattr(row, kind.header_fk, header.id)
            line_rows.append(row)
        db.add_all(line_rows)
        db.commit()
    except InventoryError as exc:
        db.rollback()
        logger.info(
            "Rejected %s for user %s: %s",
            kind.name,
            user_id,
            exc,
            extra={"kind": kind.name, "user_id": user_id},
        )
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Failed to post %s for user %s",
            kind.name,
            user_id,
            extra={"kind": kind.name, "user_id": user_id},
        )
        raise PersistenceFailed("Could not post {}".format(kind.name)) from exc
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Posted %s %s: %s line(s), total %s",
        kind.name,
        header.document_number,
        len(line_rows),
        header.total,
        extra={
            "kind": kind.name,
            "document_number": header.document_number,
            "user_id": user_id,
            "line_count": len(line_rows),
            "total": header.total,
        },
    )
    return PostingResult(header=header, lines=line_rows, movements=movements)


def post_purchase(
    db: Session,
    request: TransactionRequest,
    user_id: int,
    *,
    enforce_purchase_price: Optional[bool] = None,
) -> PostingResult:
    return _post(db, PURCHASE, request, user_id, enforce_purchase_price=enforce_purchase_price)


def post_sale(db: Session, request: TransactionRequest, user_id: int) -> PostingResult:
    return _post(db, SALE, request, user_id)


__all__ = [
    "LineRequest",
    "MAX_AMOUNT",
    "PURCHASE",
    "PostingKind",
    "PostingResult",
    "SALE",
    "STATUS_COMPLETED",
    "TransactionRequest",
    "format_document_number",
    "post_purchase",
    "post_sale",
    "to_money",
]
