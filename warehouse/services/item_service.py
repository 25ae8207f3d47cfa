import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.exceptions import (
    InventoryError,
    ItemInUse,
    ItemNotFound,
    PersistenceFailed,
    ValidationFailed,
)
from warehouse.models.item import Item
from warehouse.models.stock_balance import StockBalance
from warehouse.models.stock_movement import StockMovement
from warehouse.schemas.item import ItemCreate, ItemUpdate
from warehouse.services.posting_service import MAX_AMOUNT, format_document_number, to_money
from warehouse.services.stock_ledger import get_or_create_balance

logger = logging.getLogger(__name__)

_PRICE_FIELDS = ("purchase_price", "sale_price")
_TEXT_FIELDS = ("name", "unit")


def _validate_values(values: dict) -> dict:
    errors = {}
    cleaned = dict(values)
    for name in _TEXT_FIELDS:
        if name in cleaned:
            text = (cleaned[name] or "").strip()
            if not text:
                errors[name] = "{} must not be empty".format(name)
            cleaned[name] = text
    if "description" in cleaned:
        cleaned["description"] = (cleaned["description"] or "").strip()
    for name in _PRICE_FIELDS:
        if name not in cleaned:
            continue
        try:
            price = to_money(cleaned[name])
        except (InvalidOperation, TypeError, ValueError):
            errors[name] = "{} must be a number".format(name)
            continue
        if not price.is_finite() or price <= Decimal("0"):
            errors[name] = "{} must be greater than 0".format(name)
        elif price >= MAX_AMOUNT:
            errors[name] = "{} is too large".format(name)
        cleaned[name] = price
    if errors:
        raise ValidationFailed("validation error", errors)
    return cleaned


def create_item(db: Session, payload: ItemCreate) -> Item:
    """Create an item, assign its code and open a zero stock balance."""
    values = _validate_values(payload.model_dump())
    settings = get_settings()
    try:
        item = Item(**values)
        db.add(item)
        db.flush()
        item.code = format_document_number(settings.ITEM_CODE_PREFIX, item.id, settings.DOCUMENT_NUMBER_WIDTH)
        db.add(StockBalance(item_id=item.id, quantity=0, version=0))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create item %r", values.get("name"))
        raise PersistenceFailed("Could not create item") from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(item)
    logger.info("Created item %s (%s)", item.code, item.name)
    return item


def get_item(db: Session, item_id: int) -> Item:
    item = db.get(Item, item_id)
    if item is None:
        raise ItemNotFound(item_id)
    return item


def update_item(db: Session, item_id: int, payload: ItemUpdate) -> Item:
    item = get_item(db, item_id)
    values = _validate_values(payload.model_dump(exclude_unset=True, exclude_none=True))
    for name, value in values.items():
        setattr(item, name, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailed("Could not update item {}".format(item_id)) from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: int) -> None:
    """Delete an item and its balance row; refused while stock is on hand."""
    try:
        item = get_item(db, item_id)
        balance = get_or_create_balance(db, item_id, lock=True)
        if balance.quantity > 0:
            raise ItemInUse(item_id, balance.quantity)
        has_history = db.execute(
            select(StockMovement.id).where(StockMovement.item_id == item_id).limit(1)
        ).first()
        if has_history is not None:
            raise ItemInUse(
                item_id,
                0,
                "Item {} has stock history and cannot be deleted".format(item_id),
            )
        db.delete(balance)
        db.flush()
        db.delete(item)
        db.commit()
    except InventoryError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete item %s", item_id)
        raise PersistenceFailed("Could not delete item {}".format(item_id)) from exc
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted item %s", item_id)


def get_item_with_stock(db: Session, item_id: int):
    row = db.execute(
        select(Item, func.coalesce(StockBalance.quantity, 0).label("stock"))
        .outerjoin(StockBalance, StockBalance.item_id == Item.id)
        .where(Item.id == item_id)
    ).first()
    if row is None:
        raise ItemNotFound(item_id)
    return row


def list_items(db: Session, *, search: Optional[str] = None, page: int = 1, limit: int = 10):
    """Return ``(rows, total)``; each row is ``(Item, stock)`` ordered by code."""
    stmt = select(Item, func.coalesce(StockBalance.quantity, 0).label("stock")).outerjoin(
        StockBalance, StockBalance.item_id == Item.id
    )
    count_stmt = select(func.count(Item.id))
    if search:
        pattern = "%{}%".format(search.strip().lower())
        condition = or_(func.lower(Item.code).like(pattern), func.lower(Item.name).like(pattern))
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    page = max(1, page)
    limit = max(1, limit)
    total = db.execute(count_stmt).scalar_one()
    rows = db.execute(
        stmt.order_by(Item.code.asc(), Item.id.asc()).limit(limit).offset((page - 1) * limit)
    ).all()
    return rows, total


__all__ = [
    "create_item",
    "delete_item",
    "get_item",
    "get_item_with_stock",
    "list_items",
    "update_item",
]
