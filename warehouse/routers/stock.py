from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from warehouse.core.exceptions import InventoryError
from warehouse.core.http_errors import to_http_exception
from warehouse.core.security import CurrentUser
from warehouse.dependencies import (
    Pagination,
    get_current_user,
    get_db,
    get_pagination,
    get_read_db,
)
from warehouse.models.item import Item
from warehouse.schemas.common import ItemDisplay, PageMeta, UserDisplay
from warehouse.schemas.stock import (
    StockBalanceRead,
    StockItemDisplay,
    StockMovementPage,
    StockMovementRead,
)
from warehouse.services.item_service import get_item
from warehouse.services.stock_ledger import get_balance, list_balances, list_movements

router = APIRouter(prefix="/api/stok", tags=["Stock"])
history_router = APIRouter(prefix="/api/history-stok", tags=["Stock"])


def _balance_read(balance, item: Item) -> StockBalanceRead:
    return StockBalanceRead(
        id=balance.id,
        item_id=balance.item_id,
        quantity=balance.quantity,
        updated_at=balance.updated_at,
        item=StockItemDisplay(
            code=item.code,
            name=item.name,
            unit=item.unit,
            sale_price=item.sale_price,
        ),
    )


@router.get("", response_model=list[StockBalanceRead])
def read_balances(
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    return [_balance_read(balance, item) for balance, item in list_balances(db)]


@router.get("/{item_id}", response_model=StockBalanceRead)
def read_balance(
    item_id: int,
    db: Session = Depends(get_db),
    _user: CurrentUser = Depends(get_current_user),
):
    try:
        item = get_item(db, item_id)
        balance = get_balance(db, item_id)
        db.commit()
    except InventoryError as exc:
        db.rollback()
        raise to_http_exception(exc) from exc
    return _balance_read(balance, item)


def _movement_page(db: Session, item_id: Optional[int], pagination: Pagination) -> StockMovementPage:
    rows, total = list_movements(
        db,
        item_id,
        limit=pagination.limit,
        offset=(pagination.page - 1) * pagination.limit,
    )
    data = []
    for movement, item_code, item_name, username, full_name in rows:
        data.append(
            StockMovementRead(
                id=movement.id,
                item_id=movement.item_id,
                user_id=movement.user_id,
                kind=movement.kind,
                quantity=movement.quantity,
                balance_before=movement.balance_before,
                balance_after=movement.balance_after,
                note=movement.note or "",
                created_at=movement.created_at,
                item=ItemDisplay(code=item_code, name=item_name),
                user=UserDisplay(username=username or "", full_name=full_name or ""),
            )
        )
    return StockMovementPage(
        data=data,
        meta=PageMeta(page=pagination.page, limit=pagination.limit, total=total),
    )


@history_router.get("", response_model=StockMovementPage)
def read_history(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    return _movement_page(db, None, pagination)


@history_router.get("/{item_id}", response_model=StockMovementPage)
def read_item_history(
    item_id: int,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    try:
        get_item(db, item_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return _movement_page(db, item_id, pagination)


__all__ = ["history_router", "router"]
