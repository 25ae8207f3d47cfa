from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
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
    require_admin,
)
from warehouse.schemas.common import PageMeta
from warehouse.schemas.item import ItemCreate, ItemPage, ItemRead, ItemUpdate, ItemWithStock
from warehouse.services import item_service

router = APIRouter(prefix="/api/barang", tags=["Items"])


def _with_stock(item, stock) -> ItemWithStock:
    base = ItemRead.model_validate(item).model_dump()
    base["stock"] = int(stock or 0)
    return ItemWithStock(**base)


@router.get("", response_model=ItemPage)
def list_items(
    search: Optional[str] = Query(None, description="Item code or name"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    rows, total = item_service.list_items(
        db, search=search, page=pagination.page, limit=pagination.limit
    )
    return ItemPage(
        data=[_with_stock(item, stock) for item, stock in rows],
        meta=PageMeta(page=pagination.page, limit=pagination.limit, total=total),
    )


@router.get("/{item_id}", response_model=ItemWithStock)
def get_item(
    item_id: int,
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    try:
        item, stock = item_service.get_item_with_stock(db, item_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, stock)


@router.post("", response_model=ItemWithStock, status_code=201)
def create_item(
    payload: ItemCreate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    try:
        item = item_service.create_item(db, payload)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, 0)


@router.put("/{item_id}", response_model=ItemWithStock)
def update_item(
    item_id: int,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    try:
        item_service.update_item(db, item_id, payload)
        item, stock = item_service.get_item_with_stock(db, item_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return _with_stock(item, stock)


@router.delete("/{item_id}", status_code=204)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    try:
        item_service.delete_item(db, item_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=204)


__all__ = ["router"]
