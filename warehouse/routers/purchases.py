from typing import Optional

from fastapi import APIRouter, Depends, Query
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
from warehouse.schemas.common import PageMeta
from warehouse.schemas.transaction import PurchaseCreate, TransactionPage, TransactionRead
from warehouse.services.posting_service import post_purchase
from warehouse.services.transaction_reader import get_purchase, list_purchases

router = APIRouter(prefix="/api/pembelian", tags=["Purchases"])


@router.post("", response_model=TransactionRead, status_code=201)
def create_purchase(
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        result = post_purchase(db, payload.to_request(), user.id)
        return get_purchase(db, result.header.id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc


@router.get("", response_model=TransactionPage)
def read_purchases(
    search: Optional[str] = Query(None, description="Document number or supplier"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    data, total = list_purchases(db, page=pagination.page, limit=pagination.limit, search=search)
    return TransactionPage(
        data=data,
        meta=PageMeta(page=pagination.page, limit=pagination.limit, total=total),
    )


@router.get("/{purchase_id}", response_model=TransactionRead)
def read_purchase(
    purchase_id: int,
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    try:
        return get_purchase(db, purchase_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc


__all__ = ["router"]
