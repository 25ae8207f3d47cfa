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
from warehouse.schemas.transaction import SaleCreate, TransactionPage, TransactionRead
from warehouse.services.posting_service import post_sale
from warehouse.services.transaction_reader import get_sale, list_sales

router = APIRouter(prefix="/api/penjualan", tags=["Sales"])


@router.post("", response_model=TransactionRead, status_code=201)
def create_sale(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    try:
        result = post_sale(db, payload.to_request(), user.id)
        return get_sale(db, result.header.id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc


@router.get("", response_model=TransactionPage)
def read_sales(
    search: Optional[str] = Query(None, description="Document number or customer"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    data, total = list_sales(db, page=pagination.page, limit=pagination.limit, search=search)
    return TransactionPage(
        data=data,
        meta=PageMeta(page=pagination.page, limit=pagination.limit, total=total),
    )


@router.get("/{sale_id}", response_model=TransactionRead)
def read_sale(
    sale_id: int,
    db: Session = Depends(get_read_db),
    _user: CurrentUser = Depends(get_current_user),
):
    try:
        return get_sale(db, sale_id)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc


__all__ = ["router"]
