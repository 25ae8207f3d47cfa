"""Read side of purchases and sales.

Headers, lines, item and user display fields are loaded with explicit
queries and assembled into response DTOs here; the posting path never
depends on this module.
"""

from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from warehouse.core.exceptions import TransactionNotFound
from warehouse.models.item import Item
from warehouse.models.user import User
from warehouse.schemas.common import ItemDisplay, UserDisplay
from warehouse.schemas.transaction import (
    TransactionHeaderRead,
    TransactionLineRead,
    TransactionRead,
)
from warehouse.services.posting_service import PURCHASE, SALE, PostingKind


def _load_lines(db: Session, kind: PostingKind, header_ids: Iterable[int]) -> dict:
    header_ids = list(header_ids)
    if not header_ids:
        return {}
    line_model = kind.line_model
    header_fk = getattr(line_model, kind.header_fk)
    rows = db.execute(
        select(
            line_model,
            Item.code.label("item_code"),
            Item.name.label("item_name"),
            Item.unit.label("item_unit"),
        )
        .outerjoin(Item, Item.id == line_model.item_id)
        .where(header_fk.in_(header_ids))
        .order_by(line_model.id)
    ).all()

    lines_by_header = {}
    for row in rows:
        line = row[0]
        lines_by_header.setdefault(getattr(line, kind.header_fk), []).append(
            TransactionLineRead(
                id=line.id,
                item_id=line.item_id,
                item=ItemDisplay(
                    code=row.item_code,
                    name=row.item_name or "",
                    unit=row.item_unit,
                ),
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
        )
    return lines_by_header


def _load_users(db: Session, user_ids: Iterable[int]) -> dict:
    user_ids = set(user_ids)
    if not user_ids:
        return {}
    return {
        user.id: UserDisplay(username=user.username, full_name=user.full_name or "")
        for user in db.execute(select(User).where(User.id.in_(user_ids))).scalars()
    }


def _assemble(db: Session, kind: PostingKind, headers) -> list[TransactionRead]:
    lines_by_header = _load_lines(db, kind, (header.id for header in headers))
    users = _load_users(db, (header.user_id for header in headers))
    return [
        TransactionRead(
            header=TransactionHeaderRead(
                id=header.id,
                document_number=header.document_number or "",
                counterparty=getattr(header, kind.counterparty_field),
                user_id=header.user_id,
                user=users.get(header.user_id),
                total=header.total,
                status=header.status,
                created_at=header.created_at,
            ),
            lines=lines_by_header.get(header.id, []),
        )
        for header in headers
    ]


def _get(db: Session, kind: PostingKind, transaction_id: int) -> TransactionRead:
    header = db.get(kind.header_model, transaction_id)
    if header is None:
        raise TransactionNotFound(kind.name, transaction_id)
    return _assemble(db, kind, [header])[0]


def _list(
    db: Session,
    kind: PostingKind,
    *,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
) -> tuple[list[TransactionRead], int]:
    header_model = kind.header_model
    stmt = select(header_model)
    count_stmt = select(func.count(header_model.id))
    if search:
        pattern = "%{}%".format(search.strip().lower())
        condition = or_(
            func.lower(header_model.document_number).like(pattern),
            func.lower(getattr(header_model, kind.counterparty_field)).like(pattern),
        )
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    page = max(1, page)
    limit = max(1, limit)
    total = db.execute(count_stmt).scalar_one()
    headers = (
        db.execute(
            stmt.order_by(header_model.created_at.desc(), header_model.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        .scalars()
        .all()
    )
    return _assemble(db, kind, headers), total


def get_purchase(db: Session, purchase_id: int) -> TransactionRead:
    return _get(db, PURCHASE, purchase_id)


def get_sale(db: Session, sale_id: int) -> TransactionRead:
    return _get(db, SALE, sale_id)


def list_purchases(db: Session, *, page: int = 1, limit: int = 10, search: Optional[str] = None):
    return _list(db, PURCHASE, page=page, limit=limit, search=search)


def list_sales(db: Session, *, page: int = 1, limit: int = 10, search: Optional[str] = None):
    return _list(db, SALE, page=page, limit=limit, search=search)


__all__ = ["get_purchase", "get_sale", "list_purchases", "list_sales"]
