"""Per-item stock balances and the append-only movement history.

Balances are only ever changed through :func:`adjust_balance`, which reads
the balance row ``FOR UPDATE``, checks the outbound rule and writes the new
quantity back with a compare-and-swap on ``version``. Nothing here commits:
the caller owns the unit of work, so a failed posting rolls every
adjustment back with it.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse.config import get_settings
from warehouse.core.dates import utc_now
from warehouse.core.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    ItemNotFound,
    ValidationFailed,
)
from warehouse.models.item import Item
from warehouse.models.stock_balance import MAX_QUANTITY, StockBalance
from warehouse.models.stock_movement import INBOUND, MOVEMENT_KINDS, StockMovement
from warehouse.models.user import User

logger = logging.getLogger(__name__)


def _select_balance(db: Session, item_id: int, *, lock: bool) -> Optional[StockBalance]:
    stmt = select(StockBalance).where(StockBalance.item_id == item_id)
    if lock:
        stmt = stmt.with_for_update()
    return (
        db.execute(stmt.execution_options(populate_existing=True))
        .scalars()
        .first()
    )


def get_or_create_balance(db: Session, item_id: int, *, lock: bool = False) -> StockBalance:
    balance = _select_balance(db, item_id, lock=lock)
    if balance is not None:
        return balance

    if db.get(Item, item_id) is None:
        raise ItemNotFound(item_id)

    try:
        with db.begin_nested():
            balance = StockBalance(item_id=item_id, quantity=0, version=0, updated_at=utc_now())
            db.add(balance)
    except IntegrityError:
        # another transaction created the row first
        balance = _select_balance(db, item_id, lock=lock)
        if balance is None:
            raise
        return balance

    logger.debug("Created zero stock balance for item %s", item_id)
    if lock:
        return _select_balance(db, item_id, lock=True)
    return balance


def lock_balances(db: Session, item_ids: Iterable[int]) -> dict[int, StockBalance]:
    """Lock the balance rows of ``item_ids`` in ascending item order."""
    locked = {}
    for item_id in sorted(set(item_ids)):
        locked[item_id] = get_or_create_balance(db, item_id, lock=True)
    return locked


def _validate_adjustment(direction: str, quantity) -> None:
    errors = {}
    if direction not in MOVEMENT_KINDS:
        errors["direction"] = "direction must be one of: {}".format(", ".join(MOVEMENT_KINDS))
    # bool is an int subclass
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        errors["quantity"] = "quantity must be an integer"
    elif quantity <= 0:
        errors["quantity"] = "quantity must be greater than 0"
    elif quantity > MAX_QUANTITY:
        errors["quantity"] = "quantity must not exceed {}".format(MAX_QUANTITY)
    if errors:
        raise ValidationFailed("invalid stock adjustment", errors)


def adjust_balance(
    db: Session,
    item_id: int,
    user_id: int,
    direction: str,
    quantity: int,
    note: str = "",
    *,
    max_attempts: Optional[int] = None,
) -> StockMovement:
    """Apply one inbound or outbound movement and record it.

    Raises :class:`InsufficientStock` when an outbound movement would leave
    the balance negative, and :class:`ConcurrencyConflict` when the balance
    row keeps changing between read and write for ``max_attempts`` tries.
    """
    _validate_adjustment(direction, quantity)
    if max_attempts is None:
        max_attempts = get_settings().STOCK_ADJUST_MAX_ATTEMPTS
    max_attempts = max(1, int(max_attempts))

    for attempt in range(1, max_attempts + 1):
        balance = get_or_create_balance(db, item_id, lock=True)
        before = balance.quantity
        if direction == INBOUND:
            after = before + quantity
        else:
            after = before - quantity
        if after < 0:
            raise InsufficientStock(item_id, quantity, before)
        if after > MAX_QUANTITY:
            raise ValidationFailed(
                "invalid stock adjustment",
                {"quantity": "balance of item {} would exceed {}".format(item_id, MAX_QUANTITY)},
            )

        now = utc_now()
        result = db.execute(
            update(StockBalance)
            .where(
                StockBalance.id == balance.id,
                StockBalance.version == balance.version,
            )
            .values(quantity=after, version=StockBalance.version + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(
                "Stock balance for item %s changed during adjustment (attempt %s/%s)",
                item_id,
                attempt,
                max_attempts,
                extra={"item_id": item_id},
            )
            continue

        movement = StockMovement(
            item_id=item_id,
            user_id=user_id,
            kind=direction,
            quantity=quantity,
            balance_before=before,
            balance_after=after,
            note=note or "",
            created_at=now,
        )
        db.add(movement)
        db.flush()
        logger.debug(
            "Stock %s for item %s: %s -> %s (%s)",
            direction,
            item_id,
            before,
            after,
            note,
        )
        return movement

    raise ConcurrencyConflict(item_id, max_attempts)


def get_balance(db: Session, item_id: int) -> StockBalance:
    return get_or_create_balance(db, item_id)


def list_balances(db: Session):
    return db.execute(
        select(StockBalance, Item)
        .join(Item, Item.id == StockBalance.item_id)
        .order_by(Item.code, Item.id)
        .execution_options(populate_existing=True)
    ).all()


def list_movements(
    db: Session,
    item_id: Optional[int] = None,
    *,
    limit: int = 10,
    offset: int = 0,
):
    """Return ``(rows, total)`` of movements, newest first."""
    count_stmt = select(func.count(StockMovement.id))
    stmt = (
        select(
            StockMovement,
            Item.code.label("item_code"),
            Item.name.label("item_name"),
            User.username.label("username"),
            User.full_name.label("full_name"),
        )
        .join(Item, Item.id == StockMovement.item_id)
        .outerjoin(User, User.id == StockMovement.user_id)
    )
    if item_id is not None:
        count_stmt = count_stmt.where(StockMovement.item_id == item_id)
        stmt = stmt.where(StockMovement.item_id == item_id)

    total = db.execute(count_stmt).scalar_one()
    rows = db.execute(
        stmt.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .offset(offset)
    ).all()
    return rows, total


def replay_balance(db: Session, item_id: int) -> int:
    """Fold the item's movements in creation order, starting from zero."""
    movements = db.execute(
        select(StockMovement)
        .where(StockMovement.item_id == item_id)
        .order_by(StockMovement.id)
    ).scalars()
    quantity = 0
    for movement in movements:
        if movement.balance_before != quantity:
            logger.warning(
                "Movement %s for item %s starts at %s, expected %s",
                movement.id,
                item_id,
                movement.balance_before,
                quantity,
            )
        quantity += movement.delta
    return quantity


__all__ = [
    "adjust_balance",
    "get_balance",
    "get_or_create_balance",
    "list_balances",
    "list_movements",
    "lock_balances",
    "replay_balance",
]
