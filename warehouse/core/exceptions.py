"""Inventory error taxonomy.

Services raise these; routers translate them into HTTP responses. Every
failure raised while posting a transaction aborts the whole posting.
"""

from decimal import Decimal
from typing import Optional


class InventoryError(Exception):
    """Base class for all inventory errors."""


class ValidationFailed(InventoryError):
    """The request is malformed or violates a field-level rule."""

    def __init__(self, message: str = "validation error", errors: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.errors = dict(errors or {})


class ItemNotFound(InventoryError):
    def __init__(self, item_id: int):
        super().__init__("Item {} not found".format(item_id))
        self.item_id = item_id


class TransactionNotFound(InventoryError):
    def __init__(self, kind: str, transaction_id: int):
        super().__init__("{} {} not found".format(kind.capitalize(), transaction_id))
        self.kind = kind
        self.transaction_id = transaction_id


class InsufficientStock(InventoryError):
    """An outbound adjustment would drive the balance negative."""

    def __init__(self, item_id: int, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            "Insufficient stock for item {}: requested {}, available {} (short by {})".format(
                item_id, requested, available, self.shortfall
            )
        )


class PriceMismatch(InventoryError):
    def __init__(self, item_id: int, item_name: str, expected: Decimal, submitted: Decimal):
        self.item_id = item_id
        self.expected = expected
        self.submitted = submitted
        super().__init__(
            "Purchase price for {} does not match (expected: {:.2f}, got: {:.2f})".format(
                item_name, expected, submitted
            )
        )


class ItemInUse(InventoryError):
    """An item cannot be removed while it still has stock on hand."""

    def __init__(self, item_id: int, quantity: int, message: Optional[str] = None):
        self.item_id = item_id
        self.quantity = quantity
        super().__init__(
            message
            or "Item {} still has {} units in stock and cannot be deleted".format(item_id, quantity)
        )


class ConcurrencyConflict(InventoryError):
    def __init__(self, item_id: int, attempts: int):
        self.item_id = item_id
        self.attempts = attempts
        super().__init__(
            "Stock balance for item {} kept changing; gave up after {} attempts".format(
                item_id, attempts
            )
        )


class PersistenceFailed(InventoryError):
    """Storage failure; the unit of work was rolled back."""


__all__ = [
    "ConcurrencyConflict",
    "InsufficientStock",
    "InventoryError",
    "ItemInUse",
    "ItemNotFound",
    "PersistenceFailed",
    "PriceMismatch",
    "TransactionNotFound",
    "ValidationFailed",
]
