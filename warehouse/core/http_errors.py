from fastapi import HTTPException, status

from warehouse.core.exceptions import (
    ConcurrencyConflict,
    InsufficientStock,
    InventoryError,
    ItemInUse,
    ItemNotFound,
    PersistenceFailed,
    PriceMismatch,
    TransactionNotFound,
    ValidationFailed,
)

_STATUS_BY_ERROR = (
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (PriceMismatch, status.HTTP_400_BAD_REQUEST),
    (ItemNotFound, status.HTTP_404_NOT_FOUND),
    (TransactionNotFound, status.HTTP_404_NOT_FOUND),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (ItemInUse, status.HTTP_409_CONFLICT),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT),
    (PersistenceFailed, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def _detail(exc: InventoryError):
    if isinstance(exc, ValidationFailed):
        return {"message": exc.message, "errors": exc.errors}
    if isinstance(exc, InsufficientStock):
        return {
            "message": str(exc),
            "item_id": exc.item_id,
            "requested": exc.requested,
            "available": exc.available,
            "shortfall": exc.shortfall,
        }
    if isinstance(exc, PriceMismatch):
        return {"message": str(exc), "item_id": exc.item_id, "expected": float(exc.expected)}
    if isinstance(exc, PersistenceFailed):
        return "Server error"
    return str(exc)


def to_http_exception(exc: InventoryError) -> HTTPException:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped
            break
    return HTTPException(status_code=status_code, detail=_detail(exc))


__all__ = ["to_http_exception"]
