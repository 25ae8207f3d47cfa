from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status

from warehouse.config import get_settings
from warehouse.core.security import CurrentUser, authenticate_request
from warehouse.database.session import get_db, get_read_db


def get_current_user(authorization: Optional[str] = Header(None)) -> CurrentUser:
    return authenticate_request(authorization)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin only",
        )
    return user


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int


def get_pagination(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
) -> Pagination:
    settings = get_settings()
    if limit is None:
        limit = settings.DEFAULT_PAGE_SIZE
    return Pagination(page=page, limit=min(limit, settings.MAX_PAGE_SIZE))


__all__ = [
    "Pagination",
    "get_current_user",
    "get_db",
    "get_pagination",
    "get_read_db",
    "require_admin",
]
