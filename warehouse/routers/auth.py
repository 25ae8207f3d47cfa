from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from warehouse.core.exceptions import InventoryError
from warehouse.core.http_errors import to_http_exception
from warehouse.core.security import CurrentUser, create_access_token
from warehouse.dependencies import get_db, require_admin
from warehouse.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserRead
from warehouse.services.user_service import authenticate, register_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = authenticate(db, payload.email, payload.password)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(token=create_access_token(user.id, user.role, user.username))


@router.post("/register", response_model=UserRead, status_code=201)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _admin: CurrentUser = Depends(require_admin),
):
    try:
        user = register_user(db, payload)
    except InventoryError as exc:
        raise to_http_exception(exc) from exc
    return UserRead(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
    )


__all__ = ["router"]
