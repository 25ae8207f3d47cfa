import logging
import re
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from warehouse.core.exceptions import PersistenceFailed, ValidationFailed
from warehouse.core.security import hash_password, validate_password_strength, verify_password
from warehouse.models.user import ROLE_ADMIN, ROLE_STAFF, User
from warehouse.schemas.user import RegisterRequest

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
MIN_USERNAME_LENGTH = 4


def find_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
        .scalars()
        .first()
    )


def find_by_username(db: Session, username: str) -> Optional[User]:
    return db.execute(select(User).where(User.username == username.strip())).scalars().first()


def _validate_registration(db: Session, payload: RegisterRequest) -> None:
    errors = {}
    username = payload.username.strip()
    if not username:
        errors["username"] = "username must not be empty"
    elif len(username) < MIN_USERNAME_LENGTH:
        errors["username"] = "username must be at least {} characters".format(MIN_USERNAME_LENGTH)
    elif find_by_username(db, username) is not None:
        errors["username"] = "username is already taken"

    if not payload.full_name.strip():
        errors["full_name"] = "full_name must not be empty"

    email = payload.email.strip()
    if not email:
        errors["email"] = "email must not be empty"
    elif not EMAIL_PATTERN.match(email):
        errors["email"] = "email format is invalid"
    elif find_by_email(db, email) is not None:
        errors["email"] = "email is already registered"

    if not payload.password:
        errors["password"] = "password must not be empty"
    elif not validate_password_strength(payload.password):
        errors["password"] = (
            "password needs at least 8 characters with letters, digits "
            "and one of @$!%*#?&"
        )

    if errors:
        raise ValidationFailed("validation error", errors)


def register_user(db: Session, payload: RegisterRequest, *, role: str = ROLE_STAFF) -> User:
    _validate_registration(db, payload)
    user = User(
        username=payload.username.strip(),
        email=payload.email.strip(),
        password_hash=hash_password(payload.password),
        full_name=payload.full_name.strip(),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailed(
            "validation error",
            {"username": "username or email is already registered"},
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailed("Could not register user") from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Registered %s user %s", role, user.username)
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    errors = {}
    if not email.strip():
        errors["email"] = "email must not be empty"
    elif not EMAIL_PATTERN.match(email.strip()):
        errors["email"] = "email format is invalid"
    if not password:
        errors["password"] = "password must not be empty"
    if errors:
        raise ValidationFailed("validation error", errors)

    user = find_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email.strip())
        return None
    return user


def ensure_admin(db: Session, payload: RegisterRequest) -> User:
    existing = find_by_email(db, payload.email)
    if existing is not None:
        return existing
    return register_user(db, payload, role=ROLE_ADMIN)


__all__ = [
    "authenticate",
    "ensure_admin",
    "find_by_email",
    "find_by_username",
    "register_user",
]
