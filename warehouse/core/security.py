from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import HTTPException, status

from warehouse.config import get_settings
from warehouse.core.dates import utc_now

PASSWORD_SCHEME = "pbkdf2_sha256"
PASSWORD_SPECIAL_CHARS = "@$!%*#?&"
MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str
    username: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role.lower() == "admin"


def _pbkdf2(password: str, salt: str, rounds: int) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        rounds,
    )
    return digest.hex()


def hash_password(password: str, *, rounds: Optional[int] = None, salt: Optional[str] = None) -> str:
    if rounds is None:
        rounds = get_settings().PASSWORD_PBKDF2_ROUNDS
    if salt is None:
        salt = secrets.token_hex(16)
    return "{}${}${}${}".format(PASSWORD_SCHEME, rounds, salt, _pbkdf2(password, salt, rounds))


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        scheme, rounds, salt, expected = stored_hash.split("$", 3)
        rounds = int(rounds)
    except (AttributeError, ValueError):
        return False
    if scheme != PASSWORD_SCHEME:
        return False
    return hmac.compare_digest(_pbkdf2(password, salt, rounds), expected)


def validate_password_strength(password: str) -> bool:
    """At least 8 characters drawn from letters, digits and ``@$!%*#?&``,
    with at least one of each."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return False
    has_letter = has_digit = has_special = False
    for char in password:
        if char.isalpha():
            has_letter = True
        elif char.isdigit():
            has_digit = True
        elif char in PASSWORD_SPECIAL_CHARS:
            has_special = True
        else:
            return False
    return has_letter and has_digit and has_special


def _require_secret() -> str:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT auth is not configured",
        )
    return settings.JWT_SECRET


def create_access_token(user_id: int, role: str, username: str = "") -> str:
    settings = get_settings()
    secret = _require_secret()
    now = utc_now()
    claims = {
        "sub": str(user_id),
        "role": role,
        "username": username,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    if settings.JWT_AUDIENCE:
        claims["aud"] = settings.JWT_AUDIENCE
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER
    return jwt.encode(claims, secret, algorithm=settings.JWT_ALGORITHM)


def _get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_jwt(token: str) -> dict:
    settings = get_settings()
    secret = _require_secret()
    options = {"verify_aud": bool(settings.JWT_AUDIENCE), "require": ["exp", "sub"]}
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid JWT",
        ) from exc


def current_user_from_claims(claims: dict) -> CurrentUser:
    """The user id travels in ``sub``; nothing downstream reads raw claims."""
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not identify a user",
        ) from exc
    role = claims.get("role")
    if not isinstance(role, str) or not role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token does not carry a role",
        )
    return CurrentUser(id=user_id, role=role, username=str(claims.get("username") or ""))


def authenticate_request(authorization: Optional[str]) -> CurrentUser:
    token = _get_bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user_from_claims(_decode_jwt(token))
