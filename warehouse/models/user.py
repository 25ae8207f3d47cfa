from sqlalchemy import Column, DateTime, Integer, String

from warehouse.core.dates import utc_now
from warehouse.database.base import Base

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(80), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    role = Column(String(20), nullable=False, default=ROLE_STAFF)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


__all__ = ["ROLE_ADMIN", "ROLE_STAFF", "User"]
