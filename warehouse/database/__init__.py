from warehouse.database.base import Base
from warehouse.database.engine import build_engine, engine, init_schema, read_only
from warehouse.database.session import (
    ReadSessionLocal,
    SessionLocal,
    get_db,
    get_read_db,
    session_scope,
)

__all__ = [
    "Base",
    "ReadSessionLocal",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "get_read_db",
    "init_schema",
    "read_only",
    "session_scope",
]
