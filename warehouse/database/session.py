from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, sessionmaker

from warehouse.database.engine import engine, read_only

# Postings return their header after commit, so loaded rows must stay usable.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)

ReadSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=read_only(engine),
)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """Yield a session that is rolled back on error and always closed.

    Services commit their own unit of work; this only makes sure a failure
    anywhere in the caller never leaves a transaction (and on SQLite the
    write lock taken by ``BEGIN IMMEDIATE``) open.
    """
    db = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Iterator[Session]:
    with session_scope() as db:
        yield db


def get_read_db() -> Iterator[Session]:
    with session_scope(ReadSessionLocal) as db:
        yield db


__all__ = ["ReadSessionLocal", "SessionLocal", "get_db", "get_read_db", "session_scope"]
