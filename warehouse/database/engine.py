import logging
import sqlite3
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from warehouse.config import Settings, get_settings
from warehouse.database.base import Base


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000
SQLITE_BEGIN_OPTION = "sqlite_begin"


def _is_sqlite_memory(url) -> bool:
    if url.database in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine for ``database_url``.

    SQLite has no row-level locks, so transactions are opened with
    ``BEGIN IMMEDIATE``: writers are serialised database-wide and a second
    writer waits on the busy timeout instead of reading a stale balance.
    That lock is taken even by sessions that only read, so pure reads should
    go through :func:`read_only`, whose transactions start ``DEFERRED`` and
    under WAL never queue behind a posting.
    """
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"

    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
    is_memory = False
    if is_sqlite:
        is_memory = _is_sqlite_memory(url)
        connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
        if is_memory:
            engine_kwargs.update(poolclass=StaticPool)
    engine_kwargs.update(kwargs)

    new_engine = create_engine(
        database_url,
        connect_args=connect_args,
        **engine_kwargs,
    )

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            # pysqlite would otherwise emit its own deferred BEGIN
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
                if not is_memory:
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL")
                        cursor.execute("PRAGMA synchronous=NORMAL")
                    except sqlite3.DatabaseError:
                        logger.warning("Unable to enable WAL mode for %s", url.database)
            finally:
                cursor.close()

        @event.listens_for(new_engine, "begin")
        def _begin(conn):
            mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "IMMEDIATE")
            conn.exec_driver_sql("BEGIN {}".format(mode))

    return new_engine


def read_only(bind: Engine) -> Engine:
    """Engine view for sessions that never write; a no-op outside SQLite."""
    return bind.execution_options(**{SQLITE_BEGIN_OPTION: "DEFERRED"})


def init_schema(bind: Optional[Engine] = None) -> None:
    from warehouse.models import import_all_models

    import_all_models()
    Base.metadata.create_all(bind=bind or engine)


engine = build_engine(app_settings.DATABASE_URL)


__all__ = ["SQLITE_BEGIN_OPTION", "build_engine", "engine", "init_schema", "read_only"]
