import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30


def _is_sqlite_memory(url) -> bool:
    sqlite_db = url.database
    if sqlite_db in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def build_engine(database_url: str, *, lock_timeout_seconds: int | None = None) -> Engine:
    """Create an engine for ``database_url``.

    SQLite has no row locks, so every transaction is opened with
    ``BEGIN IMMEDIATE``: the write lock is taken up front and concurrent
    checkouts queue on ``busy_timeout`` instead of reading stale quantities.
    """
    db_url = make_url(database_url)
    is_sqlite = db_url.get_backend_name() == "sqlite"

    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
    busy_timeout = lock_timeout_seconds or _SQLITE_BUSY_TIMEOUT_SECONDS
    is_memory = False
    if is_sqlite:
        is_memory = _is_sqlite_memory(db_url)
        connect_args = {"check_same_thread": False, "timeout": busy_timeout}
        if is_memory:
            engine_kwargs.update(poolclass=StaticPool)

    new_engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            # Hand transaction control to the "begin" listener below.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout * 1000}")
                if not is_memory:
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL")
                        cursor.execute("PRAGMA synchronous=NORMAL")
                    except sqlite3.DatabaseError:
                        logger.warning("Unable to enable WAL journal for %s", db_url.database)
            finally:
                cursor.close()

        @event.listens_for(new_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return new_engine


engine = build_engine(
    app_settings.DATABASE_URL,
    lock_timeout_seconds=app_settings.DB_LOCK_TIMEOUT_SECONDS,
)
