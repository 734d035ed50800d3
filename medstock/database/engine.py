import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool

from medstock.config import Settings, get_settings


app_settings: Settings = get_settings()

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000

_db_url = make_url(app_settings.DATABASE_URL)
is_sqlite = _db_url.get_backend_name() == "sqlite"
is_sqlite_memory = False
if is_sqlite:
    sqlite_db = _db_url.database
    is_sqlite_memory = sqlite_db in (None, "", ":memory:")
    if not is_sqlite_memory and _db_url.query.get("mode") == "memory":
        is_sqlite_memory = True

connect_args = {}
engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
if is_sqlite:
    connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
    if is_sqlite_memory:
        engine_kwargs.update(poolclass=StaticPool)

engine = create_engine(
    app_settings.DATABASE_URL,
    connect_args=connect_args,
    **engine_kwargs,
)

if is_sqlite:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
            if not is_sqlite_memory:
                try:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                except sqlite3.DatabaseError:
                    pass
        finally:
            cursor.close()


__all__ = ["engine"]
