import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from pharmapos.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000


def _is_memory_url(url) -> bool:
    sqlite_db = url.database
    if sqlite_db in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def install_sqlite_pragmas(target: Engine, *, memory: bool = False) -> None:
    """Turn on foreign keys and a busy timeout for every new SQLite connection.

    File databases also switch to WAL so readers do not block the single
    writer during a sale.
    """

    @event.listens_for(target, "connect")
    def _set_sqlite_pragmas(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
            if not memory:
                try:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                except sqlite3.DatabaseError:
                    logger.warning("Unable to enable WAL journal mode.")
        finally:
            cursor.close()


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)

    sqlite = url.get_backend_name() == "sqlite"
    memory = sqlite and _is_memory_url(url)
    if sqlite:
        connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
        if memory:
            engine_kwargs.update(poolclass=StaticPool)

    built = create_engine(database_url, connect_args=connect_args, **engine_kwargs)
    if sqlite:
        install_sqlite_pragmas(built, memory=memory)
    return built


engine = build_engine(app_settings.DATABASE_URL)


__all__ = ["build_engine", "engine", "install_sqlite_pragmas"]
