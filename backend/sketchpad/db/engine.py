from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import create_engine

from sketchpad.core.config import Settings


def _set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """
    Build an engine for the drawings database.

    File-backed SQLite uses NullPool so request handlers never hoard
    connections; an in-memory URL needs StaticPool so every session sees the
    same database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False)

    # check_same_thread=False lets FastAPI's threadpool handlers share the file.
    connect_args = {"check_same_thread": False, "timeout": 5.0}
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, echo=False, connect_args=connect_args, poolclass=StaticPool)

    engine = create_engine(url, echo=False, connect_args=connect_args, poolclass=NullPool)
    event.listen(engine, "connect", _set_sqlite_pragma)
    return engine


def engine_from_settings(app_settings: Settings) -> Engine:
    if not app_settings.DATABASE_URL:
        # The default database lives under ROOT_DIR/meta.
        app_settings.ensure_dirs()
    return create_db_engine(app_settings.database_url)
