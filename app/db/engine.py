# app/db/engine.py

from functools import lru_cache
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from app.core.config import settings


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@lru_cache(maxsize=None)
def get_engine(url: Optional[str] = None) -> Engine:
    # LEDGER_DB_ECHO=true prints SQL in the terminal
    engine = create_engine(url or settings.database_url, echo=settings.db_echo, future=True)
    enable_sqlite_foreign_keys(engine)
    return engine
