"""
Helpers shared by the test modules.
"""

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db.engine import enable_sqlite_foreign_keys
from app.db.repository import balance_from_records, unit_of_work
from app.db.schema import metadata

TEST_DATABASE_URL = "sqlite:///:memory:"


def build_engine():
    """In-memory SQLite with the ledger schema; one shared connection."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(engine)
    metadata.create_all(engine)
    return engine


def records_balance(engine, customer_id):
    with unit_of_work(engine) as conn:
        return balance_from_records(conn, customer_id)
