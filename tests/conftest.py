"""
Centralized Test Configuration.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.common import get_ledger
from app.db.schema import metadata
from app.ledger.service import Ledger
from app.main import app
from support import build_engine


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = build_engine()
    yield engine
    metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def ledger(engine):
    return Ledger(engine, allow_credit_balance=False)


@pytest.fixture
def credit_ledger(engine):
    return Ledger(engine, allow_credit_balance=True)


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()
