"""
Shared test fixtures.

Sets up an isolated test database so tests never touch the
real database. Tables are created before and dropped after
every test, so each test starts from an empty ledger.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from trade_ledger.database import Database, atomic, get_db
from trade_ledger.main import app
from trade_ledger.models.account import Account
from trade_ledger.seed import seed_chart_of_accounts


# SQLite file database; no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"

test_database = Database(TEST_DATABASE_URL)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    test_database.create_all()
    yield
    test_database.drop_all()


@pytest.fixture
def database():
    """The Database itself, for opening a second, independent session."""
    return test_database


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = test_database.session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def chart(db_session):
    """
    Seed the default chart of accounts.

    Returns a mapping of account code to account id.
    """
    with atomic(db_session):
        seed_chart_of_accounts(db_session)
    accounts = db_session.execute(select(Account)).scalars().all()
    return {a.code: a.id for a in accounts}


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test database.

    get_db is overridden so the app uses the test session.
    The lifespan handler does not run here, so the app never
    opens its configured database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.state.database = test_database
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
