"""
Database lifecycle and the atomic unit of work.

The Database object is constructed explicitly (at application
startup or in a test fixture) and passed to whoever needs a
session. Nothing in the package holds a module-level engine.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from trade_ledger.exceptions import StorageFailureError
from trade_ledger.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the engine and the session factory.

    pool_pre_ping=True tests connections before handing them
    out, so a restarted database does not surface as a failed
    posting. autocommit=False and autoflush=False leave every
    commit and flush under the caller's control.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        if url.startswith("sqlite"):
            engine_kwargs.setdefault(
                "connect_args", {"check_same_thread": False}
            )
        self.engine = create_engine(url, pool_pre_ping=True, **engine_kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
        )

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        logger.info("Closing database engine")
        self.engine.dispose()


@contextmanager
def atomic(session: Session, timeout_ms: int | None = None) -> Iterator[Session]:
    """
    Run a block of writes as one all-or-nothing unit.

    Commits when the block finishes, rolls back on any exception.
    Storage-level errors (lost connection, constraint violation,
    statement timeout) are surfaced as StorageFailureError so the
    caller can retry with the same input. Domain errors propagate
    unchanged.
    """
    try:
        if timeout_ms and session.get_bind().dialect.name == "postgresql":
            session.execute(
                text(f"SET LOCAL statement_timeout = {int(timeout_ms)}")
            )
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Unit of work rolled back: %s", e)
        raise StorageFailureError() from e
    except Exception:
        session.rollback()
        raise


# --- Dependency for FastAPI ---
def get_db(request: Request):
    """
    Provide a database session for a single request.

    The session comes from the Database opened in the
    application lifespan and is always closed afterwards,
    even if the endpoint raised.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
