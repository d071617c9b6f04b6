"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` and provides the helpers shared by the
application and tests: start-up connection retries, table creation,
the per-request session dependency and the `transaction()` context
manager that every service call runs inside.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from .config import settings

logger = logging.getLogger("taskboard.db")

engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False} if settings.is_sqlite else {},
)


def wait_for_database(
    bind: Optional[Engine] = None,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
) -> None:
    """Ping the database until it answers or the attempts run out.

    Raises `RuntimeError` when every attempt failed.
    """
    bind = bind or engine
    attempts = attempts or settings.DB_CONNECT_RETRIES
    delay = settings.DB_CONNECT_RETRY_DELAY if delay is None else delay
    for attempt in range(1, attempts + 1):
        try:
            with bind.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except SQLAlchemyError as exc:
            logger.warning(
                "failed to connect to database (attempt %d/%d): %s", attempt, attempts, exc
            )
            if attempt < attempts:
                time.sleep(delay)
            continue
        logger.info("successfully connected to database")
        return
    raise RuntimeError(
        "failed to connect to database, please check your database configuration"
    )


def create_db_and_tables(bind: Optional[Engine] = None) -> None:
    """Create database tables using SQLModel metadata.

    Production deployments with an existing schema can skip this; the
    call is idempotent for tables that already exist.
    """
    from . import models  # noqa: F401  registers the tables on the metadata

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine, expire_on_commit=False) as session:
        yield session


@contextmanager
def transaction(session: Session, read_only: bool = False) -> Iterator[Session]:
    """Run the enclosed block as one transaction on `session`.

    Writes are committed when the block finishes and rolled back when it
    raises. Read-only blocks are always rolled back; objects loaded inside
    them are detached first so they stay readable afterwards.
    """
    try:
        yield session
        if read_only:
            session.expunge_all()
            session.rollback()
        else:
            session.commit()
    except Exception as exc:
        logger.debug("transaction rolled back: %r", exc)
        session.rollback()
        raise
