"""Engine, session factory and request-scoped sessions for the admin database."""

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def build_session_factory(bind: Engine) -> sessionmaker:
    """
    Session factory shared by request handlers, the settings cache and CLI jobs.

    autoflush is off: the session store flushes explicitly between evicting and
    inserting so the cap count and the new row land in one transaction.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        return False
    return True
