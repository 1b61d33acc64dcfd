from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from pharmaflow.app.settings import settings

DATABASE_URL = settings.DATABASE_URL

engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=settings.DB_ECHO)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    One pipeline mutation = one transaction.

        with transaction(db):
            archive_and_clear(db, ...)

    Commits on success, rolls back on any exception (nothing half-applied).
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
