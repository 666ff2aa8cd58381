"""Database session management and transaction helpers."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to an engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def transaction(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Open a session, commit on success, roll back on exception, always close.

    Usage:
        with transaction(factory) as db:
            db.add(row)
        # Committed if no exception
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
