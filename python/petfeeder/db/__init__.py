"""Database module: engine creation, sessions, and ORM models."""

from petfeeder.db.engine import create_db_engine, init_schema
from petfeeder.db.models import AccountRow, Base, ScheduleRow
from petfeeder.db.session import create_session_factory, transaction

__all__ = [
    "create_db_engine",
    "init_schema",
    "create_session_factory",
    "transaction",
    "Base",
    "AccountRow",
    "ScheduleRow",
]
