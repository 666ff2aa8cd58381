"""Identity store module."""

from petfeeder.storage.identity_store import (
    DuplicateAccountError,
    DuplicateScheduleError,
    IdentityStore,
    IdentityStoreError,
    InMemoryIdentityStore,
)
from petfeeder.storage.sql_store import SqlIdentityStore

__all__ = [
    "DuplicateAccountError",
    "DuplicateScheduleError",
    "IdentityStore",
    "IdentityStoreError",
    "InMemoryIdentityStore",
    "SqlIdentityStore",
    "create_identity_store",
]


def create_identity_store(database_url: str | None) -> IdentityStore:
    """Build the configured store.

    Returns:
        SqlIdentityStore (schema ensured) if database_url is set,
        InMemoryIdentityStore otherwise.
    """
    if not database_url:
        return InMemoryIdentityStore()

    from petfeeder.db.engine import create_db_engine, init_schema
    from petfeeder.db.session import create_session_factory

    engine = create_db_engine(database_url)
    init_schema(engine)
    return SqlIdentityStore(create_session_factory(engine))
