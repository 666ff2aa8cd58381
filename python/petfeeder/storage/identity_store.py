"""Identity store abstraction.

The gateway only needs single-document operations: find by key, create,
and update one schedule. Two implementations exist:
- InMemoryIdentityStore: dict-backed, for local dev and tests
- SqlIdentityStore (storage/sql_store.py): SQLAlchemy-backed

Both reject a second account with the same subject or username, and a
second schedule for the same account. The reconciler relies on that to
turn a lost creation race into a lookup (see services/identity.py).
"""

import threading
from abc import ABC, abstractmethod
from typing import Any
from uuid import uuid4

from petfeeder.schemas.account import Account, NewAccount
from petfeeder.schemas.schedule import ScheduleRecord


class IdentityStoreError(Exception):
    """Base class for identity store failures."""


class DuplicateAccountError(IdentityStoreError):
    """An account with the same subject or username already exists."""

    def __init__(self, field: str, value: str):
        super().__init__(f"Account with {field}={value!r} already exists")
        self.field = field
        self.value = value


class DuplicateScheduleError(IdentityStoreError):
    """The account already has a schedule record."""


class IdentityStore(ABC):
    """Abstract base class for identity store implementations."""

    @abstractmethod
    def find_account_by_id(self, account_id: str) -> Account | None: ...

    @abstractmethod
    def find_account_by_subject(self, subject: str) -> Account | None: ...

    @abstractmethod
    def find_account_by_username(self, username: str) -> Account | None: ...

    @abstractmethod
    def list_accounts(self) -> list[Account]: ...

    @abstractmethod
    def list_usernames(self) -> list[str]:
        """Distinct, non-null usernames in ascending order."""
        ...

    @abstractmethod
    def create_account(self, account: NewAccount) -> Account:
        """Persist a new account and return it with its assigned id.

        Raises:
            DuplicateAccountError: subject or username already taken.
        """
        ...

    @abstractmethod
    def create_schedule(self, account_id: str) -> ScheduleRecord:
        """Create the zeroed default schedule for an account.

        Raises:
            DuplicateScheduleError: The account already has one.
        """
        ...

    @abstractmethod
    def find_schedule(self, account_id: str) -> ScheduleRecord | None: ...

    @abstractmethod
    def upsert_schedule(
        self,
        account_id: str,
        *,
        schedule: dict[str, Any] | None = None,
        portion: float | None = None,
    ) -> ScheduleRecord:
        """Set the given fields, creating the record first if it is missing."""
        ...


class InMemoryIdentityStore(IdentityStore):
    """Thread-safe in-memory identity store."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._schedules: dict[str, ScheduleRecord] = {}
        self._lock = threading.Lock()

    def find_account_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def find_account_by_subject(self, subject: str) -> Account | None:
        with self._lock:
            return next((a for a in self._accounts.values() if a.subject == subject), None)

    def find_account_by_username(self, username: str) -> Account | None:
        with self._lock:
            return next((a for a in self._accounts.values() if a.username == username), None)

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def list_usernames(self) -> list[str]:
        with self._lock:
            return sorted({a.username for a in self._accounts.values() if a.username})

    def create_account(self, account: NewAccount) -> Account:
        with self._lock:
            for existing in self._accounts.values():
                if account.subject is not None and existing.subject == account.subject:
                    raise DuplicateAccountError("subject", account.subject)
                if account.username is not None and existing.username == account.username:
                    raise DuplicateAccountError("username", account.username)
            created = Account(id=uuid4().hex, **account.model_dump())
            self._accounts[created.id] = created
            return created

    def create_schedule(self, account_id: str) -> ScheduleRecord:
        with self._lock:
            if account_id in self._schedules:
                raise DuplicateScheduleError(f"Schedule for account {account_id} already exists")
            record = ScheduleRecord(account_id=account_id)
            self._schedules[account_id] = record
            return record

    def find_schedule(self, account_id: str) -> ScheduleRecord | None:
        with self._lock:
            return self._schedules.get(account_id)

    def upsert_schedule(
        self,
        account_id: str,
        *,
        schedule: dict[str, Any] | None = None,
        portion: float | None = None,
    ) -> ScheduleRecord:
        with self._lock:
            record = self._schedules.get(account_id) or ScheduleRecord(account_id=account_id)
            updates: dict[str, Any] = {}
            if schedule is not None:
                updates["schedule"] = schedule
            if portion is not None:
                updates["portion"] = portion
            record = record.model_copy(update=updates)
            self._schedules[account_id] = record
            return record

    # Test helper methods

    def schedule_count(self, account_id: str) -> int:
        """Number of schedule records for an account (0 or 1)."""
        with self._lock:
            return 1 if account_id in self._schedules else 0

    def clear(self) -> None:
        with self._lock:
            self._accounts.clear()
            self._schedules.clear()
