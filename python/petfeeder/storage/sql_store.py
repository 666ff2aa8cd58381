"""SQLAlchemy-backed identity store.

Every method is a single short transaction on one row. Account creation
and default-schedule creation are deliberately separate calls; the
reconciler owns the policy for what happens between them.
"""

from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from petfeeder.db.models import AccountRow, ScheduleRow
from petfeeder.db.session import transaction
from petfeeder.schemas.account import Account, LoginMethod, NewAccount
from petfeeder.schemas.schedule import ScheduleRecord
from petfeeder.storage.identity_store import (
    DuplicateAccountError,
    DuplicateScheduleError,
    IdentityStore,
)


def _to_account(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        login_method=LoginMethod(row.login_method),
        subject=row.subject,
        username=row.username,
        email=row.email,
        display_name=row.display_name,
        avatar_url=row.avatar_url,
        credential_hash=row.credential_hash,
    )


def _to_schedule(row: ScheduleRow) -> ScheduleRecord:
    return ScheduleRecord(
        account_id=row.account_id,
        portion=row.portion,
        schedule=dict(row.schedule or {}),
        unique_date_times=list(row.unique_date_times or []),
    )


class SqlIdentityStore(IdentityStore):
    """Identity store over a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def _find_one(self, *criteria) -> Account | None:
        with transaction(self._session_factory) as db:
            row = db.execute(select(AccountRow).where(*criteria)).scalar_one_or_none()
            return _to_account(row) if row else None

    def find_account_by_id(self, account_id: str) -> Account | None:
        return self._find_one(AccountRow.id == account_id)

    def find_account_by_subject(self, subject: str) -> Account | None:
        return self._find_one(AccountRow.subject == subject)

    def find_account_by_username(self, username: str) -> Account | None:
        return self._find_one(AccountRow.username == username)

    def list_accounts(self) -> list[Account]:
        with transaction(self._session_factory) as db:
            rows = db.execute(select(AccountRow).order_by(AccountRow.created_at)).scalars()
            return [_to_account(row) for row in rows]

    def list_usernames(self) -> list[str]:
        with transaction(self._session_factory) as db:
            result = db.execute(
                select(AccountRow.username)
                .where(AccountRow.username.is_not(None))
                .distinct()
                .order_by(AccountRow.username)
            )
            return [name for name in result.scalars()]

    def create_account(self, account: NewAccount) -> Account:
        row = AccountRow(
            id=uuid4().hex,
            login_method=account.login_method.value,
            subject=account.subject,
            username=account.username,
            email=account.email,
            display_name=account.display_name,
            avatar_url=account.avatar_url,
            credential_hash=account.credential_hash,
        )
        try:
            with transaction(self._session_factory) as db:
                db.add(row)
        except IntegrityError as e:
            if account.subject is not None:
                raise DuplicateAccountError("subject", account.subject) from e
            raise DuplicateAccountError("username", account.username or "") from e
        return _to_account(row)

    def create_schedule(self, account_id: str) -> ScheduleRecord:
        row = ScheduleRow(account_id=account_id, portion=0, schedule={}, unique_date_times=[])
        try:
            with transaction(self._session_factory) as db:
                db.add(row)
        except IntegrityError as e:
            raise DuplicateScheduleError(
                f"Schedule for account {account_id} already exists"
            ) from e
        return _to_schedule(row)

    def find_schedule(self, account_id: str) -> ScheduleRecord | None:
        with transaction(self._session_factory) as db:
            row = db.get(ScheduleRow, account_id)
            return _to_schedule(row) if row else None

    def upsert_schedule(
        self,
        account_id: str,
        *,
        schedule: dict[str, Any] | None = None,
        portion: float | None = None,
    ) -> ScheduleRecord:
        with transaction(self._session_factory) as db:
            row = db.get(ScheduleRow, account_id)
            if row is None:
                row = ScheduleRow(
                    account_id=account_id, portion=0, schedule={}, unique_date_times=[]
                )
                db.add(row)
            if schedule is not None:
                row.schedule = schedule
            if portion is not None:
                row.portion = portion
            db.flush()
            return _to_schedule(row)
