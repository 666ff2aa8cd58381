"""Identity reconciliation: map a login to exactly one stored account.

Provider logins are keyed by subject, direct logins by username. A new
account is created first, then its zeroed default schedule. The two writes
are independent: if the schedule write fails the account is kept, the
failure is logged, and the caller still gets the account. Schedule PUTs
upsert, so such an account gains a schedule on its next write.

Concurrent first logins for the same subject can both miss the lookup. The
store rejects the second insert (unique subject), and the loser re-reads
the winner's account instead of failing.
"""

from petfeeder.auth.passwords import CredentialHasher
from petfeeder.errors import ApiErrorCode, InvalidRequestError, UnauthenticatedError
from petfeeder.logging import get_logger
from petfeeder.schemas.account import Account, AccountOut, LoginMethod, NewAccount
from petfeeder.schemas.auth import IdentityClaims
from petfeeder.storage.identity_store import (
    DuplicateAccountError,
    DuplicateScheduleError,
    IdentityStore,
)

logger = get_logger(__name__)


class UsernameTakenError(InvalidRequestError):
    def __init__(self):
        super().__init__(ApiErrorCode.E_USERNAME_TAKEN, "Unable to create user")


class UserNotFoundError(InvalidRequestError):
    def __init__(self):
        super().__init__(ApiErrorCode.E_USER_NOT_FOUND, "User not found")


class BadCredentialError(UnauthenticatedError):
    def __init__(self):
        super().__init__(ApiErrorCode.E_BAD_CREDENTIAL, "Invalid password")


def account_from_claims(claims: IdentityClaims) -> NewAccount:
    """Explicit claims -> account mapping for a first provider login."""
    return NewAccount(
        login_method=LoginMethod.provider,
        subject=claims.subject,
        email=claims.email,
        display_name=claims.display_name,
        avatar_url=claims.avatar_url,
    )


class IdentityReconciler:
    """Finds or creates accounts. Synchronous; routes call it from a threadpool."""

    def __init__(self, store: IdentityStore, hasher: CredentialHasher):
        self._store = store
        self._hasher = hasher

    def resolve_or_create(self, claims: IdentityClaims) -> Account:
        """Return the account for claims.subject, creating it on first login.

        An existing account is returned unchanged; claims never overwrite
        stored fields.
        """
        existing = self._store.find_account_by_subject(claims.subject)
        if existing is not None:
            return existing

        try:
            account = self._store.create_account(account_from_claims(claims))
        except DuplicateAccountError:
            winner = self._store.find_account_by_subject(claims.subject)
            if winner is None:
                raise
            logger.info("account_create_race_resolved", account_id=winner.id)
            return winner

        logger.info("account_created", account_id=account.id, login_method="provider")
        self._create_default_schedule(account)
        return account

    def register_direct(
        self,
        username: str,
        password: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> Account:
        """Create a direct-login account.

        Raises:
            UsernameTakenError: username already exists (nothing is created).
        """
        if self._store.find_account_by_username(username) is not None:
            raise UsernameTakenError()

        new_account = NewAccount(
            login_method=LoginMethod.direct,
            username=username,
            email=email,
            display_name=display_name,
            credential_hash=self._hasher.hash(password),
        )
        try:
            account = self._store.create_account(new_account)
        except DuplicateAccountError as e:
            raise UsernameTakenError() from e

        logger.info("account_created", account_id=account.id, login_method="direct")
        self._create_default_schedule(account)
        return account

    def authenticate_direct(self, username: str, password: str) -> AccountOut:
        """Check a username/password pair.

        Returns:
            The credential-free account snapshot.

        Raises:
            UserNotFoundError: No account has this username.
            BadCredentialError: Password does not match.
        """
        account = self._store.find_account_by_username(username)
        if account is None:
            raise UserNotFoundError()

        # Provider accounts have no hash and cannot log in directly
        if not account.credential_hash or not self._hasher.verify(
            account.credential_hash, password
        ):
            logger.info("direct_login_rejected", account_id=account.id)
            raise BadCredentialError()

        return account.to_public()

    def _create_default_schedule(self, account: Account) -> None:
        try:
            self._store.create_schedule(account.id)
        except DuplicateScheduleError:
            logger.warning("schedule_already_exists", account_id=account.id)
        except Exception:
            logger.exception("schedule_create_failed", account_id=account.id)
