"""Session tokens: mint and verify signed, time-bounded JWTs.

- HS256 signed with TOKEN_SECRET (loaded once at startup, never rotated at runtime)
- Claims: user=<credential-free account snapshot>, iat=now, exp=now+ttl
- Stateless: nothing is persisted, verification recomputes the signature
- Expiry is checked against the codec's own clock so callers and tests agree on "now"
"""

import time
from collections.abc import Callable

import jwt
from pydantic import ValidationError

from petfeeder.errors import ApiErrorCode, UnauthenticatedError
from petfeeder.logging import get_logger
from petfeeder.schemas.account import AccountOut

logger = get_logger(__name__)

SESSION_TOKEN_ALGORITHM = "HS256"


class InvalidTokenError(UnauthenticatedError):
    """Signature mismatch, malformed token, or malformed snapshot."""

    def __init__(self, message: str = "Invalid session token"):
        super().__init__(ApiErrorCode.E_TOKEN_INVALID, message)


class ExpiredTokenError(UnauthenticatedError):
    """Token signature is valid but now > exp."""

    def __init__(self, message: str = "Session token has expired"):
        super().__init__(ApiErrorCode.E_TOKEN_EXPIRED, message)


class SessionTokenCodec:
    """Issues and verifies session tokens for one process-wide signing key."""

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = 36000,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Session token secret must not be empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, account: AccountOut) -> str:
        """Mint a token embedding the account snapshot.

        AccountOut has no credential field, so the hash cannot leak into a token.
        """
        now = int(self._clock())
        payload = {
            "user": account.to_json(),
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=SESSION_TOKEN_ALGORITHM)

    def verify(self, token: str) -> AccountOut:
        """Verify a token and return the embedded account snapshot.

        Raises:
            InvalidTokenError: Bad signature, malformed token, or malformed payload.
            ExpiredTokenError: now > exp.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[SESSION_TOKEN_ALGORITHM],
                options={"require": ["exp", "iat"], "verify_exp": False},
            )
        except jwt.InvalidTokenError as e:
            logger.info("session_token_rejected", reason="invalid", error_type=type(e).__name__)
            raise InvalidTokenError() from e

        exp = payload["exp"]
        if not isinstance(exp, int | float):
            raise InvalidTokenError("Session token has a malformed expiry")
        if self._clock() > exp:
            logger.info("session_token_rejected", reason="expired")
            raise ExpiredTokenError()

        snapshot = payload.get("user")
        if not isinstance(snapshot, dict):
            raise InvalidTokenError("Session token is missing its account snapshot")
        try:
            return AccountOut.model_validate(snapshot)
        except ValidationError as e:
            raise InvalidTokenError("Session token carries a malformed account snapshot") from e
