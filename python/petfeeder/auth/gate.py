"""Session gate: turn an Authorization header into an account snapshot.

Every failure (missing header, wrong scheme, bad signature, expired token,
malformed snapshot) surfaces as the same UnauthenticatedError, so callers
cannot tell invalid tokens from expired ones. The specific reason is only
logged.
"""

from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.errors import ApiError, UnauthenticatedError
from petfeeder.logging import get_logger
from petfeeder.schemas.account import AccountOut

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from ``Bearer <token>``, or None if absent or malformed."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token or " " in token:
        return None
    return token


class SessionGate:
    """Stateless verifier; the only shared state is the codec's signing key."""

    def __init__(self, codec: SessionTokenCodec):
        self._codec = codec

    def authenticate(self, authorization: str | None) -> AccountOut:
        """Verify the Authorization header value.

        Raises:
            UnauthenticatedError: Uniformly, for every failure.
        """
        token = extract_bearer_token(authorization)
        if token is None:
            logger.info(
                "auth_failure",
                reason="missing_header" if not authorization else "invalid_header_format",
            )
            raise UnauthenticatedError()

        try:
            return self._codec.verify(token)
        except ApiError as e:
            logger.info("auth_failure", reason=e.code.value)
            raise UnauthenticatedError() from e
