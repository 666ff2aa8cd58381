"""OAuth2 authorization-code exchange against the identity provider.

Flow:
1. build_authorization_url() -> provider consent screen
2. Provider redirects back with ?code=...
3. exchange_code(code) posts to the token endpoint and receives
   access_token + id_token
4. The id_token payload is decoded locally (the provider handed it to us
   over TLS in direct response to our client-authenticated request, so its
   signature is not re-checked here)

The access token is returned to the caller for later drive calls and is
never persisted or logged.
"""

from dataclasses import dataclass
from urllib.parse import urlencode

import httpx
import jwt
from pydantic import ValidationError

from petfeeder.config import Settings
from petfeeder.errors import ApiErrorCode, InvalidRequestError, UpstreamError
from petfeeder.logging import get_logger
from petfeeder.schemas.auth import IdentityClaims
from petfeeder.services.redact import hash_text, safe_kv

logger = get_logger(__name__)


@dataclass(frozen=True)
class OAuthProviderConfig:
    """Static provider configuration, built once from Settings."""

    client_id: str
    client_secret: str
    redirect_url: str
    auth_url: str
    token_url: str
    scopes: tuple[str, ...]
    state: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuthProviderConfig":
        return cls(
            client_id=settings.google_client_id or "",
            client_secret=settings.google_client_secret or "",
            redirect_url=settings.redirect_url or "",
            auth_url=settings.oauth_auth_url,
            token_url=settings.oauth_token_url,
            scopes=tuple(settings.scope_list),
            state=settings.oauth_state,
        )


@dataclass(frozen=True)
class CodeExchangeResult:
    """Outcome of a successful code exchange."""

    access_token: str
    claims: IdentityClaims


class MissingCodeError(InvalidRequestError):
    def __init__(self):
        super().__init__(ApiErrorCode.E_MISSING_CODE, "Authorization code must be provided")


class ProviderError(UpstreamError):
    def __init__(self, message: str = "Identity provider request failed"):
        super().__init__(ApiErrorCode.E_PROVIDER_ERROR, message)


class IncompleteTokenResponseError(InvalidRequestError):
    """Provider answered but without both an access token and an id token."""

    def __init__(self):
        super().__init__(ApiErrorCode.E_AUTH_EXCHANGE_FAILED, "Auth error")


class MalformedIdentityError(UpstreamError):
    def __init__(self, message: str = "Identity token could not be decoded"):
        super().__init__(ApiErrorCode.E_MALFORMED_IDENTITY, message)


def decode_identity_token(id_token: str) -> IdentityClaims:
    """Decode identity claims from an id_token without a network round trip.

    Maps provider claims explicitly: sub -> subject, name -> display_name,
    picture -> avatar_url. Non-string optional claims are dropped.

    Raises:
        MalformedIdentityError: Not a JWT, or no usable ``sub`` claim.
    """
    try:
        payload = jwt.decode(id_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise MalformedIdentityError() from e

    def _optional_str(key: str) -> str | None:
        value = payload.get(key)
        return value if isinstance(value, str) and value else None

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub:
        raise MalformedIdentityError("Identity token has no subject")

    try:
        return IdentityClaims(
            subject=sub,
            email=_optional_str("email"),
            display_name=_optional_str("name"),
            avatar_url=_optional_str("picture"),
        )
    except ValidationError as e:
        raise MalformedIdentityError() from e


class OAuthExchanger:
    """Talks to the identity provider only; never touches the identity store."""

    def __init__(self, client: httpx.AsyncClient, config: OAuthProviderConfig):
        self._client = client
        self.config = config

    def build_authorization_url(self) -> str:
        """Deterministic consent URL for the configured client."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_url,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "access_type": "offline",
            "state": self.config.state,
            "prompt": "consent",
        }
        return f"{self.config.auth_url}?{urlencode(params)}"

    async def exchange_code(self, code: str | None) -> CodeExchangeResult:
        """Exchange an authorization code for an access token and identity claims.

        Raises:
            MissingCodeError: code is empty (no network call is made).
            ProviderError: Transport failure or non-2xx from the token endpoint.
            IncompleteTokenResponseError: access_token or id_token missing.
            MalformedIdentityError: id_token cannot be decoded.
        """
        if not code:
            raise MissingCodeError()

        form = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.config.redirect_url,
        }

        try:
            response = await self._client.post(
                self.config.token_url,
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("oauth_exchange_failed", reason="transport", error=str(e))
            raise ProviderError() from e

        if response.status_code >= 400:
            logger.warning(
                "oauth_exchange_failed",
                reason="status",
                upstream_status=response.status_code,
                upstream_body=response.text[:500],
            )
            raise ProviderError()

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("oauth_exchange_failed", reason="non_json_body")
            raise ProviderError("Identity provider returned an unreadable response") from e

        if not isinstance(data, dict):
            raise ProviderError("Identity provider returned an unreadable response")

        access_token = data.get("access_token")
        id_token = data.get("id_token")
        if not access_token or not id_token:
            logger.warning(
                "oauth_exchange_failed",
                reason="incomplete_response",
                has_access_token=bool(access_token),
                has_id_token=bool(id_token),
            )
            raise IncompleteTokenResponseError()

        claims = decode_identity_token(id_token)
        logger.info(
            "oauth_exchange_succeeded",
            **safe_kv(
                subject_sha256=hash_text(claims.subject),
                access_token_chars=len(access_token),
                has_email=claims.email is not None,
            ),
        )
        return CodeExchangeResult(access_token=access_token, claims=claims)
