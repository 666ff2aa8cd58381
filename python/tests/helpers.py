"""Test helpers for tokens, accounts and upstream payloads.

Provides:
- Environment used by every test
- Identity token minting (what the provider's token endpoint returns)
- Session token and header helpers
- Account creation shortcuts
"""

import jwt

from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.schemas.account import Account, LoginMethod, NewAccount
from petfeeder.storage.identity_store import IdentityStore

TEST_TOKEN_SECRET = "test-token-secret-with-enough-entropy-0123456789"
TEST_CLIENT_ORIGIN = "http://localhost:3000"

TEST_ENV = {
    "PETFEEDER_ENV": "test",
    "TOKEN_SECRET": TEST_TOKEN_SECRET,
    "GOOGLE_CLIENT_ID": "test-client-id.apps.googleusercontent.com",
    "GOOGLE_CLIENT_SECRET": "test-client-secret",
    "REDIRECT_URL": "http://localhost:4000/auth/callback",
    "CLIENT_URL": TEST_CLIENT_ORIGIN,
    "PASSWORD_HASH_TIME_COST": "1",
    "PASSWORD_HASH_MEMORY_KIB": "1024",
}

TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_BASE_URL = "https://www.googleapis.com/drive/v3"

# The provider signs its id_token with a key we never see; any key works
# because the gateway decodes it without verifying the signature.
PROVIDER_SIGNING_KEY = "provider-side-key-not-known-to-the-gateway"


def make_id_token(
    sub: str = "google-sub-123",
    email: str | None = "owner@example.com",
    name: str | None = "Pet Owner",
    picture: str | None = "https://example.com/avatar.png",
    **extra_claims,
) -> str:
    """Mint an identity token shaped like the provider's."""
    payload = {"sub": sub, "iss": "https://accounts.google.com", **extra_claims}
    if email is not None:
        payload["email"] = email
    if name is not None:
        payload["name"] = name
    if picture is not None:
        payload["picture"] = picture
    return jwt.encode(payload, PROVIDER_SIGNING_KEY, algorithm="HS256")


def token_response(
    access_token: str | None = "ya29.test-access-token",
    id_token: str | None = None,
) -> dict:
    """Body of a provider token endpoint response."""
    body: dict = {"token_type": "Bearer", "expires_in": 3599}
    if access_token is not None:
        body["access_token"] = access_token
    if id_token is not None:
        body["id_token"] = id_token
    return body


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def create_direct_account(
    store: IdentityStore, username: str = "feeder_fan", credential_hash: str = "not-a-real-hash"
) -> Account:
    """Insert a direct-login account straight into the store."""
    return store.create_account(
        NewAccount(
            login_method=LoginMethod.direct,
            username=username,
            credential_hash=credential_hash,
        )
    )


def session_headers_for(account: Account, secret: str = TEST_TOKEN_SECRET) -> dict[str, str]:
    """Authorization headers carrying a fresh session token for account."""
    return auth_headers(SessionTokenCodec(secret).issue(account.to_public()))
