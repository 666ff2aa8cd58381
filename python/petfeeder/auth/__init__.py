"""Authentication module.

This module provides:
- Session token codec (HS256 JWTs carrying an account snapshot)
- OAuth code exchange against the identity provider
- Credential hashing for direct-login accounts
- Session gate and its middleware for FastAPI
"""

from petfeeder.auth.gate import SessionGate
from petfeeder.auth.middleware import SessionGateMiddleware, get_current_account
from petfeeder.auth.oauth import OAuthExchanger, OAuthProviderConfig
from petfeeder.auth.passwords import CredentialHasher
from petfeeder.auth.session_token import SessionTokenCodec

__all__ = [
    "CredentialHasher",
    "OAuthExchanger",
    "OAuthProviderConfig",
    "SessionGate",
    "SessionGateMiddleware",
    "SessionTokenCodec",
    "get_current_account",
]
