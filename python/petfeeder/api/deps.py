"""FastAPI dependencies for route handlers.

Components are built once (app factory and lifespan) and kept on app.state;
these accessors hand them to routes without import-time globals.
"""

from fastapi import Request

from petfeeder.auth.gate import SessionGate
from petfeeder.auth.middleware import get_current_account
from petfeeder.auth.oauth import OAuthExchanger
from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.services.drive import DriveClient
from petfeeder.services.identity import IdentityReconciler
from petfeeder.services.media_relay import MediaRangeRelay
from petfeeder.storage.identity_store import IdentityStore

__all__ = [
    "get_current_account",
    "get_drive_client",
    "get_identity_reconciler",
    "get_identity_store",
    "get_media_relay",
    "get_oauth_exchanger",
    "get_session_gate",
    "get_token_codec",
]


def get_token_codec(request: Request) -> SessionTokenCodec:
    return request.app.state.token_codec


def get_session_gate(request: Request) -> SessionGate:
    return request.app.state.session_gate


def get_identity_store(request: Request) -> IdentityStore:
    return request.app.state.identity_store


def get_identity_reconciler(request: Request) -> IdentityReconciler:
    return request.app.state.identity_reconciler


def get_oauth_exchanger(request: Request) -> OAuthExchanger:
    """Get the shared OAuth exchanger from app state.

    Created in the lifespan around the shared httpx.AsyncClient, so it only
    exists while the app is running.
    """
    return request.app.state.oauth_exchanger


def get_drive_client(request: Request) -> DriveClient:
    return request.app.state.drive_client


def get_media_relay(request: Request) -> MediaRangeRelay:
    return request.app.state.media_relay
