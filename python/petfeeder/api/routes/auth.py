"""Identity provider login routes.

- GET  /auth/url        consent URL for the provider
- GET  /auth/token      code exchange, account resolution, session token
- GET  /auth/logged_in  session token check (never errors, reports a boolean)
- POST /auth/logout     acknowledgement only; session tokens are stateless
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query
from starlette.concurrency import run_in_threadpool

from petfeeder.api.deps import (
    get_identity_reconciler,
    get_oauth_exchanger,
    get_session_gate,
    get_token_codec,
)
from petfeeder.auth.gate import SessionGate
from petfeeder.auth.oauth import OAuthExchanger
from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.errors import UnauthenticatedError
from petfeeder.logging import get_logger
from petfeeder.services.identity import IdentityReconciler

logger = get_logger(__name__)

router = APIRouter(prefix="/auth")


@router.get("/url")
async def get_authorization_url(
    exchanger: Annotated[OAuthExchanger, Depends(get_oauth_exchanger)],
) -> dict:
    return {"url": exchanger.build_authorization_url()}


@router.get("/token")
async def exchange_token(
    exchanger: Annotated[OAuthExchanger, Depends(get_oauth_exchanger)],
    reconciler: Annotated[IdentityReconciler, Depends(get_identity_reconciler)],
    codec: Annotated[SessionTokenCodec, Depends(get_token_codec)],
    code: Annotated[str | None, Query()] = None,
) -> dict:
    """Finish the provider login.

    Returns the account, a session token for this gateway, and the provider
    access token the client passes back for media and folder calls.
    """
    result = await exchanger.exchange_code(code)
    account = await run_in_threadpool(reconciler.resolve_or_create, result.claims)
    public = account.to_public()

    logger.info("provider_login_succeeded", account_id=public.id)
    return {
        "user": public.to_json(),
        "sessionToken": codec.issue(public),
        "accessToken": result.access_token,
    }


@router.get("/logged_in")
async def logged_in(
    gate: Annotated[SessionGate, Depends(get_session_gate)],
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    try:
        account = gate.authenticate(authorization)
    except UnauthenticatedError:
        return {"loggedIn": False}
    return {"loggedIn": True, "user": account.to_json()}


@router.post("/logout")
async def logout() -> dict:
    """Nothing to revoke server-side; the client drops its token."""
    return {"message": "Logged out"}
