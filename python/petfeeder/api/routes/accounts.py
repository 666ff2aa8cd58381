"""Account routes: direct registration and login, account lookups."""

from typing import Annotated

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from petfeeder.api.deps import (
    get_current_account,
    get_identity_reconciler,
    get_identity_store,
    get_token_codec,
)
from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.errors import ApiErrorCode, NotFoundError
from petfeeder.logging import get_logger
from petfeeder.schemas.account import AccountOut, LoginRequest, RegisterRequest
from petfeeder.services.identity import IdentityReconciler
from petfeeder.storage.identity_store import IdentityStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


@router.post("/customUsers")
async def register_account(
    body: RegisterRequest,
    reconciler: Annotated[IdentityReconciler, Depends(get_identity_reconciler)],
) -> dict:
    """Create a direct-login account. 400 "Unable to create user" on a taken username."""
    account = await run_in_threadpool(
        reconciler.register_direct,
        body.username,
        body.password,
        body.email,
        body.display_name,
    )
    return account.to_public().to_json()


@router.post("/login")
async def login(
    body: LoginRequest,
    reconciler: Annotated[IdentityReconciler, Depends(get_identity_reconciler)],
    codec: Annotated[SessionTokenCodec, Depends(get_token_codec)],
) -> dict:
    account = await run_in_threadpool(reconciler.authenticate_direct, body.username, body.password)
    logger.info("direct_login_succeeded", account_id=account.id)
    return {"user": account.to_json(), "sessionToken": codec.issue(account)}


@router.get("/getAllUsernames")
async def list_usernames(
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> list[str]:
    return await run_in_threadpool(store.list_usernames)


@router.get("/users")
async def list_accounts(
    _account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> list[dict]:
    accounts = await run_in_threadpool(store.list_accounts)
    return [a.to_public().to_json() for a in accounts]


@router.get("/users/{account_id}")
async def get_account(
    account_id: str,
    _account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict:
    found = await run_in_threadpool(store.find_account_by_id, account_id)
    if found is None:
        raise NotFoundError(ApiErrorCode.E_ACCOUNT_NOT_FOUND, "Account not found")
    return found.to_public().to_json()
