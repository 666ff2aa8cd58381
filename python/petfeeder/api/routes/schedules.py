"""Feeding schedule routes.

All paths sit behind the session gate, and a caller may only read or write
the schedule of their own account. PUTs upsert, so an account left without
a schedule record gets one on its first write.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends
from starlette.concurrency import run_in_threadpool

from petfeeder.api.deps import get_current_account, get_identity_store
from petfeeder.errors import ApiErrorCode, ForbiddenError, NotFoundError
from petfeeder.schemas.account import AccountOut
from petfeeder.schemas.schedule import PortionScheduleUpdate, PortionUpdate
from petfeeder.storage.identity_store import IdentityStore

router = APIRouter(prefix="/api")


def _require_owner(account: AccountOut, account_id: str) -> None:
    if account.id != account_id:
        raise ForbiddenError(message="Cannot access another account's schedule")


@router.get("/schedule/{account_id}")
async def get_schedule(
    account_id: str,
    account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict:
    _require_owner(account, account_id)
    record = await run_in_threadpool(store.find_schedule, account_id)
    if record is None:
        raise NotFoundError(ApiErrorCode.E_SCHEDULE_NOT_FOUND, "Schedule not found")
    return record.to_json()


@router.put("/schedule/{account_id}")
async def put_schedule(
    account_id: str,
    schedule: Annotated[dict[str, Any], Body()],
    account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict:
    _require_owner(account, account_id)
    record = await run_in_threadpool(
        lambda: store.upsert_schedule(account_id, schedule=schedule)
    )
    return record.to_json()


@router.put("/portion/{account_id}")
async def put_portion(
    account_id: str,
    body: PortionUpdate,
    account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict:
    _require_owner(account, account_id)
    record = await run_in_threadpool(
        lambda: store.upsert_schedule(account_id, portion=body.portion)
    )
    return record.to_json()


@router.put("/PortionSchedule/{account_id}")
async def put_portion_schedule(
    account_id: str,
    body: PortionScheduleUpdate,
    account: Annotated[AccountOut, Depends(get_current_account)],
    store: Annotated[IdentityStore, Depends(get_identity_store)],
) -> dict:
    _require_owner(account, account_id)
    record = await run_in_threadpool(
        lambda: store.upsert_schedule(
            account_id, schedule=body.schedule, portion=body.portion
        )
    )
    return record.to_json()
