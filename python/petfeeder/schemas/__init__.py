"""Pydantic schemas for request/response validation."""

from petfeeder.schemas.account import (
    Account,
    AccountOut,
    LoginMethod,
    LoginRequest,
    NewAccount,
    RegisterRequest,
)
from petfeeder.schemas.auth import FolderLookupRequest, IdentityClaims
from petfeeder.schemas.schedule import PortionScheduleUpdate, PortionUpdate, ScheduleRecord

__all__ = [
    "Account",
    "AccountOut",
    "LoginMethod",
    "LoginRequest",
    "NewAccount",
    "RegisterRequest",
    "FolderLookupRequest",
    "IdentityClaims",
    "PortionScheduleUpdate",
    "PortionUpdate",
    "ScheduleRecord",
]
