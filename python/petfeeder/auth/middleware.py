"""Session gate middleware for FastAPI.

Provides:
- SessionGateMiddleware: pure ASGI middleware guarding protected path prefixes
- get_current_account: dependency for the authenticated account snapshot

Pure ASGI rather than BaseHTTPMiddleware so streamed media bodies on
unprotected routes pass through unbuffered.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from petfeeder.auth.gate import SessionGate
from petfeeder.errors import ApiErrorCode, UnauthenticatedError
from petfeeder.logging import set_account_context
from petfeeder.responses import error_response
from petfeeder.schemas.account import AccountOut

# Routes under these prefixes require a valid session token
PROTECTED_PREFIXES = ("/api/users", "/api/schedule", "/api/portion", "/api/PortionSchedule")


def is_protected_path(path: str) -> bool:
    for prefix in PROTECTED_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


class SessionGateMiddleware:
    """Rejects unauthenticated requests to protected routes with a uniform 401.

    On success the account snapshot is stored on ``request.state.account``.
    CORS preflight (OPTIONS) is never gated.
    """

    def __init__(self, app: ASGIApp, gate: SessionGate):
        self.app = app
        self.gate = gate

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["method"] == "OPTIONS"
            or not is_protected_path(scope["path"])
        ):
            await self.app(scope, receive, send)
            return

        authorization = Headers(scope=scope).get("authorization")
        try:
            account = self.gate.authenticate(authorization)
        except UnauthenticatedError as e:
            response = JSONResponse(
                status_code=e.status_code,
                content=error_response(e.code, e.message),
            )
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})["account"] = account
        set_account_context(account.id)
        await self.app(scope, receive, send)


def get_current_account(request: Request) -> AccountOut:
    """FastAPI dependency to get the authenticated account.

    Raises:
        UnauthenticatedError: Middleware did not attach an account.
    """
    account = getattr(request.state, "account", None)
    if account is None:
        raise UnauthenticatedError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return account
