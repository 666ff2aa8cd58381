"""Pure ASGI CORS middleware for the browser client.

- Allowed origins come from CLIENT_URL; credentials are allowed.
- OPTIONS preflight is answered here, before the session gate runs.
- Range-relay headers are exposed so the video element can read them.
- Does not buffer streaming responses: headers are injected only on the
  http.response.start message.
"""

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOWED_HEADERS = "Authorization, Content-Type, Range, X-Request-ID"
EXPOSED_HEADERS = "X-Request-ID, Content-Range, Accept-Ranges, Content-Length"
PREFLIGHT_MAX_AGE = "600"


class ClientCORSMiddleware:
    """CORS for the configured client origins.

    Requests without an Origin header (curl, tests, server-to-server) pass
    through untouched. Disallowed origins get no CORS headers, so the browser
    blocks the response; disallowed preflights are refused with 403.
    """

    def __init__(self, app: ASGIApp, allowed_origins: list[str]):
        self.app = app
        self.allowed_origins = set(allowed_origins)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        origin = headers.get("origin")
        if origin is None:
            await self.app(scope, receive, send)
            return

        allowed = origin in self.allowed_origins
        is_preflight = (
            scope["method"] == "OPTIONS" and "access-control-request-method" in headers
        )

        if is_preflight:
            if not allowed:
                response = Response(status_code=403, content="origin not allowed")
            else:
                response = Response(
                    status_code=204,
                    headers={
                        "access-control-allow-origin": origin,
                        "access-control-allow-credentials": "true",
                        "access-control-allow-methods": ALLOWED_METHODS,
                        "access-control-allow-headers": ALLOWED_HEADERS,
                        "access-control-max-age": PREFLIGHT_MAX_AGE,
                        "vary": "Origin",
                    },
                )
            await response(scope, receive, send)
            return

        if not allowed:
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                resp_headers = MutableHeaders(scope=message)
                resp_headers["access-control-allow-origin"] = origin
                resp_headers["access-control-allow-credentials"] = "true"
                resp_headers["access-control-expose-headers"] = EXPOSED_HEADERS
                resp_headers.add_vary_header("Origin")
            await send(message)

        await self.app(scope, receive, send_with_cors)
