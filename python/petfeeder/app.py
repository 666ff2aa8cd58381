"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, the session gate, CORS, request-id
middleware, and routes.

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- ClientCORSMiddleware sits outside the session gate so preflights never
  need a token and 401s still carry CORS headers

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. ClientCORSMiddleware (answers preflight, decorates responses)
3. SessionGateMiddleware (protected prefixes only, sets request.state.account)
4. Route handler

Component Lifecycle:
- TokenCodec, SessionGate, IdentityStore and IdentityReconciler are built in
  create_app, since the gate middleware needs them at registration time
- httpx.AsyncClient is created at startup, stored in app.state, and shared
  by OAuthExchanger, DriveClient and MediaRangeRelay; closed at shutdown
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from petfeeder.api.routes import create_api_router
from petfeeder.auth.gate import SessionGate
from petfeeder.auth.middleware import SessionGateMiddleware
from petfeeder.auth.oauth import OAuthExchanger, OAuthProviderConfig
from petfeeder.auth.passwords import CredentialHasher
from petfeeder.auth.session_token import SessionTokenCodec
from petfeeder.config import Environment, get_settings
from petfeeder.errors import ApiError, RangeNotSatisfiableError
from petfeeder.logging import configure_logging, get_logger
from petfeeder.middleware.cors import ClientCORSMiddleware
from petfeeder.middleware.request_id import RequestIDMiddleware
from petfeeder.responses import (
    api_error_handler,
    http_exception_handler,
    range_not_satisfiable_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from petfeeder.services.drive import DriveClient
from petfeeder.services.identity import IdentityReconciler
from petfeeder.services.media_relay import MediaRangeRelay
from petfeeder.storage import IdentityStore, create_identity_store

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the shared outbound HTTP client and the components built on it.

    No retries are configured; the timeouts are the only bound on an
    upstream call.
    """
    settings = get_settings()

    app.state.httpx_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.upstream_timeout_s, connect=settings.upstream_connect_timeout_s
        ),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )

    app.state.oauth_exchanger = OAuthExchanger(
        app.state.httpx_client, OAuthProviderConfig.from_settings(settings)
    )
    app.state.drive_client = DriveClient(app.state.httpx_client, settings.drive_api_base_url)
    app.state.media_relay = MediaRangeRelay(
        app.state.drive_client, chunk_bytes=settings.media_chunk_bytes
    )

    logger.info(
        "upstream_clients_initialized",
        drive_api_base_url=settings.drive_api_base_url,
        media_chunk_bytes=settings.media_chunk_bytes,
    )

    yield

    await app.state.httpx_client.aclose()
    logger.info("httpx_client_closed")


def create_app(
    identity_store: IdentityStore | None = None,
    skip_session_gate: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        identity_store: Optional store instance (for testing). Defaults to the
            store selected by DATABASE_URL.
        skip_session_gate: If True, skip adding the session gate middleware
            (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    if settings.token_secret is None and settings.petfeeder_env == Environment.LOCAL:
        logger.warning("token_secret_unset_using_dev_secret")

    app = FastAPI(
        title="Petfeeder API",
        description="Session and media gateway for the pet feeder client",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    token_codec = SessionTokenCodec(
        settings.effective_token_secret, ttl_seconds=settings.session_token_ttl_s
    )
    store = identity_store if identity_store is not None else create_identity_store(
        settings.database_url
    )
    hasher = CredentialHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost_kib=settings.password_hash_memory_kib,
    )

    app.state.token_codec = token_codec
    app.state.session_gate = SessionGate(token_codec)
    app.state.identity_store = store
    app.state.identity_reconciler = IdentityReconciler(store, hasher)

    # Register exception handlers (most specific class wins)
    app.add_exception_handler(RangeNotSatisfiableError, range_not_satisfiable_handler)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Use router factory to avoid import-time settings loading
    app.include_router(create_api_router())

    if not skip_session_gate:
        app.add_middleware(SessionGateMiddleware, gate=app.state.session_gate)
        logger.info("session_gate_enabled", env=settings.petfeeder_env.value)

    cors_origins = settings.client_origin_list
    if cors_origins:
        app.add_middleware(ClientCORSMiddleware, allowed_origins=cors_origins)
        logger.info("client_cors_middleware_enabled", origins=cors_origins)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including gate rejections.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
