"""Middleware modules for the Petfeeder API."""

from petfeeder.middleware.cors import ClientCORSMiddleware
from petfeeder.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["ClientCORSMiddleware", "RequestIDMiddleware", "REQUEST_ID_HEADER"]
