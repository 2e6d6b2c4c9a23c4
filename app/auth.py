# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Bearer token authentication for the passport registry HTTP surface.

The token authenticates the hosting collaborator that submits blocks, not
individual callers. Per-call identities travel in each transaction's
``sender`` field and are authorized by the registry core.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

import app.config as _config

log = logging.getLogger("passport_registry.auth")

# Paths exempt from bearer token auth (health probes, API docs)
EXEMPT_PATHS: set[str] = {"/healthz", "/docs", "/openapi.json"}


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Validates bearer token on all non-exempt requests.

    If AUTH_TOKEN is empty, auth is disabled (development mode). The token
    is read from app.config at request time so tests can patch it.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        auth_token = _config.AUTH_TOKEN
        if not auth_token:
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Missing or invalid Authorization header"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header[7:]  # Strip "Bearer " prefix
        if token != auth_token:
            client_host = request.client.host if request.client else "unknown"
            log.warning(f"Invalid bearer token from {client_host}")
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid bearer token"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
