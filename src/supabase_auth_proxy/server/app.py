"""Application factory wiring configuration, authenticator and forwarder."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response

from supabase_auth_proxy.adapters.errors import ErrorMapper
from supabase_auth_proxy.auth.bearer import BearerAuthenticator
from supabase_auth_proxy.auth.protocol import Authenticator, UserResolver
from supabase_auth_proxy.auth.supabase import SupabaseUserResolver
from supabase_auth_proxy.config import ProxyConfig
from supabase_auth_proxy.server.forwarder import Forwarder
from supabase_auth_proxy.server.routes import build_routes

logger = logging.getLogger(__name__)


def create_app(
    config: ProxyConfig,
    *,
    resolver: UserResolver | None = None,
    authenticator: Authenticator | None = None,
    forwarder: Forwarder | None = None,
) -> Starlette:
    """Build the proxy ASGI application.

    Collaborators left as ``None`` are built from ``config`` and closed when
    the application shuts down; injected ones belong to the caller.

    Args:
        config: Process configuration.
        resolver: Identity provider; defaults to ``SupabaseUserResolver``.
        authenticator: Overrides the ``BearerAuthenticator`` built on ``resolver``.
        forwarder: Downstream forwarder; defaults to one on ``config.internal_api_url``.
    """
    owned: list[Any] = []

    if authenticator is None:
        if resolver is None:
            resolver = SupabaseUserResolver(
                config.supabase_url,
                config.supabase_service_role_key,
                timeout=config.auth_timeout,
            )
            owned.append(resolver)
        authenticator = BearerAuthenticator(resolver)

    if forwarder is None:
        forwarder = Forwarder(
            config.internal_api_url,
            internal_key=config.internal_api_key,
            timeout=config.upstream_timeout,
        )
        owned.append(forwarder)

    error_mapper = ErrorMapper()

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Proxy ready: %s", config.describe())
        try:
            yield
        finally:
            for client in owned:
                await client.aclose()
            logger.info("Proxy shut down")

    async def _unhandled(request: Request, exc: Exception) -> Response:
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return error_mapper.internal_error()

    return Starlette(
        routes=build_routes(config, authenticator, forwarder, error_mapper=error_mapper),
        lifespan=lifespan,
        exception_handlers={Exception: _unhandled},
    )
