"""Starlette route handlers for the proxy pipeline."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import anyio
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route, request_response
from starlette.types import Receive, Scope, Send

from supabase_auth_proxy._types import Rejected, Relayed
from supabase_auth_proxy.adapters.errors import ErrorMapper
from supabase_auth_proxy.adapters.headers import build_relay_headers
from supabase_auth_proxy.auth.protocol import Authenticator
from supabase_auth_proxy.config import ProxyConfig
from supabase_auth_proxy.constants import HEALTH_PATH, PROXY_PREFIX, SERVICE_NAME
from supabase_auth_proxy.server.forwarder import Forwarder

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status used when the caller hung up before the downstream call finished
CLIENT_CLOSED_REQUEST = 499


class AnyMethod:
    """ASGI adapter that runs a request handler for every HTTP method.

    Starlette limits plain function endpoints to GET; an ASGI app endpoint
    is matched whatever the method, including WebDAV and custom verbs.
    """

    def __init__(self, endpoint: Callable[[Request], Awaitable[Response]]) -> None:
        self.__name__ = endpoint.__name__
        self._app = request_response(endpoint)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._app(scope, receive, send)


def _utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, ``Z`` suffixed."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def relay_response(outcome: Relayed) -> Response:
    """Build a response carrying the downstream status, headers and exact body."""
    response = Response(content=outcome.body, status_code=outcome.status)
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in build_relay_headers(outcome.headers)
    ]
    bodiless = outcome.status < 200 or outcome.status in (204, 304)
    if not bodiless and not any(name == b"content-length" for name, _ in raw_headers):
        raw_headers.append((b"content-length", str(len(outcome.body)).encode("latin-1")))
    response.raw_headers = raw_headers
    return response


async def run_until_disconnect(request: Request, func: Callable[[], Awaitable[T]]) -> T | None:
    """Await ``func()``, cancelling it if the client disconnects first.

    The request body must already have been read. Returns ``None`` when the
    call was cancelled by a disconnect.
    """
    result: Any = None

    async with anyio.create_task_group() as tg:

        async def _run() -> None:
            nonlocal result
            result = await func()
            tg.cancel_scope.cancel()

        async def _watch() -> None:
            while True:
                message = await request.receive()
                if message["type"] == "http.disconnect":
                    logger.info("Client disconnected; abandoning downstream call")
                    tg.cancel_scope.cancel()
                    return

        tg.start_soon(_watch)
        tg.start_soon(_run)

    return result


def build_routes(
    config: ProxyConfig,
    authenticator: Authenticator,
    forwarder: Forwarder,
    *,
    error_mapper: ErrorMapper | None = None,
) -> list[Route]:
    """Build the routes: liveness probe, proxied prefix, index and catch-all.

    Args:
        config: Process configuration (health paths, upstream URLs).
        authenticator: Resolves the caller's bearer token.
        forwarder: Relays authenticated requests downstream.
        error_mapper: Maps failures to JSON error responses.

    Returns:
        List of Starlette Route objects, in matching order.
    """
    from supabase_auth_proxy import __version__

    errors = error_mapper or ErrorMapper()

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "timestamp": _utc_timestamp(),
                "supabase": config.supabase_url,
                "internalApi": config.internal_api_url,
            }
        )

    async def proxy(request: Request) -> Response:
        try:
            outcome = await authenticator.authenticate(request.headers)
            if isinstance(outcome, Rejected):
                return errors.for_rejection(outcome)

            # Read the body before watching receive() for a disconnect
            await request.body()
            forwarded = await run_until_disconnect(request, lambda: forwarder.forward(request, outcome.identity))
            if forwarded is None:
                return Response(status_code=CLIENT_CLOSED_REQUEST)
            if isinstance(forwarded, Relayed):
                return relay_response(forwarded)
            return errors.for_failure(forwarded)
        except Exception:
            logger.exception("Unhandled error while proxying %s %s", request.method, request.url.path)
            return errors.internal_error()

    async def index(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "name": SERVICE_NAME,
                "version": __version__,
                "endpoints": {
                    "health": HEALTH_PATH,
                    "api": PROXY_PREFIX + "*",
                },
            }
        )

    async def not_found(request: Request) -> JSONResponse:
        return errors.not_found()

    routes = [Route(path, endpoint=health, methods=["GET"]) for path in config.health_paths]
    routes += [
        Route(PROXY_PREFIX + "{path:path}", endpoint=AnyMethod(proxy)),
        Route("/", endpoint=AnyMethod(index)),
        Route("/{path:path}", endpoint=AnyMethod(not_found)),
    ]
    return routes
