"""Forwarder: issues the authenticated request to the downstream service."""

from __future__ import annotations

import logging

import httpx
from starlette.requests import Request

from supabase_auth_proxy._types import Failed, ForwardFailure, ForwardOutcome, Identity, Relayed
from supabase_auth_proxy.adapters.headers import build_forward_headers, build_target_url
from supabase_auth_proxy.constants import PROXY_PREFIX

logger = logging.getLogger(__name__)


def _encode_header(value: str) -> bytes:
    try:
        return value.encode("latin-1")
    except UnicodeEncodeError:
        return value.encode("utf-8")


async def _read_raw(response: httpx.Response) -> bytes:
    """Read the body exactly as sent: no decompression, no re-serialisation."""
    if response.is_stream_consumed:
        # In-memory responses (e.g. from a MockTransport) arrive pre-read
        return response.content
    return b"".join([chunk async for chunk in response.aiter_raw()])


def proxied_suffix(request: Request) -> str:
    """Return the still-encoded path after the proxy prefix (may be empty)."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = request.scope["path"]
    index = path.find(PROXY_PREFIX)
    if index == -1:
        return request.path_params.get("path", "")
    return path[index + len(PROXY_PREFIX) :]


class Forwarder:
    """Relays authenticated requests to a fixed downstream base URL.

    Redirects are never followed and every HTTP status is a successful
    relay; only a missing response is a failure.

    Args:
        base_url: Downstream base URL.
        internal_key: Optional shared secret sent as ``X-Internal-Key``.
        timeout: Seconds before a hung call is classified as ``timeout``.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        *,
        internal_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._internal_key = internal_key
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def forward(self, request: Request, identity: Identity) -> ForwardOutcome:
        """Forward ``request`` on behalf of ``identity`` and collect the response."""
        body = await request.body()
        query = request.scope.get("query_string", b"").decode("latin-1")
        url = build_target_url(self._base_url, proxied_suffix(request), query)
        headers = build_forward_headers(request.headers.items(), identity, self._internal_key)

        logger.info("Proxying %s request to: %s (user: %s)", request.method, url, identity.email or identity.id)
        return await self.send(request.method, url, headers, body)

    async def send(
        self,
        method: str,
        url: str,
        headers: list[tuple[str, str]],
        body: bytes,
    ) -> ForwardOutcome:
        """Issue one request and classify transport failures."""
        outgoing = self._client.build_request(
            method,
            url,
            headers=[(_encode_header(k), _encode_header(v)) for k, v in headers],
            content=body,
        )
        try:
            response = await self._client.send(outgoing, stream=True)
            try:
                body_out = await _read_raw(response)
            finally:
                await response.aclose()
        except httpx.ConnectError as exc:
            logger.error("Proxy error (connection refused): %s", exc)
            return Failed(ForwardFailure.CONNECTION_REFUSED, str(exc))
        except httpx.TimeoutException as exc:
            logger.error("Proxy error (timeout): %s", exc)
            return Failed(ForwardFailure.TIMEOUT, str(exc))
        except httpx.HTTPError as exc:
            logger.error("Proxy error: %s: %s", type(exc).__name__, exc)
            return Failed(ForwardFailure.UNKNOWN_TRANSPORT_ERROR, str(exc))

        logger.info("Response: %d", response.status_code)
        headers_out = [(k.decode("latin-1"), v.decode("latin-1")) for k, v in response.headers.raw]
        return Relayed(status=response.status_code, headers=headers_out, body=body_out)
