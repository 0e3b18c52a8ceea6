"""Supabase Auth user resolver over httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from supabase_auth_proxy._types import Identity
from supabase_auth_proxy.auth.protocol import UserResolver
from supabase_auth_proxy.constants import SUPABASE_USER_ENDPOINT
from supabase_auth_proxy.errors import InvalidTokenError, ResolverUnavailableError

logger = logging.getLogger(__name__)

_USER_NOT_FOUND_CODES = {"user_not_found"}


class SupabaseUserResolver:
    """Resolves access tokens with Supabase Auth's ``GET /auth/v1/user``.

    A 5xx answer or a transport failure raises ``ResolverUnavailableError``.
    A 404, or a 4xx whose ``error_code`` is ``user_not_found``, returns
    ``None`` so callers can report "User not found" rather than a bad token.
    Every other 4xx raises ``InvalidTokenError``.

    Args:
        supabase_url: Supabase project URL, without trailing slash.
        service_role_key: Key sent in the ``apikey`` header.
        timeout: Seconds before the call is abandoned.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        supabase_url: str,
        service_role_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = supabase_url.rstrip("/") + SUPABASE_USER_ENDPOINT
        self._service_role_key = service_role_key
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def resolve_user(self, token: str) -> Identity | None:
        """Ask Supabase which user owns ``token``."""
        headers = {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {token}",
        }
        try:
            response = await self._client.get(self._endpoint, headers=headers)
        except httpx.HTTPError as exc:
            raise ResolverUnavailableError(f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 500:
            raise ResolverUnavailableError(f"Supabase Auth answered {response.status_code}")

        payload = self._json_or_none(response)

        if response.status_code >= 400:
            if response.status_code == 404 or self._error_code(payload) in _USER_NOT_FOUND_CODES:
                return None
            raise InvalidTokenError(self._error_message(payload) or f"HTTP {response.status_code}")

        if not response.content.strip():
            return None
        if payload is None and response.content.strip() != b"null":
            raise ResolverUnavailableError("Supabase Auth returned a non-JSON user record")
        return self._to_identity(payload)

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_code(payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        code = payload.get("error_code") or payload.get("code")
        return code if isinstance(code, str) else None

    @staticmethod
    def _error_message(payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @staticmethod
    def _to_identity(payload: Any) -> Identity | None:
        """Convert a Supabase user record to an Identity; ``None`` if there is no user."""
        if not isinstance(payload, dict):
            return None
        user_id = payload.get("id")
        if not user_id:
            return None
        email = payload.get("email") or None
        attrs = {k: v for k, v in payload.items() if k not in ("id", "email")}
        return Identity(id=str(user_id), email=email, attrs=attrs)


# Verify protocol compliance at import time
assert isinstance(SupabaseUserResolver.__new__(SupabaseUserResolver), UserResolver)
