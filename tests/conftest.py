"""Shared test fixtures for supabase-auth-proxy tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from supabase_auth_proxy._types import Identity
from supabase_auth_proxy.config import ProxyConfig
from supabase_auth_proxy.errors import InvalidTokenError, ResolverUnavailableError

SUPABASE_URL = "https://project.supabase.test"
INTERNAL_API_URL = "http://internal.test:8080"
SERVICE_ROLE_KEY = "service-role-key"

# ---------------------------------------------------------------------------
# Stub identity provider
# ---------------------------------------------------------------------------


class StubResolver:
    """In-memory UserResolver: maps tokens to identities or errors.

    Tokens absent from ``users`` raise ``InvalidTokenError``; a value of
    ``None`` means "no user"; an exception instance is raised as-is.
    """

    def __init__(self, users: dict[str, Any] | None = None) -> None:
        self.users: dict[str, Any] = users or {}
        self.calls: list[str] = []

    async def resolve_user(self, token: str) -> Identity | None:
        self.calls.append(token)
        if token not in self.users:
            raise InvalidTokenError("invalid JWT: unable to parse or verify signature")
        value = self.users[token]
        if isinstance(value, Exception):
            raise value
        return value


# ---------------------------------------------------------------------------
# Recording downstream service (httpx.MockTransport handler)
# ---------------------------------------------------------------------------


class RecordingDownstream:
    """Records every downstream request and answers via a configurable handler."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json={"ok": True}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> ProxyConfig:
    return ProxyConfig(
        supabase_url=SUPABASE_URL,
        supabase_service_role_key=SERVICE_ROLE_KEY,
        internal_api_url=INTERNAL_API_URL,
    )


@pytest.fixture
def identity() -> Identity:
    return Identity(id="u1", email="a@b.com")


@pytest.fixture
def resolver(identity: Identity) -> StubResolver:
    return StubResolver(
        {
            "good-token": identity,
            "orphan-token": None,
            "outage-token": ResolverUnavailableError("ConnectError: connection refused"),
            "crash-token": RuntimeError("boom"),
        }
    )


@pytest.fixture
def downstream() -> RecordingDownstream:
    return RecordingDownstream()
